"""Session helpers for the TM server.

This module centralizes creation of an authenticated TM server session. The
session is handed to the core workflow as-is; nothing downstream refreshes
or re-authenticates it.
"""

import httpx

from tmops.core.adapters.tmserver import TMServerAdapter
from tmops.core.config import ConfigError, TMOpsConfig, load_config
from tmops.core.errors import AuthError

__all__ = ["AuthError", "build_client", "get_session"]


def _format_auth_error(message: str, profile: str | None) -> str:
    """Return a user-friendly auth error message."""
    target = f"profile '{profile}'" if profile else "the default profile"
    return f"TM server authentication failed for {target}: {message}"


def build_client(cfg: TMOpsConfig) -> httpx.Client:
    """Create an httpx client bound to the configured host, token and timeout."""
    headers = {"Accept": "application/json"}
    if cfg.token:
        headers["Authorization"] = f"Bearer {cfg.token}"
    return httpx.Client(
        base_url=cfg.host,
        headers=headers,
        timeout=httpx.Timeout(cfg.timeout),
    )


def get_session(profile: str | None = None) -> TMServerAdapter:
    """
    Create and return a TM server session for a profile.

    The profile is resolved from `~/.tmopscfg` (or TMOPS_CONFIG_FILE) with
    environment overrides; see `tmops.core.config`.
    """
    try:
        cfg = load_config(profile)
    except ConfigError as exc:
        raise AuthError(_format_auth_error(str(exc), profile)) from exc
    return TMServerAdapter(build_client(cfg))
