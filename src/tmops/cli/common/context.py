"""Application context management for the CLI."""

from dataclasses import dataclass

from tmops.cli.common.exits import die
from tmops.core.auth import AuthError, get_session
from tmops.core.containers import ContainerManager, TMSession


@dataclass
class TMAppContext:
    """Application context holding the TM server session and container manager."""

    profile: str | None
    session: TMSession
    manager: ContainerManager


def build_tm_context(profile: str | None) -> TMAppContext:
    """Build and return the application context for TM server commands.

    Args:
        profile: Optional tmops profile name (from ~/.tmopscfg).

    Returns:
        TMAppContext: Application context with a session and a manager using
        the default server selection policy.
    """
    try:
        session = get_session(profile)
    except AuthError as exc:
        die(str(exc), code=1)
    return TMAppContext(profile=profile, session=session, manager=ContainerManager())
