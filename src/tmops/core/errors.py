"""Error taxonomy for TM container operations.

Every error carries the context needed to act on it (operation, server,
resolved path). Nothing here retries or recovers; callers treat these as
terminal for the requested operation.
"""

from __future__ import annotations


class TMOpsError(RuntimeError):
    """Base class for all container workflow errors."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        server: str | None = None,
        path: str | None = None,
    ) -> None:
        self.message = message
        self.operation = operation
        self.server = server
        self.path = path
        super().__init__(self._render())

    def _render(self) -> str:
        context = [
            f"{key}={value}"
            for key, value in (
                ("operation", self.operation),
                ("server", self.server),
                ("path", self.path),
            )
            if value
        ]
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class ServerLookupError(TMOpsError):
    """Raised when a named database server is not registered."""


class NoServerRegisteredError(TMOpsError):
    """Raised when no database server is available to host a container."""


class DuplicateContainerError(TMOpsError):
    """Raised when a container with the requested name already exists."""


class RemoteError(TMOpsError):
    """Raised when the TM server rejects a request."""

    def __init__(self, message: str, *, status: int | None = None, **context) -> None:
        self.status = status
        super().__init__(message, **context)


class RemoteCreateError(TMOpsError):
    """Raised when the TM server rejects or fails a container create."""


class CreationVerificationError(TMOpsError):
    """Raised when a created container is missing from the server registry."""


class ContainerNotFoundError(TMOpsError):
    """Raised when no container exists at the resolved path."""


class RemoteCommunicationError(TMOpsError):
    """Raised when the TM server cannot be reached."""


class RemoteTimeoutError(RemoteCommunicationError):
    """Raised when a TM server call exceeds its timeout."""


class AuthError(TMOpsError):
    """Raised when TM server authentication fails or the session is invalid."""
