"""Core TM container lifecycle logic.

This module contains the domain-level workflow for creating, validating and
deleting TM container databases against a remote TM server session. It is
intentionally free of CLI concerns (output, prompts, confirmation) and of
transport details, relying on a session adapter to talk to the server.

The remote create call gives no durability or idempotency guarantee the
client can see, so the advanced flow wraps it in explicit pre- and
post-condition checks. The duplicate check and the create are not atomic:
two callers racing on the same name can both pass the check.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Mapping, Protocol

from tmops.core.errors import (
    ContainerNotFoundError,
    CreationVerificationError,
    DuplicateContainerError,
    NoServerRegisteredError,
    RemoteCreateError,
    RemoteError,
    ServerLookupError,
    TMOpsError,
)
from tmops.core.selectors import FirstServerSelector, ServerSelector
from tmops.core.tm import (
    ContainerDescriptor,
    DatabaseServerRef,
    ROOT_PATH,
    full_container_path,
    normalize_path,
)
from tmops.utils.logger import get_logger

logger = get_logger(__name__)

PHYSICAL_NAME_SUFFIX = "DB"


def _with_context(
    exc: TMOpsError, *, operation: str, server: str | None, path: str | None
) -> TMOpsError:
    """Rebuild a session error as the same class, carrying the workflow context."""
    context = {
        "operation": operation,
        "server": server or exc.server,
        "path": path or exc.path,
    }
    if isinstance(exc, RemoteError):
        return RemoteError(exc.message, status=exc.status, **context)
    return type(exc)(exc.message, **context)


@contextmanager
def _remote_call(
    operation: str, *, server: str | None = None, path: str | None = None
) -> Iterator[None]:
    """Attach operation/server/path to errors raised by a session call."""
    try:
        yield
    except TMOpsError as exc:
        logger.warning("%s failed: %s", operation, exc.message)
        raise _with_context(exc, operation=operation, server=server, path=path) from exc


class TMSession(Protocol):
    """Interface of the remote TM server management API used by the core domain."""

    def resolve_database_server(
        self, name: str, properties: Mapping[str, str] | None = None
    ) -> DatabaseServerRef | None:
        """Return the registered database server with this name, or None."""
        ...

    def list_database_servers(self) -> list[DatabaseServerRef]:
        """Return all database servers known to the session (may be empty)."""
        ...

    def list_containers(self, server: DatabaseServerRef) -> list[ContainerDescriptor]:
        """Return the containers hosted on a database server."""
        ...

    def create_container(self, descriptor: ContainerDescriptor) -> None:
        """Persist a container on the server; raises RemoteError on rejection."""
        ...

    def resolve_container(self, full_path: str) -> ContainerDescriptor | None:
        """Return the container at a fully qualified path, or None."""
        ...

    def delete_container(
        self, descriptor: ContainerDescriptor, purge_physical_data: bool
    ) -> None:
        """Delete a container; raises RemoteError on rejection."""
        ...


@dataclass(frozen=True)
class ContainerDeleteResult:
    """Result of a container delete (or a planned delete in dry-run mode)."""

    full_path: str
    database_name: str
    server: str
    purged: bool
    deleted: bool


class ContainerManager:
    """
    Orchestrates TM container creation, existence checks and deletion.

    The manager holds no remote state; every operation takes the session as
    its first argument and is a blocking request/response cycle. Failures are
    raised immediately with their context, nothing is retried.

    Args:
        server_selector: Policy used by `create_advanced` to pick the target
            database server. Defaults to the first enumerated server, which
            assumes a single-database-server deployment.
    """

    def __init__(self, server_selector: ServerSelector | None = None) -> None:
        self.server_selector = server_selector or FirstServerSelector()

    def list_servers(self, session: TMSession) -> list[DatabaseServerRef]:
        """Return all database servers registered with the TM server."""
        with _remote_call("list_servers"):
            return session.list_database_servers()

    def list_containers(
        self, session: TMSession, server_name: str
    ) -> list[ContainerDescriptor]:
        """Return the containers hosted on a named database server."""
        server = self._resolve_server_or_raise(
            session, server_name, None, operation="list_containers"
        )
        with _remote_call("list_containers", server=server.name):
            return session.list_containers(server)

    def create_simple(
        self,
        session: TMSession,
        server_name: str,
        database_name: str,
        container_name: str,
        *,
        organization_path: str = ROOT_PATH,
        server_properties: Mapping[str, str] | None = None,
    ) -> ContainerDescriptor:
        """
        Create a container on a named database server without extra checks.

        Args:
            session: Valid TM server session.
            server_name: Friendly name of a registered database server.
            database_name: Physical database name (validated remotely).
            container_name: Friendly container name.
            organization_path: Parent organizational path.
            server_properties: Optional connection properties narrowing the
                server lookup.

        Returns:
            The created ContainerDescriptor.

        Raises:
            ValueError: If a name is empty.
            ServerLookupError: If the database server is not registered.
            RemoteCreateError: If the server rejects the create request.
        """
        if not database_name or not database_name.strip():
            raise ValueError("database_name must be a non-empty string.")
        if not container_name or not container_name.strip():
            raise ValueError("container_name must be a non-empty string.")

        server = self._resolve_server_or_raise(
            session, server_name, server_properties, operation="create_simple"
        )
        descriptor = ContainerDescriptor(
            name=container_name,
            database_name=database_name,
            parent_path=organization_path,
            server=server,
        )
        self._create_or_raise(session, descriptor, operation="create_simple")
        return descriptor

    def create_advanced(
        self,
        session: TMSession,
        organization_path: str,
        container_name: str,
    ) -> ContainerDescriptor:
        """
        Create a container with availability, duplicate and post-create checks.

        Steps:
          1) enumerate database servers (fail if there are none)
          2) pick one with the configured selector
          3) fail if a container with the same friendly name exists there
          4) create `<name>DB` under the normalized path
          5) re-list the server's containers and confirm the new one is present

        Returns:
            The verified ContainerDescriptor.

        Raises:
            NoServerRegisteredError: No (matching) database server.
            DuplicateContainerError: Friendly name already in use.
            RemoteCreateError: The server rejected the create.
            CreationVerificationError: The container is absent after create.
        """
        if not container_name or not container_name.strip():
            raise ValueError("container_name must be a non-empty string.")
        path = normalize_path(organization_path)
        full_path = full_container_path(path, container_name)
        operation = "create_advanced"

        with _remote_call(operation, path=full_path):
            servers = session.list_database_servers()
        if not servers:
            logger.warning("No database server registered; cannot create %s", full_path)
            raise NoServerRegisteredError(
                "No database server is registered with the TM server.",
                operation=operation,
                path=full_path,
            )

        server = self.server_selector.select(servers)
        if server is None:
            logger.warning("No database server matched the selection policy")
            raise NoServerRegisteredError(
                f"None of the {len(servers)} registered database server(s) "
                "matched the selection policy.",
                operation=operation,
                path=full_path,
            )
        logger.debug("Selected database server %s for %s", server.name, full_path)

        with _remote_call(operation, server=server.name, path=full_path):
            existing = session.list_containers(server)
        if any(c.name == container_name for c in existing):
            logger.warning("Container %s already exists on %s", container_name, server.name)
            raise DuplicateContainerError(
                f"A container named '{container_name}' already exists.",
                operation=operation,
                server=server.name,
                path=full_path,
            )

        descriptor = ContainerDescriptor(
            name=container_name,
            database_name=f"{container_name}{PHYSICAL_NAME_SUFFIX}",
            parent_path=path,
            server=server,
        )
        self._create_or_raise(session, descriptor, operation=operation)

        with _remote_call(operation, server=server.name, path=full_path):
            created = session.list_containers(server)
        if not any(c.full_path == descriptor.full_path for c in created):
            logger.warning(
                "Container %s missing from %s after create", full_path, server.name
            )
            raise CreationVerificationError(
                "The server accepted the create request but the container is "
                "not registered.",
                operation=operation,
                server=server.name,
                path=full_path,
            )

        logger.info("Created container %s on %s", full_path, server.name)
        return descriptor

    def exists(
        self, session: TMSession, organization_path: str, container_name: str
    ) -> bool:
        """Return True if a container exists at `<organization_path><name>`."""
        full_path = full_container_path(organization_path, container_name)
        with _remote_call("exists", path=full_path):
            return session.resolve_container(full_path) is not None

    def plan_delete(
        self,
        session: TMSession,
        organization_path: str,
        container_name: str,
        purge_physical_data: bool = False,
    ) -> ContainerDeleteResult:
        """
        Resolve a container and describe the delete without performing it.

        Raises:
            ContainerNotFoundError: If no container exists at the resolved path.
        """
        descriptor = self._resolve_container_or_raise(
            session, organization_path, container_name, operation="plan_delete"
        )
        return ContainerDeleteResult(
            full_path=descriptor.full_path,
            database_name=descriptor.database_name,
            server=descriptor.server.name,
            purged=purge_physical_data,
            deleted=False,
        )

    def delete(
        self,
        session: TMSession,
        organization_path: str,
        container_name: str,
        purge_physical_data: bool = False,
    ) -> ContainerDeleteResult:
        """
        Delete a container by its fully qualified path.

        With `purge_physical_data=False` (the default) the container is only
        unregistered and its physical database survives, so it can be
        re-registered later. With `purge_physical_data=True` the physical
        database is dropped, which is irreversible.

        Raises:
            ContainerNotFoundError: If no container exists at the resolved path.
        """
        descriptor = self._resolve_container_or_raise(
            session, organization_path, container_name, operation="delete"
        )
        logger.info(
            "Deleting container %s (purge_physical_data=%s)",
            descriptor.full_path,
            purge_physical_data,
        )
        with _remote_call(
            "delete", server=descriptor.server.name, path=descriptor.full_path
        ):
            session.delete_container(descriptor, purge_physical_data)
        return ContainerDeleteResult(
            full_path=descriptor.full_path,
            database_name=descriptor.database_name,
            server=descriptor.server.name,
            purged=purge_physical_data,
            deleted=True,
        )

    def _resolve_server_or_raise(
        self,
        session: TMSession,
        server_name: str,
        properties: Mapping[str, str] | None,
        *,
        operation: str,
    ) -> DatabaseServerRef:
        """Resolve a database server by name or raise ServerLookupError."""
        with _remote_call(operation, server=server_name):
            server = session.resolve_database_server(server_name, properties)
        if server is None:
            logger.warning("Database server %s is not registered", server_name)
            raise ServerLookupError(
                f"Database server '{server_name}' is not registered.",
                operation=operation,
                server=server_name,
            )
        return server

    def _resolve_container_or_raise(
        self,
        session: TMSession,
        organization_path: str,
        container_name: str,
        *,
        operation: str,
    ) -> ContainerDescriptor:
        """Resolve a container by its full path or raise ContainerNotFoundError."""
        full_path = full_container_path(organization_path, container_name)
        with _remote_call(operation, path=full_path):
            descriptor = session.resolve_container(full_path)
        if descriptor is None:
            logger.warning("Container %s not found", full_path)
            raise ContainerNotFoundError(
                f"No container exists at '{full_path}'.",
                operation=operation,
                path=full_path,
            )
        return descriptor

    def _create_or_raise(
        self,
        session: TMSession,
        descriptor: ContainerDescriptor,
        *,
        operation: str,
    ) -> None:
        """Issue the remote create, converting rejections into RemoteCreateError."""
        logger.debug(
            "Creating container %s (database %s) on %s",
            descriptor.full_path,
            descriptor.database_name,
            descriptor.server.name,
        )
        try:
            session.create_container(descriptor)
        except RemoteError as exc:
            logger.warning("Create of %s rejected: %s", descriptor.full_path, exc.message)
            raise RemoteCreateError(
                f"The server rejected the create request: {exc.message}",
                operation=operation,
                server=descriptor.server.name,
                path=descriptor.full_path,
            ) from exc
        except TMOpsError as exc:
            logger.warning("Create of %s failed: %s", descriptor.full_path, exc.message)
            raise _with_context(
                exc,
                operation=operation,
                server=descriptor.server.name,
                path=descriptor.full_path,
            ) from exc
