from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Mapping

from tmops.core.errors import RemoteError
from tmops.core.tm import ContainerDescriptor, DatabaseServerRef

_PHYSICAL_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,127}$")


@dataclass
class _DatabaseServer:
    ref: DatabaseServerRef
    # physical database names that exist on this host, registered or not
    databases: set[str] = field(default_factory=set)
    containers: dict[str, ContainerDescriptor] = field(default_factory=dict)


class InMemoryTMServer:
    """
    In-process fake of the TM server management API.

    Implements the TMSession interface without any network. It keeps the
    container registry apart from the physical databases so that a
    registry-only delete leaves the database behind for re-registration.

    Fault injection:
      - `silent_create_failure`: create reports success but registers nothing
      - `before_create`: hook called with the descriptor before it is stored
        (simulates a concurrent writer)
      - `fail_with(operation, exc)`: raise `exc` on the next call of `operation`

    A full path is expected to be unique across hosts. If two hosts register
    the same path, `resolve_container` raises a 409 RemoteError instead of
    picking one.
    """

    def __init__(self) -> None:
        self._servers: dict[str, _DatabaseServer] = {}
        self._failures: dict[str, Exception] = {}
        self.silent_create_failure = False
        self.before_create: Callable[[ContainerDescriptor], None] | None = None
        self.calls: list[str] = []

    def register_database_server(
        self, name: str, properties: Mapping[str, str] | None = None
    ) -> DatabaseServerRef:
        """Register a database host (administrator action)."""
        if name in self._servers:
            raise RemoteError(f"Database server '{name}' is already registered.")
        ref = DatabaseServerRef(name=name, properties=dict(properties or {}))
        self._servers[name] = _DatabaseServer(ref=ref)
        return ref

    def physical_databases(self, server_name: str) -> set[str]:
        """Return the physical database names present on a host."""
        return set(self._servers[server_name].databases)

    def fail_with(self, operation: str, exc: Exception) -> None:
        """Raise `exc` on the next call of the named session operation."""
        self._failures[operation] = exc

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        exc = self._failures.pop(operation, None)
        if exc is not None:
            raise exc

    def _server_or_raise(self, name: str) -> _DatabaseServer:
        server = self._servers.get(name)
        if server is None:
            raise RemoteError(f"Database server '{name}' is not registered.", status=404)
        return server

    def resolve_database_server(
        self, name: str, properties: Mapping[str, str] | None = None
    ) -> DatabaseServerRef | None:
        self._enter("resolve_database_server")
        server = self._servers.get(name)
        if server is None:
            return None
        for key, value in (properties or {}).items():
            if server.ref.properties.get(key) != value:
                return None
        return server.ref

    def list_database_servers(self) -> list[DatabaseServerRef]:
        self._enter("list_database_servers")
        return [s.ref for s in self._servers.values()]

    def list_containers(self, server: DatabaseServerRef) -> list[ContainerDescriptor]:
        self._enter("list_containers")
        return list(self._server_or_raise(server.name).containers.values())

    def create_container(self, descriptor: ContainerDescriptor) -> None:
        self._enter("create_container")
        server = self._server_or_raise(descriptor.server.name)

        if not _PHYSICAL_NAME_RE.match(descriptor.database_name):
            raise RemoteError(
                f"Invalid database name '{descriptor.database_name}'.", status=400
            )

        if self.before_create is not None:
            self.before_create(descriptor)

        if descriptor.full_path in server.containers:
            raise RemoteError(
                f"A container already exists at '{descriptor.full_path}'.", status=409
            )
        attached = {c.database_name for c in server.containers.values()}
        if descriptor.database_name in attached:
            raise RemoteError(
                f"Database '{descriptor.database_name}' is used by another container.",
                status=409,
            )

        if self.silent_create_failure:
            return

        # an existing unregistered database is re-attached, not recreated
        server.databases.add(descriptor.database_name)
        server.containers[descriptor.full_path] = ContainerDescriptor(
            name=descriptor.name,
            database_name=descriptor.database_name,
            parent_path=descriptor.parent_path,
            server=server.ref,
        )

    def resolve_container(self, full_path: str) -> ContainerDescriptor | None:
        self._enter("resolve_container")
        matches = [
            s.containers[full_path] for s in self._servers.values() if full_path in s.containers
        ]
        if len(matches) > 1:
            hosts = ", ".join(sorted(d.server.name for d in matches))
            raise RemoteError(
                f"Path '{full_path}' is ambiguous: registered on {hosts}.", status=409
            )
        return matches[0] if matches else None

    def delete_container(
        self, descriptor: ContainerDescriptor, purge_physical_data: bool
    ) -> None:
        self._enter("delete_container")
        server = self._server_or_raise(descriptor.server.name)
        if server.containers.pop(descriptor.full_path, None) is None:
            raise RemoteError(
                f"No container exists at '{descriptor.full_path}'.", status=404
            )
        if purge_physical_data:
            server.databases.discard(descriptor.database_name)
