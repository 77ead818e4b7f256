from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Mapping
from urllib.parse import quote

import httpx

from tmops.core.errors import (
    AuthError,
    RemoteCommunicationError,
    RemoteError,
    RemoteTimeoutError,
)
from tmops.core.tm import ContainerDescriptor, DatabaseServerRef
from tmops.utils.logger import get_logger

logger = get_logger(__name__)

_API_PREFIX = "/api/v1"


class TMServerAdapter:
    """Adapter around the TM server management REST API (servers/containers)."""

    def __init__(self, client: httpx.Client) -> None:
        self.client = client

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self.client.close()

    def _request(
        self,
        method: str,
        url: str,
        *,
        operation: str,
        allow_not_found: bool = False,
        **kwargs: Any,
    ) -> httpx.Response | None:
        """Issue one request and map transport/status failures onto the taxonomy."""
        logger.debug("%s %s", method, url)
        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise RemoteTimeoutError(
                f"TM server did not answer in time: {exc}", operation=operation
            ) from exc
        except httpx.TransportError as exc:
            raise RemoteCommunicationError(
                f"TM server unreachable: {exc}", operation=operation
            ) from exc

        if response.status_code in (401, 403):
            raise AuthError(
                "TM server session is not authenticated or has expired "
                f"(HTTP {response.status_code}).",
                operation=operation,
            )
        if response.status_code == 404 and allow_not_found:
            return None
        if response.is_error:
            raise RemoteError(
                _error_message(response),
                status=response.status_code,
                operation=operation,
            )
        return response

    def resolve_database_server(
        self, name: str, properties: Mapping[str, str] | None = None
    ) -> DatabaseServerRef | None:
        """Look up a registered database server by friendly name."""
        response = self._request(
            "GET",
            f"{_API_PREFIX}/database-servers/{quote(name, safe='')}",
            operation="resolve_database_server",
            allow_not_found=True,
        )
        if response is None:
            return None
        payload = _decode(response, dict, operation="resolve_database_server")
        with _payload_errors("resolve_database_server"):
            server = _server_from_payload(payload)
        for key, value in (properties or {}).items():
            if server.properties.get(key) != value:
                return None
        return server

    def list_database_servers(self) -> list[DatabaseServerRef]:
        """List all database servers registered with the TM server."""
        response = self._request(
            "GET",
            f"{_API_PREFIX}/database-servers",
            operation="list_database_servers",
        )
        out: list[DatabaseServerRef] = []
        with _payload_errors("list_database_servers"):
            for item in _decode(response, list, operation="list_database_servers"):
                if not item.get("name"):
                    continue
                out.append(_server_from_payload(item))
        return out

    def list_containers(self, server: DatabaseServerRef) -> list[ContainerDescriptor]:
        """List containers hosted on a database server."""
        response = self._request(
            "GET",
            f"{_API_PREFIX}/database-servers/{quote(server.name, safe='')}/containers",
            operation="list_containers",
        )
        out: list[ContainerDescriptor] = []
        with _payload_errors("list_containers"):
            for item in _decode(response, list, operation="list_containers"):
                if not item.get("name") or not item.get("database_name"):
                    continue
                out.append(_container_from_payload(item, server))
        return out

    def create_container(self, descriptor: ContainerDescriptor) -> None:
        """Create a container (and its physical database when absent)."""
        self._request(
            "POST",
            f"{_API_PREFIX}/containers",
            operation="create_container",
            json={
                "name": descriptor.name,
                "database_name": descriptor.database_name,
                "parent_path": descriptor.parent_path,
                "server": descriptor.server.name,
            },
        )

    def resolve_container(self, full_path: str) -> ContainerDescriptor | None:
        """Look up a container by its fully qualified path."""
        response = self._request(
            "GET",
            f"{_API_PREFIX}/containers",
            operation="resolve_container",
            allow_not_found=True,
            params={"path": full_path},
        )
        if response is None:
            return None
        item = _decode(response, dict, operation="resolve_container")
        with _payload_errors("resolve_container"):
            server = DatabaseServerRef(
                name=str(item["server"]),
                properties=dict(item.get("server_properties") or {}),
            )
            return _container_from_payload(item, server)

    def delete_container(
        self, descriptor: ContainerDescriptor, purge_physical_data: bool
    ) -> None:
        """Delete a container, optionally dropping its physical database."""
        self._request(
            "DELETE",
            f"{_API_PREFIX}/containers",
            operation="delete_container",
            params={
                "path": descriptor.full_path,
                "purge": "true" if purge_physical_data else "false",
            },
        )


def _error_message(response: httpx.Response) -> str:
    """Extract the server's error message from a failed response."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("error")
        if message:
            return str(message)
    text = response.text.strip()
    return text or f"HTTP {response.status_code}"


def _decode(response: httpx.Response, expected: type, *, operation: str) -> Any:
    """Decode a JSON body, requiring a list or object at the top level."""
    try:
        payload = response.json()
    except ValueError as exc:
        raise RemoteError(
            f"TM server returned a body that is not JSON: {exc}",
            status=response.status_code,
            operation=operation,
        ) from exc
    if payload is None and expected is list:
        return []
    if not isinstance(payload, expected):
        kind = "array" if expected is list else "object"
        raise RemoteError(
            f"TM server returned a JSON {type(payload).__name__}, expected an {kind}.",
            status=response.status_code,
            operation=operation,
        )
    return payload


@contextmanager
def _payload_errors(operation: str) -> Iterator[None]:
    """Report missing or mistyped payload fields as RemoteError."""
    try:
        yield
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise RemoteError(
            f"TM server returned a malformed payload: {exc!r}", operation=operation
        ) from exc


def _server_from_payload(item: Mapping[str, Any]) -> DatabaseServerRef:
    return DatabaseServerRef(
        name=str(item["name"]),
        properties={str(k): str(v) for k, v in (item.get("properties") or {}).items()},
    )


def _container_from_payload(
    item: Mapping[str, Any], server: DatabaseServerRef
) -> ContainerDescriptor:
    return ContainerDescriptor(
        name=str(item["name"]),
        database_name=str(item["database_name"]),
        parent_path=str(item.get("parent_path") or ""),
        server=server,
    )
