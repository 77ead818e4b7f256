import json

import httpx
import pytest

from tmops.core.adapters.tmserver import TMServerAdapter
from tmops.core.errors import (
    AuthError,
    RemoteCommunicationError,
    RemoteError,
    RemoteTimeoutError,
)
from tmops.core.tm import ContainerDescriptor, DatabaseServerRef

BASE_URL = "https://tm.example.com"


def _adapter(handler) -> TMServerAdapter:
    client = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return TMServerAdapter(client)


def _descriptor() -> ContainerDescriptor:
    return ContainerDescriptor(
        name="ProjectX",
        database_name="ProjectXDB",
        parent_path="acme/",
        server=DatabaseServerRef(name="DB01"),
    )


def test_list_database_servers_skips_nameless_entries():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/database-servers"
        return httpx.Response(
            200,
            json=[
                {"name": "DB01", "properties": {"engine": "mssql", "port": 1433}},
                {"properties": {}},
            ],
        )

    servers = _adapter(handler).list_database_servers()

    assert [s.name for s in servers] == ["DB01"]
    assert servers[0].properties == {"engine": "mssql", "port": "1433"}


def test_resolve_database_server_not_found_returns_none():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.raw_path == b"/api/v1/database-servers/DB%2001"
        return httpx.Response(404, json={"message": "not found"})

    assert _adapter(handler).resolve_database_server("DB 01") is None


def test_resolve_database_server_checks_properties():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"name": "DB01", "properties": {"engine": "mssql"}})

    adapter = _adapter(handler)

    assert adapter.resolve_database_server("DB01", {"engine": "mssql"}).name == "DB01"
    assert adapter.resolve_database_server("DB01", {"engine": "pg"}) is None


def test_list_containers_binds_descriptors_to_server():
    server = DatabaseServerRef(name="DB01")

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/database-servers/DB01/containers"
        return httpx.Response(
            200,
            json=[
                {"name": "ProjectX", "database_name": "ProjectXDB", "parent_path": "acme"},
                {"name": "Broken"},
            ],
        )

    containers = _adapter(handler).list_containers(server)

    assert len(containers) == 1
    assert containers[0].full_path == "acme/ProjectX"
    assert containers[0].server == server


def test_create_container_posts_descriptor():
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/api/v1/containers"
        seen.append(json.loads(request.content))
        return httpx.Response(201)

    _adapter(handler).create_container(_descriptor())

    assert seen == [
        {
            "name": "ProjectX",
            "database_name": "ProjectXDB",
            "parent_path": "acme/",
            "server": "DB01",
        }
    ]


def test_create_container_rejection_maps_to_remote_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"message": "Invalid database name"})

    with pytest.raises(RemoteError, match="Invalid database name") as excinfo:
        _adapter(handler).create_container(_descriptor())

    assert excinfo.value.status == 400
    assert excinfo.value.operation == "create_container"


def test_resolve_container_uses_full_path_query():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["path"] == "acme/ProjectX"
        return httpx.Response(
            200,
            json={
                "name": "ProjectX",
                "database_name": "ProjectXDB",
                "parent_path": "acme/",
                "server": "DB01",
            },
        )

    descriptor = _adapter(handler).resolve_container("acme/ProjectX")

    assert descriptor == _descriptor()


def test_resolve_container_not_found_returns_none():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    assert _adapter(handler).resolve_container("acme/Missing") is None


@pytest.mark.parametrize(("purge", "expected"), [(True, "true"), (False, "false")])
def test_delete_container_sends_purge_flag(purge: bool, expected: str):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "DELETE"
        assert request.url.params["path"] == "acme/ProjectX"
        assert request.url.params["purge"] == expected
        return httpx.Response(204)

    _adapter(handler).delete_container(_descriptor(), purge_physical_data=purge)


@pytest.mark.parametrize("status", [401, 403])
def test_unauthenticated_session_maps_to_auth_error(status: int):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status)

    with pytest.raises(AuthError):
        _adapter(handler).list_database_servers()


def test_server_error_uses_response_text():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="registry unavailable")

    with pytest.raises(RemoteError, match="registry unavailable"):
        _adapter(handler).list_database_servers()


def test_timeout_maps_to_remote_timeout_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(RemoteTimeoutError):
        _adapter(handler).list_database_servers()


def test_connect_error_maps_to_remote_communication_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RemoteCommunicationError) as excinfo:
        _adapter(handler).list_database_servers()

    assert not isinstance(excinfo.value, RemoteTimeoutError)


def test_non_json_success_body_maps_to_remote_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(RemoteError, match="not JSON") as excinfo:
        _adapter(handler).list_database_servers()

    assert excinfo.value.operation == "list_database_servers"
    assert excinfo.value.status == 200


def test_object_instead_of_list_maps_to_remote_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"items": []})

    with pytest.raises(RemoteError, match="expected an array") as excinfo:
        _adapter(handler).list_containers(DatabaseServerRef(name="DB01"))

    assert excinfo.value.operation == "list_containers"


def test_resolve_container_without_server_field_maps_to_remote_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"name": "ProjectX", "database_name": "ProjectXDB", "parent_path": "acme/"},
        )

    with pytest.raises(RemoteError, match="malformed") as excinfo:
        _adapter(handler).resolve_container("acme/ProjectX")

    assert excinfo.value.operation == "resolve_container"
    assert isinstance(excinfo.value.__cause__, KeyError)


def test_list_item_that_is_not_an_object_maps_to_remote_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=["DB01"])

    with pytest.raises(RemoteError, match="malformed"):
        _adapter(handler).list_database_servers()
