import httpx
import pytest

from training_service.exceptions import UpstreamServiceError
from training_service.http_client import ServiceClient
from training_service.services.user_directory import UserDirectory


def make_directory(handler) -> UserDirectory:
    return UserDirectory("http://accounts.test", transport=httpx.MockTransport(handler))


async def test_user_directory_reads_accounts_service():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/accounts/users":
            return httpx.Response(200, json={"items": [{"id": 1, "email": "a@example.com", "first_name": "Ann"}]})
        if request.url.path == "/accounts/users/1":
            return httpx.Response(200, json={"id": 1, "email": "a@example.com"})
        return httpx.Response(404, text="not found")

    directory = make_directory(handler)

    users = await directory.list_users()
    assert [(u.id, u.display_name) for u in users] == [(1, "Ann")]
    assert (await directory.get_user(1)).email == "a@example.com"
    assert await directory.get_user(2) is None


async def test_user_directory_failure_is_upstream_error():
    directory = make_directory(lambda request: httpx.Response(503, text="down"))

    with pytest.raises(UpstreamServiceError):
        await directory.list_users()
    with pytest.raises(UpstreamServiceError):
        await directory.get_user(1)


async def test_malformed_users_are_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/accounts/users":
            return httpx.Response(200, json=[{"id": 1}, {"email": "no-id@example.com"}])
        return httpx.Response(200, json={"id": "not a number"})

    directory = make_directory(handler)

    with pytest.raises(UpstreamServiceError):
        await directory.list_users()
    with pytest.raises(UpstreamServiceError):
        await directory.get_user(7)


async def test_service_client_requires_context():
    client = ServiceClient("http://accounts.test")
    with pytest.raises(RuntimeError):
        await client.get("/accounts/users")
