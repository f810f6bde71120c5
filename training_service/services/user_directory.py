import structlog
from pydantic import ValidationError

from ..config import settings
from ..exceptions import UpstreamServiceError
from ..http_client import ServiceClient
from ..schemas.assignment import DirectoryUser

logger = structlog.get_logger(__name__)


class UserDirectory:
    """Read-only client for the accounts service user list."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None, transport=None):
        self.base_url = (base_url or settings.USERS_SERVICE_URL).rstrip("/")
        self.timeout = timeout or settings.USERS_SERVICE_TIMEOUT_SECONDS
        self._transport = transport

    def _client(self) -> ServiceClient:
        return ServiceClient(self.base_url, timeout=self.timeout, transport=self._transport)

    async def list_users(self) -> list[DirectoryUser]:
        async with self._client() as client:
            resp = await client.get("/accounts/users", expected_status=200)
        if not resp.success:
            raise UpstreamServiceError(f"User directory unavailable: {resp.error}")

        payload = resp.data
        if isinstance(payload, dict):
            payload = payload.get("items") or payload.get("users") or []
        try:
            users = [DirectoryUser.model_validate(item) for item in payload or []]
        except ValidationError as exc:
            raise UpstreamServiceError(f"User directory returned malformed users: {exc.error_count()} errors") from exc
        logger.debug("user_directory_listed", count=len(users))
        return users

    async def get_user(self, user_id: int) -> DirectoryUser | None:
        async with self._client() as client:
            resp = await client.get(f"/accounts/users/{user_id}", expected_status=(200, 404), user_id=user_id)
        if resp.status_code == 404:
            return None
        if not resp.success:
            raise UpstreamServiceError(f"User directory unavailable: {resp.error}")
        try:
            return DirectoryUser.model_validate(resp.data)
        except ValidationError as exc:
            raise UpstreamServiceError(f"User directory returned a malformed user id={user_id}") from exc

    async def users_by_id(self) -> dict[int, DirectoryUser]:
        return {user.id: user for user in await self.list_users()}
