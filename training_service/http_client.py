"""
Service HTTP client with safe JSON parsing and structured logging.

Usage:
    async with ServiceClient(base_url, timeout=5.0) as client:
        resp = await client.get("/accounts/users", expected_status=200)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

logger = structlog.get_logger(__name__)


@dataclass
class ServiceResponse:
    """Result of a service call with parsed JSON or error info."""

    success: bool
    data: Any = None
    status_code: int | None = None
    error: str | None = None
    headers: dict[str, str] = field(default_factory=dict)


class ServiceClient:
    def __init__(
        self,
        base_url: str = "",
        timeout: float | httpx.Timeout = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(timeout) if isinstance(timeout, int | float) else timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> ServiceClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        expected_status: int | tuple[int, ...] = 200,
        **log_context: Any,
    ) -> ServiceResponse:
        """Perform GET request and parse JSON response."""
        if isinstance(expected_status, int):
            expected_status = (expected_status,)

        if self._client is None:
            raise RuntimeError("ServiceClient must be entered with async with before use")

        try:
            response = await self._client.get(path, headers=headers, params=params)
        except httpx.HTTPError as exc:
            logger.error("http_request_failed", path=path, error=str(exc), **log_context)
            return ServiceResponse(success=False, error=str(exc))

        if response.status_code not in expected_status:
            logger.warning(
                "unexpected_status_code",
                path=path,
                status_code=response.status_code,
                expected=expected_status,
                body_preview=response.text[:500] if response.text else "",
                **log_context,
            )
            return ServiceResponse(
                success=False,
                status_code=response.status_code,
                error=f"Unexpected status {response.status_code}",
            )

        try:
            data = response.json()
        except ValueError:
            logger.error(
                "json_parse_failed",
                path=path,
                status_code=response.status_code,
                body_preview=response.text[:500] if response.text else "",
                **log_context,
            )
            return ServiceResponse(success=False, status_code=response.status_code, error="JSON parse failed")

        return ServiceResponse(
            success=True,
            data=data,
            status_code=response.status_code,
            headers=dict(response.headers),
        )
