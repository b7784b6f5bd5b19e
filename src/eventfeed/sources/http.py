"""HTTP event source backed by httpx."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from eventfeed.errors import MalformedResponseError, NetworkError
from eventfeed.schemas import EventsRequest, EventsResponse

logger = logging.getLogger(__name__)


class HttpEventSource:
    """Fetches event pages from ``GET {base_url}{path}``."""

    def __init__(
        self,
        base_url: str,
        *,
        path: str = "/events",
        timeout: float | None = 30.0,
        headers: dict[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._path = path
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers={"Accept": "application/json", **(headers or {})},
            timeout=timeout,
        )

    async def fetch_events(self, request: EventsRequest) -> EventsResponse:
        """Fetch one page and validate the body."""
        body = await self._request(request.to_params())
        try:
            return EventsResponse.model_validate(body)
        except ValidationError as e:
            raise MalformedResponseError(f"Malformed events response: {e}") from e

    async def close(self) -> None:
        """Close the HTTP client if this source created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, params: dict[str, Any]) -> Any:
        """Make a GET request to the events endpoint."""
        try:
            response = await self._client.get(self._path, params=params)
        except httpx.HTTPError as e:
            raise NetworkError(f"Network error: {e}") from e

        if not response.is_success:
            try:
                payload = response.json()
                detail = payload.get("error") or payload.get("message")
            except Exception:
                detail = None
            logger.warning(
                "Events request failed with HTTP %d", response.status_code
            )
            raise NetworkError.from_status(response.status_code, detail)

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError("Events response is not JSON") from e
