"""Pydantic models for the event source wire format.

``Event`` mirrors a single item of ``GET /events``; ``EventsRequest`` holds
the query parameters the pipeline sends and ``EventsResponse`` the body it
expects back. Field aliases carry the camelCase names used on the wire.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from eventfeed.errors import QueryValidationError
from eventfeed.types import Order, QueryDescriptor, SortBy

MAX_SEARCH_LENGTH = 200
MAX_PAGE_SIZE = 100


class Event(BaseModel):
    """An event as returned by the source. Equal to another event with the same id."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: int
    slug: str
    name: str
    date: datetime
    price: float = Field(0, ge=0)
    location: str = ""
    organizer: str = Field("", alias="organizerName")
    city: str | None = None
    city_slug: str | None = Field(None, alias="citySlug")
    image_url: str | None = Field(None, alias="imageUrl")
    description: str | None = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Event):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class EventsRequest(BaseModel):
    """Query parameters for one page request."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    search: str = Field("", max_length=MAX_SEARCH_LENGTH)
    sort_by: SortBy = Field(SortBy.DATE, alias="sortBy")
    order: Order = Order.ASC
    cursor: str | None = None
    limit: int = Field(18, ge=1, le=MAX_PAGE_SIZE)

    @classmethod
    def build(
        cls, key: QueryDescriptor, *, cursor: str | None = None, limit: int = 18
    ) -> EventsRequest:
        """Build a request for ``key``, raising QueryValidationError if invalid."""
        try:
            return cls(
                search=key.search,
                sort_by=key.sort_by,
                order=key.order,
                cursor=cursor,
                limit=limit,
            )
        except ValidationError as e:
            raise QueryValidationError(f"Invalid events request: {e}") from e

    def to_params(self) -> dict[str, Any]:
        """Render the query string mapping using wire names."""
        params: dict[str, Any] = {
            "sortBy": self.sort_by.value,
            "order": self.order.value,
            "limit": self.limit,
        }
        if self.search:
            params["search"] = self.search
        if self.cursor is not None:
            params["cursor"] = self.cursor
        return params


class EventsResponse(BaseModel):
    """Body of a successful ``GET /events`` response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    data: list[Event]
    next_cursor: str | None = Field(None, alias="nextCursor")
    has_more: bool = Field(False, alias="hasMore")
    total_count: int | None = Field(None, alias="totalCount", ge=0)


__all__ = ["Event", "EventsRequest", "EventsResponse"]
