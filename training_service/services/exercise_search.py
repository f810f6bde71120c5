"""
Paged exercise search for interactive pickers.

``ExerciseSearchBuffer`` keeps the rows loaded so far for the current filter.
A new filter starts over at page 1; ``load_more`` appends the next page of
the same filter only. Each search is tagged with a token and a response that
arrives after a newer search was issued is dropped, so the newest filter
always wins regardless of response order.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from ..config import settings
from ..schemas.exercise import ExerciseFilter, ExercisePage, ExerciseResponse

logger = structlog.get_logger(__name__)

FetchPage = Callable[[ExerciseFilter], Awaitable[ExercisePage]]


class SearchDebouncer:
    """Runs a call only after a quiet period with no newer call."""

    def __init__(self, delay: float | None = None):
        self.delay = settings.SEARCH_DEBOUNCE_SECONDS if delay is None else delay
        self._generation = 0

    async def run(self, func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any | None:
        self._generation += 1
        generation = self._generation
        await asyncio.sleep(self.delay)
        if generation != self._generation:
            # superseded by a later call
            return None
        return await func(*args, **kwargs)


class ExerciseSearchBuffer:
    def __init__(self, fetch_page: FetchPage, page_size: int | None = None, debounce_delay: float | None = None):
        self._fetch_page = fetch_page
        self.page_size = page_size or settings.DEFAULT_PAGE_SIZE
        self.debouncer = SearchDebouncer(debounce_delay)
        self.filters: ExerciseFilter | None = None
        self.items: list[ExerciseResponse] = []
        self.page = 0
        self.total_pages = 0
        self._token = 0

    @property
    def has_more(self) -> bool:
        return self.filters is not None and self.page < self.total_pages

    def _next_token(self) -> int:
        self._token += 1
        return self._token

    async def search(self, search: str | None = None, muscle_groups: list[str] | None = None) -> list[ExerciseResponse]:
        filters = ExerciseFilter(
            search=search,
            muscle_groups=muscle_groups or [],
            page=1,
            page_size=self.page_size,
        )
        token = self._next_token()
        result = await self._fetch_page(filters)
        if token != self._token:
            logger.debug("exercise_search_stale_response_dropped", token=token, current=self._token)
            return self.items

        self.filters = filters
        self.items = list(result.items)
        self.page = 1
        self.total_pages = result.total_pages
        return self.items

    async def debounced_search(
        self, search: str | None = None, muscle_groups: list[str] | None = None
    ) -> list[ExerciseResponse] | None:
        """Search after the quiet period; returns None when a newer call superseded this one."""
        return await self.debouncer.run(self.search, search, muscle_groups)

    async def load_more(self) -> list[ExerciseResponse]:
        if not self.has_more:
            return self.items

        token = self._token
        signature = self.filters.signature()
        next_filters = self.filters.model_copy(update={"page": self.page + 1})
        result = await self._fetch_page(next_filters)

        if token != self._token or self.filters.signature() != signature or self.page != next_filters.page - 1:
            logger.debug("exercise_search_stale_page_dropped", page=next_filters.page)
            return self.items

        self.items.extend(result.items)
        self.page = next_filters.page
        self.total_pages = result.total_pages
        return self.items
