
import asyncio
import enum
import logging
from typing import Any, Dict, List, Optional
from catalog.client.api import SearchAPIClient, SearchAPIError
from catalog.client.models import ContentCache, FilterState, SearchPage
from catalog.client.store import ContentStore
from catalog.core.settings import settings

logger = logging.getLogger(__name__)


class LoaderState(str, enum.Enum):
    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"
    LOADING_MORE = "loading_more"


def merge_categories(existing: List[str], rows: List[Dict[str, Any]]) -> List[str]:
    """Union of facets, keeping first-seen order. Never drops existing values."""
    merged = list(existing)
    seen = set(merged)
    for row in rows:
        category = row.get("category")
        if category and category not in seen:
            seen.add(category)
            merged.append(category)
    return merged


class ContentLoader:
    """Incremental loader for one content type.

    Filter changes are debounced and then either served from the store or
    fetched as page 1. ``load_more`` appends the next page. Every fetch is
    tagged with the filter generation it was started under; a response that
    arrives after the filters moved on is dropped.
    """

    def __init__(
        self,
        content_type: str,
        api: SearchAPIClient,
        store: ContentStore,
        page_size: Optional[int] = None,
        debounce_seconds: Optional[float] = None,
    ):
        self.content_type = content_type
        self.api = api
        self.store = store
        self.page_size = page_size or settings.client_page_size
        self.debounce_seconds = (
            debounce_seconds if debounce_seconds is not None else settings.client_debounce_seconds
        )

        self.filters = FilterState()
        self.state = LoaderState.EMPTY
        self.links: List[Dict[str, Any]] = []
        self.categories: List[str] = []
        self.current_page = 1
        self.total_pages = 1
        self.has_more_content = True
        self.last_error: Optional[str] = None

        self._generation = 0
        self._debounce_task: Optional[asyncio.Task] = None
        self._more_filters: Optional[FilterState] = None

    @property
    def loading(self) -> bool:
        return self.state == LoaderState.LOADING

    @property
    def loading_more(self) -> bool:
        return self.state == LoaderState.LOADING_MORE

    def restore(self) -> bool:
        """Adopt the filter tuple of an existing cache entry, if there is one."""
        cache = self.store.peek(self.content_type)
        if cache is None:
            return False
        self.filters = cache.filters.model_copy()
        return True

    def set_filters(self, **changes: str) -> Optional[asyncio.Task]:
        """Update filters and schedule a debounced refresh.

        Returns the pending debounce task. A later call cancels the previous
        pending task; fetches already in flight are not aborted.
        """
        self.filters = self.filters.model_copy(update=changes)
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = asyncio.get_running_loop().create_task(self._debounced_refresh())
        return self._debounce_task

    async def _debounced_refresh(self) -> None:
        await asyncio.sleep(self.debounce_seconds)
        await self.refresh()

    async def refresh(self) -> bool:
        """Serve the current filters from cache or fetch page 1.

        Returns True when a network fetch was made.
        """
        self.store.evict_if_stale(self.content_type)

        if self.store.is_cache_valid(self.content_type, self.filters):
            if self.state == LoaderState.LOADING_MORE and self._more_filters == self.filters:
                # The pending append extends this same entry
                return False
            # Anything still in flight belongs to other filters now
            self._generation += 1
            self._apply_cache(self.store.peek(self.content_type))
            return False

        self._generation += 1
        generation = self._generation
        filters = self.filters.model_copy()

        self.state = LoaderState.LOADING
        self.has_more_content = True
        self.last_error = None

        try:
            page = await self.api.search(self.content_type, filters, 1, self.page_size)
        except SearchAPIError as e:
            self._fetch_failed(generation, e)
            return True

        if generation != self._generation:
            logger.info(f"Discarding superseded {self.content_type} response (generation {generation})")
            return True

        self._apply_first_page(page, filters)
        return True

    async def load_more(self) -> bool:
        """Fetch and append the next page.

        Returns False without doing anything when not ready, nothing is left
        or another load is already in flight.
        """
        if self.state != LoaderState.READY or not self.has_more_content:
            return False
        if self.current_page >= self.total_pages:
            return False

        self.state = LoaderState.LOADING_MORE
        generation = self._generation
        next_page = self.current_page + 1
        self._more_filters = self.filters.model_copy()

        try:
            page = await self.api.search(self.content_type, self._more_filters, next_page, self.page_size)
        except SearchAPIError as e:
            self._fetch_failed(generation, e)
            return False

        if generation != self._generation:
            logger.info(f"Discarding superseded {self.content_type} page {next_page}")
            return False

        rows = page.data
        self.links = [*self.links, *rows]
        self.categories = merge_categories(self.categories, rows)
        self.current_page = next_page
        self.total_pages = page.total_pages
        self.has_more_content = next_page < page.total_pages and bool(rows)
        self.state = LoaderState.READY

        self.store.append_to_cache(self.content_type, rows, next_page, categories=self.categories)
        return True

    def _apply_cache(self, cache: ContentCache) -> None:
        self.links = list(cache.links)
        self.categories = list(cache.categories)
        self.current_page = cache.current_page
        self.total_pages = cache.total_pages
        self.has_more_content = cache.has_more_content
        self.state = LoaderState.READY

    def _apply_first_page(self, page: SearchPage, filters: FilterState) -> None:
        rows = page.data
        self.links = list(rows)
        self.categories = merge_categories([], rows)
        self.current_page = 1
        self.total_pages = page.total_pages
        self.has_more_content = 1 < page.total_pages and bool(rows)
        self.state = LoaderState.READY

        self.store.set_cache(self.content_type, ContentCache(
            links=list(rows),
            categories=list(self.categories),
            current_page=1,
            total_pages=page.total_pages,
            has_more_content=self.has_more_content,
            filters=filters,
            timestamp=self.store.clock(),
        ))

    def _fetch_failed(self, generation: int, error: SearchAPIError) -> None:
        logger.error(f"Error fetching {self.content_type} content: {error}")
        if generation != self._generation:
            return

        self.last_error = error.message
        cache = self.store.peek(self.content_type)
        if cache is not None:
            self._apply_cache(cache)
            # Stale data from other filters must not be paged further
            if cache.filters != self.filters:
                self.has_more_content = False
        elif self.links:
            self.state = LoaderState.READY
        else:
            self.state = LoaderState.EMPTY
