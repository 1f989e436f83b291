
import json
import logging
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional
from pydantic import ValidationError
from catalog.client.models import ContentCache, FilterState
from catalog.core.settings import settings
from catalog.models.content_types import CONTENT_TYPES

logger = logging.getLogger(__name__)


class ContentStore:
    """Per content-type cache of fetched pages.

    Reads are pure: ``peek`` never evicts. Staleness eviction is an explicit
    step (``evict_if_stale``) the caller performs. ``save``/``load`` persist the
    whole store as a JSON snapshot between sessions.
    """

    def __init__(self, ttl: Optional[float] = None, clock: Callable[[], float] = time.time):
        self.ttl = ttl if ttl is not None else settings.client_cache_ttl
        self.clock = clock
        self._caches: Dict[str, Optional[ContentCache]] = {key: None for key in CONTENT_TYPES}

    def _check_key(self, content_type: str) -> None:
        if content_type not in self._caches:
            raise KeyError(f"Unknown content type: {content_type}")

    def peek(self, content_type: str) -> Optional[ContentCache]:
        self._check_key(content_type)
        return self._caches[content_type]

    def is_stale(self, content_type: str) -> bool:
        cache = self.peek(content_type)
        if cache is None:
            return False
        return self.clock() - cache.timestamp > self.ttl

    def evict_if_stale(self, content_type: str) -> bool:
        if not self.is_stale(content_type):
            return False
        logger.info(f"Evicting stale cache for {content_type}")
        self.clear_cache(content_type)
        return True

    def is_cache_valid(self, content_type: str, filters: FilterState) -> bool:
        cache = self.peek(content_type)
        if cache is None or self.is_stale(content_type):
            return False
        return cache.filters == filters

    def set_cache(self, content_type: str, data: ContentCache) -> None:
        self._check_key(content_type)
        self._caches[content_type] = data

    def append_to_cache(
        self,
        content_type: str,
        new_links: List[dict],
        new_page: int,
        categories: Optional[List[str]] = None,
    ) -> None:
        cache = self.peek(content_type)
        if cache is None:
            return

        self._caches[content_type] = cache.model_copy(update={
            "links": [*cache.links, *new_links],
            "categories": categories if categories is not None else cache.categories,
            "current_page": new_page,
            "has_more_content": new_page < cache.total_pages and bool(new_links),
            "timestamp": self.clock(),
        })

    def clear_cache(self, content_type: str) -> None:
        self._check_key(content_type)
        self._caches[content_type] = None

    def clear_all_caches(self) -> None:
        for key in self._caches:
            self._caches[key] = None

    def save(self, path: Path) -> None:
        snapshot = {
            key: cache.model_dump(mode="json") if cache is not None else None
            for key, cache in self._caches.items()
        }
        Path(path).write_text(json.dumps(snapshot, ensure_ascii=False), encoding="utf-8")

    def load(self, path: Path) -> None:
        path = Path(path)
        if not path.exists():
            return

        try:
            snapshot = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Could not read cache snapshot {path}: {e}")
            return

        for key in CONTENT_TYPES:
            value = snapshot.get(key)
            if value is None:
                continue
            try:
                self._caches[key] = ContentCache.model_validate(value)
            except ValidationError as e:
                logger.error(f"Dropping invalid cache entry for {key}: {e}")
