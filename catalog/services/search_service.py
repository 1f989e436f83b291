import asyncio
import logging
import math
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.ext.asyncio import async_sessionmaker
from catalog.core.database import check_database_health
from catalog.core.settings import settings
from catalog.models.content import Source, select_sources
from catalog.services.date_filters import resolve_date_range, local_today
from catalog.services.source_query import SORT_FIELDS, DEFAULT_SORT_FIELD, search_source

logger = logging.getLogger(__name__)

ERROR_DATABASE_UNAVAILABLE = "DATABASE_UNAVAILABLE"
ERROR_SEARCH_FAILED = "SEARCH_FAILED"
ERROR_INVALID_CONTENT_TYPE = "INVALID_CONTENT_TYPE"
ERROR_INVALID_MONTH = "INVALID_MONTH"


@dataclass
class SearchRequest:
    page: int = 1
    limit: int = 50
    sort_by: str = DEFAULT_SORT_FIELD
    sort_order: str = "DESC"
    q: Optional[str] = None
    categories: Tuple[str, ...] = field(default_factory=tuple)
    date_filter: Optional[str] = None
    month: Optional[int] = None
    content_type: str = "all"
    region: Optional[str] = None

    @classmethod
    def from_params(
        cls,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        q: Optional[str] = None,
        categories: Optional[str] = None,
        date_filter: Optional[str] = None,
        month: Optional[int] = None,
        content_type: Optional[str] = None,
        region: Optional[str] = None,
    ) -> "SearchRequest":
        """Normalize raw query parameters, clamping page and limit into range."""
        page = max(page or 1, 1)
        limit = min(max(limit or settings.search_default_limit, 1), settings.search_max_limit)
        sort_by = sort_by if sort_by in SORT_FIELDS else DEFAULT_SORT_FIELD
        sort_order = "ASC" if str(sort_order or "DESC").upper() == "ASC" else "DESC"
        q = q.strip() if q else None
        parsed_categories = tuple(
            part.strip() for part in (categories or "").split(",") if part.strip()
        )

        return cls(
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
            q=q or None,
            categories=parsed_categories,
            date_filter=date_filter or None,
            month=month or None,
            content_type=(content_type or "all").strip().lower(),
            region=region.strip().lower() if region else None,
        )


def per_source_limit(limit: int, source_count: int) -> int:
    return math.ceil(limit / max(source_count, 1)) + settings.search_overfetch


def total_pages(total: int, limit: int) -> int:
    return max(math.ceil(total / limit), 1)


def _timestamp(value: Optional[str]) -> float:
    if not value:
        return 0.0
    try:
        return datetime.fromisoformat(value).timestamp()
    except ValueError:
        return 0.0


def _numeric_id(value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    return 0 if math.isnan(number) else number


def merge_key(row: Dict[str, Any]) -> Tuple[float, float, float]:
    return (
        _timestamp(row.get("postDate") or row.get("createdAt")),
        _timestamp(row.get("createdAt")),
        _numeric_id(row.get("id")),
    )


def merge_rows(parts: List[List[Dict[str, Any]]], sort_order: str) -> List[Dict[str, Any]]:
    merged = [row for rows in parts for row in rows]
    merged.sort(key=merge_key, reverse=(sort_order == "DESC"))
    return merged


def error_envelope(request: SearchRequest, code: str, message: str, started: float) -> Dict[str, Any]:
    return {
        "page": request.page,
        "perPage": request.limit,
        "total": 0,
        "totalPages": 0,
        "data": [],
        "error": code,
        "message": message,
        "searchTime": _elapsed_ms(started),
    }


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def debug_echo(request: SearchRequest, sources: Tuple[Source, ...], today: Optional[date] = None) -> Dict[str, Any]:
    date_range = None if request.month else resolve_date_range(request.date_filter, today=today)
    return {
        "sortBy": request.sort_by,
        "sortOrder": request.sort_order,
        "q": request.q,
        "categories": list(request.categories),
        "dateFilter": request.date_filter,
        "month": request.month,
        "year": (today or local_today()).year if request.month else None,
        "dateRange": [bound.isoformat() for bound in date_range] if date_range else None,
        "contentType": request.content_type,
        "region": request.region,
        "perSourceLimit": per_source_limit(request.limit, len(sources)),
        "sources": [source.key for source in sources],
    }


async def aggregate(
    session_maker: async_sessionmaker,
    request: SearchRequest,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Fan a search out over the selected sources and merge one page.

    Every source is asked for the same capped number of rows from offset 0
    together with its full match count. ``total`` is the sum of those counts,
    so it is an approximation: deep pages can promise more rows than the capped
    per-source reads actually hold.

    Never raises; failures come back as an envelope carrying ``error``.
    """
    started = time.perf_counter()

    try:
        sources = select_sources(request.content_type, request.region)
        if not sources:
            logger.warning(f"Unknown content type requested: {request.content_type}")
            return error_envelope(
                request, ERROR_INVALID_CONTENT_TYPE,
                f"Unknown content type: {request.content_type}", started,
            )

        if request.month is not None and not 1 <= request.month <= 12:
            return error_envelope(
                request, ERROR_INVALID_MONTH,
                f"Month must be between 1 and 12, got {request.month}", started,
            )

        if not await check_database_health(session_maker):
            return error_envelope(
                request, ERROR_DATABASE_UNAVAILABLE,
                "Database connection is unavailable", started,
            )

        cap = per_source_limit(request.limit, len(sources))
        results = await asyncio.gather(*[
            search_source(
                session_maker,
                source,
                request.date_filter,
                request.month,
                request.q,
                request.categories,
                request.sort_by,
                request.sort_order,
                limit=cap,
                offset=0,
                today=today,
            )
            for source in sources
        ])

        merged = merge_rows([result.rows for result in results], request.sort_order)
        total = sum(result.count for result in results)
        offset = (request.page - 1) * request.limit
        page_rows = merged[offset:offset + request.limit]

        failed = [result.source for result in results if result.failed]
        if failed:
            logger.warning(f"Search degraded, failed sources: {', '.join(failed)}")

        search_time = _elapsed_ms(started)
        logger.info(
            f"Search contentType={request.content_type} page={request.page} "
            f"returned {len(page_rows)}/{total} rows in {search_time}ms"
        )

        return {
            "page": request.page,
            "perPage": request.limit,
            "total": total,
            "totalPages": total_pages(total, request.limit),
            "data": page_rows,
            "searchTime": search_time,
            "sources": [{"source": result.source, "count": result.count} for result in results],
        }
    except Exception as e:
        logger.exception(f"Search failed: {e}")
        return error_envelope(request, ERROR_SEARCH_FAILED, str(e) or "Search failed", started)
