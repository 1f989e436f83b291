
import asyncio
import logging
from typing import Any, Dict, List
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import async_sessionmaker
from catalog.api.deps import require_api_key
from catalog.core.database import get_session_maker
from catalog.core.redis import cache_get, cache_set, cache_delete
from catalog.core.settings import settings
from catalog.models.content import SOURCES, SOURCE_KEYS, get_source
from catalog.services.codec import encode_payload
from catalog.services.source_query import get_by_slug, distinct_categories

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_api_key)])

FILTER_OPTIONS_CACHE_KEY = "filter_options:categories"


@router.get("/content/{content_type}/{slug}")
async def get_content_by_slug(
    content_type: str,
    slug: str,
    session_maker: async_sessionmaker = Depends(get_session_maker),
) -> JSONResponse:
    source = get_source(content_type)
    if source is None:
        return JSONResponse(
            {"error": "INVALID_CONTENT_TYPE", "message": f"Unknown content type: {content_type}"},
            status_code=400,
        )

    try:
        item = await get_by_slug(session_maker, source, slug)
    except Exception as e:
        logger.exception(f"Slug lookup failed for {content_type}/{slug}: {e}")
        return JSONResponse({"error": "SEARCH_FAILED", "message": str(e)}, status_code=500)

    if item is None:
        return JSONResponse(
            {"error": "NOT_FOUND", "message": f"No {content_type} content with slug {slug}"},
            status_code=404,
        )

    return JSONResponse({"data": encode_payload(item)})


@router.get("/filter-options")
async def get_filter_options(
    session_maker: async_sessionmaker = Depends(get_session_maker),
) -> Dict[str, Any]:
    cached = await cache_get(FILTER_OPTIONS_CACHE_KEY)
    if cached:
        if not cached.get("categories"):
            logger.warning("Cache has empty filter options, deleting cache")
            await cache_delete(FILTER_OPTIONS_CACHE_KEY)
        else:
            logger.info("Returning filter options from cache")
            return cached

    per_source: List[List[str]] = await asyncio.gather(
        *[distinct_categories(session_maker, source) for source in SOURCES]
    )
    categories = sorted({category for values in per_source for category in values})

    result = {
        "categories": categories,
        "contentTypes": list(SOURCE_KEYS),
    }
    if categories:
        await cache_set(FILTER_OPTIONS_CACHE_KEY, result, ttl=settings.filter_options_ttl)

    return result
