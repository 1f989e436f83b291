
from fastapi import APIRouter, Query, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import async_sessionmaker
from typing import Optional
from catalog.api.deps import require_api_key
from catalog.core.database import get_session_maker
from catalog.services.codec import encode_payload
from catalog.services.search_service import (
    SearchRequest,
    aggregate,
    debug_echo,
    ERROR_DATABASE_UNAVAILABLE,
    ERROR_INVALID_CONTENT_TYPE,
    ERROR_INVALID_MONTH,
)
from catalog.models.content import select_sources

router = APIRouter(prefix="/universal-search", dependencies=[Depends(require_api_key)])

ERROR_STATUS = {
    ERROR_INVALID_CONTENT_TYPE: 400,
    ERROR_INVALID_MONTH: 400,
    ERROR_DATABASE_UNAVAILABLE: 503,
}


def _flag(value: Optional[str]) -> bool:
    return str(value or "").lower() in ("1", "true", "yes")


@router.get("/search")
async def universal_search_endpoint(
    page: int = Query(default=1, description="Page number, values below 1 become 1"),
    limit: int = Query(default=50, description="Items per page, clamped to 1..100"),
    sort_by: str = Query(default="postDate", alias="sortBy"),
    sort_order: str = Query(default="DESC", alias="sortOrder"),
    q: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None, description="Alias of q"),
    categories: Optional[str] = Query(default=None, description="Comma separated categories"),
    category: Optional[str] = Query(default=None, description="Alias of categories"),
    date_filter: Optional[str] = Query(default=None, alias="dateFilter"),
    month: Optional[int] = Query(default=None, description="1..12, overrides dateFilter"),
    region: Optional[str] = Query(default=None),
    content_type: str = Query(default="all", alias="contentType"),
    raw: Optional[str] = Query(default=None),
    debug: Optional[str] = Query(default=None),
    session_maker: async_sessionmaker = Depends(get_session_maker),
) -> JSONResponse:
    request = SearchRequest.from_params(
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        q=q or search,
        categories=categories or category,
        date_filter=date_filter,
        month=month,
        content_type=content_type,
        region=region,
    )

    result = await aggregate(session_maker, request)

    status_code = 200
    if "error" in result:
        status_code = ERROR_STATUS.get(result["error"], 500)

    if _flag(debug):
        result["query"] = debug_echo(request, select_sources(request.content_type, request.region))
        return JSONResponse(result, status_code=status_code)

    if _flag(raw):
        return JSONResponse(result, status_code=status_code)

    return JSONResponse({"data": encode_payload(result)}, status_code=status_code)
