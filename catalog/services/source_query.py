
import logging
from datetime import date
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
from sqlalchemy import select, func, or_, asc, desc
from sqlalchemy.ext.asyncio import async_sessionmaker
from catalog.models.content import Source, content_to_dict
from catalog.services.date_filters import build_date_clause

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "postDate": "post_date",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "name": "name",
    "category": "category",
    "id": "id",
}
DEFAULT_SORT_FIELD = "postDate"


@dataclass
class SourceResult:
    source: str
    rows: List[Dict[str, Any]] = field(default_factory=list)
    count: int = 0
    failed: bool = False


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_filters(model, date_clause, q: Optional[str], categories: Optional[Sequence[str]]) -> list:
    conditions = []
    if date_clause is not None:
        conditions.append(date_clause)

    if q:
        pattern = f"%{_escape_like(q)}%"
        conditions.append(or_(
            model.name.ilike(pattern, escape="\\"),
            model.slug.ilike(pattern, escape="\\"),
            model.category.ilike(pattern, escape="\\"),
        ))

    if categories:
        conditions.append(model.category.in_(list(categories)))

    return conditions


def build_order_by(model, sort_by: str, sort_order: str) -> list:
    direction = asc if sort_order == "ASC" else desc
    sort_by = sort_by if sort_by in SORT_FIELDS else DEFAULT_SORT_FIELD
    if sort_by == "postDate":
        # Same key the merge uses: rows without a post date sort by creation time
        column = func.coalesce(model.post_date, model.created_at)
    else:
        column = getattr(model, SORT_FIELDS[sort_by])
    return [direction(column), direction(model.created_at), direction(model.id)]


async def search_source(
    session_maker: async_sessionmaker,
    source: Source,
    date_filter: Optional[str],
    month: Optional[int],
    q: Optional[str],
    categories: Optional[Sequence[str]],
    sort_by: str,
    sort_order: str,
    limit: int,
    offset: int = 0,
    today: Optional[date] = None,
) -> SourceResult:
    """Read one page of matches plus the exact match count from a single source.

    A ``month`` overrides the ``date_filter`` preset. Failures are logged and
    reported as an empty, zero-count result instead of being raised.
    """
    model = source.model
    try:
        conditions = build_filters(model, build_date_clause(model, date_filter, month, today=today), q, categories)

        rows_stmt = (
            select(model)
            .where(*conditions)
            .order_by(*build_order_by(model, sort_by, sort_order))
            .limit(limit)
            .offset(offset)
        )
        count_stmt = select(func.count()).select_from(model).where(*conditions)

        async with session_maker() as session:
            rows = (await session.execute(rows_stmt)).scalars().all()
            count = (await session.execute(count_stmt)).scalar() or 0

        return SourceResult(
            source=source.key,
            rows=[content_to_dict(row, source.content_type) for row in rows],
            count=int(count),
        )
    except Exception as e:
        logger.error(f"Search failed for source {source.key}: {e}", extra={"source": source.key})
        return SourceResult(source=source.key, failed=True)


async def get_by_slug(session_maker: async_sessionmaker, source: Source, slug: str) -> Optional[Dict[str, Any]]:
    model = source.model
    async with session_maker() as session:
        result = await session.execute(select(model).where(model.slug == slug))
        row = result.scalar_one_or_none()

    if row is None:
        return None
    return content_to_dict(row, source.content_type)


async def distinct_categories(session_maker: async_sessionmaker, source: Source) -> List[str]:
    model = source.model
    try:
        async with session_maker() as session:
            result = await session.execute(
                select(model.category).where(model.category.is_not(None)).distinct()
            )
            return [value for value in result.scalars().all() if value]
    except Exception as e:
        logger.error(f"Category lookup failed for source {source.key}: {e}", extra={"source": source.key})
        return []
