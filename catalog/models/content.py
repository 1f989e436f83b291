
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Type
from sqlalchemy import Column, String, BigInteger, Integer, DateTime
from sqlalchemy.sql import func
from catalog.core.database import Base
from catalog.models.content_types import CONTENT_TYPES, REGIONS, TIERS, content_type_key


class ContentMixin:
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=True, unique=True)
    category = Column(String(255), nullable=True, index=True)
    post_date = Column(DateTime(timezone=True), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class AsianContent(ContentMixin, Base):
    __tablename__ = "asian_contents"


class WesternContent(ContentMixin, Base):
    __tablename__ = "western_contents"


class BannedContent(ContentMixin, Base):
    __tablename__ = "banned_contents"


class UnknownContent(ContentMixin, Base):
    __tablename__ = "unknown_contents"


class VipAsianContent(ContentMixin, Base):
    __tablename__ = "vip_asian_contents"


class VipWesternContent(ContentMixin, Base):
    __tablename__ = "vip_western_contents"


class VipBannedContent(ContentMixin, Base):
    __tablename__ = "vip_banned_contents"


class VipUnknownContent(ContentMixin, Base):
    __tablename__ = "vip_unknown_contents"


@dataclass(frozen=True)
class Source:
    key: str
    model: Type[ContentMixin]
    region: str
    tier: str

    @property
    def content_type(self) -> str:
        return self.key


MODELS_BY_TIER = {
    ("asian", "free"): AsianContent,
    ("western", "free"): WesternContent,
    ("banned", "free"): BannedContent,
    ("unknown", "free"): UnknownContent,
    ("asian", "vip"): VipAsianContent,
    ("western", "vip"): VipWesternContent,
    ("banned", "vip"): VipBannedContent,
    ("unknown", "vip"): VipUnknownContent,
}

SOURCES: Tuple[Source, ...] = tuple(
    Source(content_type_key(region, tier), MODELS_BY_TIER[(region, tier)], region, tier)
    for tier in TIERS
    for region in REGIONS
)

SOURCE_KEYS = CONTENT_TYPES


def get_source(key: str) -> Optional[Source]:
    for source in SOURCES:
        if source.key == key:
            return source
    return None


def select_sources(content_type: str = "all", region: Optional[str] = None) -> Tuple[Source, ...]:
    """Resolve a contentType/region pair to the sources to query.

    ``all`` selects every source, optionally narrowed to one region across both
    tiers. A specific key selects exactly that source. Unknown keys resolve to
    an empty tuple.
    """
    if content_type == "all":
        if region:
            return tuple(s for s in SOURCES if s.region == region)
        return SOURCES
    return tuple(s for s in SOURCES if s.key == content_type)


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def content_to_dict(row: ContentMixin, content_type: Optional[str] = None) -> Dict[str, Any]:
    data = {
        "id": row.id,
        "name": row.name,
        "slug": row.slug,
        "category": row.category,
        "postDate": _iso(row.post_date),
        "createdAt": _iso(row.created_at),
        "updatedAt": _iso(row.updated_at),
    }
    if content_type:
        data["contentType"] = content_type
    return data
