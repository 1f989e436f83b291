
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class FilterState(BaseModel):
    """The filter tuple a cached page set was fetched with."""
    search_name: str = ""
    selected_category: str = ""
    selected_month: str = ""
    date_filter: str = "all"


class ContentCache(BaseModel):
    links: List[Dict[str, Any]] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    current_page: int = 1
    total_pages: int = 1
    has_more_content: bool = False
    filters: FilterState = Field(default_factory=FilterState)
    timestamp: float = 0.0


class SearchPage(BaseModel):
    page: int
    per_page: int = Field(alias="perPage")
    total: int
    total_pages: int = Field(alias="totalPages")
    data: List[Dict[str, Any]] = Field(default_factory=list)
    search_time: Optional[int] = Field(default=None, alias="searchTime")
    sources: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = {"populate_by_name": True}
