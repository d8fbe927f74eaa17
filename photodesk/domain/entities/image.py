from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


class DateRange(str, Enum):
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class SortField(str, Enum):
    CREATED_AT = "createdAt"
    NAME = "name"
    SIZE = "size"
    WIDTH = "width"
    HEIGHT = "height"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class Image:
    id: str
    name: str
    url: str
    width: int
    height: int
    size: int  # bytes
    created_at: datetime
    tags: tuple[str, ...] = ()
    is_processed: bool = False
    download_count: int = 0
    share_count: int = 0
    project_id: str | None = None


@dataclass(frozen=True)
class FilterCriteria:
    search: str = ""
    project_id: str | None = None
    tags: frozenset[str] = field(default_factory=frozenset)
    date_range: DateRange = DateRange.ALL
    sort_by: SortField = SortField.CREATED_AT
    sort_direction: SortDirection = SortDirection.DESC

    def merged(self, **partial) -> FilterCriteria:
        """Return a copy with ``partial`` applied; unknown keys raise TypeError."""
        if "tags" in partial:
            partial["tags"] = frozenset(partial["tags"] or ())
        if "date_range" in partial:
            partial["date_range"] = DateRange(partial["date_range"])
        if "sort_by" in partial:
            partial["sort_by"] = SortField(partial["sort_by"])
        if "sort_direction" in partial:
            partial["sort_direction"] = SortDirection(partial["sort_direction"])
        return replace(self, **partial)

    def to_query(self) -> dict:
        return {
            "search": self.search,
            "projectId": self.project_id,
            "tags": sorted(self.tags),
            "dateRange": self.date_range.value,
            "sortBy": self.sort_by.value,
            "sortDirection": self.sort_direction.value,
        }


@dataclass(frozen=True)
class PageState:
    page: int = 1
    limit: int = 20
    total: int = 0
    pages: int = 0
