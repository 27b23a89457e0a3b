"""Sanitizing of raw query-string parameters.

Every parser accepts ``None`` or an arbitrary string and returns a value that
is already inside its documented bounds. Nothing here raises: unparseable
input silently falls back to the default.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

DEFAULT_LIMIT = 20
MAX_LIMIT = 200
DEFAULT_PAGE = 1
MAX_SEARCH_LENGTH = 120
MAX_LIST_ITEMS = 20

SORT_CREATED = "createdAt"
SORT_UPDATED = "updatedAt"
DEFAULT_SORT = SORT_UPDATED
ASCENDING = "asc"
DESCENDING = "desc"

_SORT_ALIASES = {
    "created_at": SORT_CREATED,
    "createdat": SORT_CREATED,
    "updated_at": SORT_UPDATED,
    "updatedat": SORT_UPDATED,
}
# LIKE metacharacters are reserved for pattern building.
_WILDCARD_RE = re.compile(r"[%_]")


def _parse_number(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    text = str(raw).strip()
    # float() also takes digit separators and non-ASCII digits.
    if not text or "_" in text or not text.isascii():
        return None
    try:
        parsed = float(text)
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None


def parse_limit(raw: Optional[str]) -> int:
    parsed = _parse_number(raw)
    if parsed is None:
        return DEFAULT_LIMIT
    return min(max(math.floor(parsed), 1), MAX_LIMIT)


def parse_page(raw: Optional[str]) -> int:
    parsed = _parse_number(raw)
    if parsed is None:
        return DEFAULT_PAGE
    return max(math.floor(parsed), 1)


def parse_sort(raw: Optional[str]) -> str:
    if not raw:
        return DEFAULT_SORT
    return _SORT_ALIASES.get(raw.lower(), DEFAULT_SORT)


def parse_direction(raw: Optional[str]) -> str:
    return ASCENDING if raw is not None and raw.lower() == ASCENDING else DESCENDING


def parse_search(raw: Optional[str]) -> str:
    """Strip wildcard characters, trim and truncate free-text search input."""
    if not raw:
        return ""
    cleaned = _WILDCARD_RE.sub("", raw).strip()
    # Truncation can expose trailing whitespace again.
    return cleaned[:MAX_SEARCH_LENGTH].strip()


def parse_list(raw: Optional[str]) -> Tuple[str, ...]:
    """Split a comma-separated value into at most 20 trimmed, non-empty items."""
    if not raw:
        return ()
    items = [item.strip() for item in raw.split(",")]
    return tuple(item for item in items if item)[:MAX_LIST_ITEMS]


def parse_boolean(raw: Optional[str]) -> bool:
    return raw is not None and raw.lower() == "true"


@dataclass(frozen=True)
class QueryParams:
    limit: int = DEFAULT_LIMIT
    page: int = DEFAULT_PAGE
    sort: str = DEFAULT_SORT
    direction: str = DESCENDING
    search: str = ""
    categories: Tuple[str, ...] = ()
    colors: Tuple[str, ...] = ()
    sale_only: bool = False

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def ascending(self) -> bool:
        return self.direction == ASCENDING

    def to_query(self) -> Dict[str, str]:
        """Render the parameters back into query-string form, omitting empty filters."""

        query = {
            "limit": str(self.limit),
            "page": str(self.page),
            "sort": self.sort,
            "direction": self.direction,
        }
        if self.search:
            query["search"] = self.search
        if self.categories:
            query["categories"] = ",".join(self.categories)
        if self.colors:
            query["colors"] = ",".join(self.colors)
        if self.sale_only:
            query["saleOnly"] = "true"
        return query


def sanitize_params(raw: Mapping[str, Optional[str]]) -> QueryParams:
    """Build :class:`QueryParams` from a mapping of raw query-string values."""

    return QueryParams(
        limit=parse_limit(raw.get("limit")),
        page=parse_page(raw.get("page")),
        sort=parse_sort(raw.get("sort")),
        direction=parse_direction(raw.get("direction")),
        search=parse_search(raw.get("search")),
        categories=parse_list(raw.get("categories")),
        colors=parse_list(raw.get("colors")),
        sale_only=parse_boolean(raw.get("saleOnly")),
    )
