"""Query execution on top of a product store."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Dict, List

from .normalize import category_options, color_options
from .params import DESCENDING, SORT_UPDATED, QueryParams
from .predicates import build_predicates
from .store import ProductStore

logger = logging.getLogger(__name__)


@dataclass
class QueryResult:
    products: List[Dict[str, Any]] = field(default_factory=list)
    total_count: int = 0
    limit: int = 0
    page: int = 1
    sort: str = SORT_UPDATED
    direction: str = DESCENDING

    def to_payload(self) -> Dict[str, Any]:
        return {
            "products": self.products,
            "appliedLimit": self.limit,
            "sort": self.sort,
            "direction": self.direction,
            "page": self.page,
            "totalCount": self.total_count,
        }


def search_products(store: ProductStore, params: QueryParams) -> QueryResult:
    """Run one filtered, sorted, paginated query.

    ``total_count`` is the number of records matching the filters, independent
    of the page window. Store failures propagate as :class:`StoreError`.
    """
    t0 = perf_counter()
    predicates = build_predicates(params)
    t1 = perf_counter()
    page = store.fetch_page(
        predicates,
        sort=params.sort,
        ascending=params.ascending,
        offset=params.offset,
        limit=params.limit,
    )
    t2 = perf_counter()

    logger.info(
        "timing: total=%.2fms build=%.2fms store=%.2fms backend=%s page=%s limit=%s sort=%s %s "
        "clauses=%s hits=%s total_count=%s",
        (t2 - t0) * 1000,
        (t1 - t0) * 1000,
        (t2 - t1) * 1000,
        store.name,
        params.page,
        params.limit,
        params.sort,
        params.direction,
        len(predicates),
        len(page.records),
        page.total_count,
    )
    return QueryResult(
        products=page.records,
        total_count=page.total_count,
        limit=params.limit,
        page=params.page,
        sort=params.sort,
        direction=params.direction,
    )


def load_filter_options(store: ProductStore, sample_size: int) -> Dict[str, List[dict]]:
    """Derive category and color options from the most recently updated records."""

    page = store.fetch_page([], sort=SORT_UPDATED, ascending=False, offset=0, limit=sample_size)
    logger.info("Derived filter options from %s of %s products", len(page.records), page.total_count)
    return {
        "categories": category_options(page.records),
        "colors": color_options(page.records),
    }
