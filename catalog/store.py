"""Product store protocol and the process-wide store factory.

Backends receive the predicate list from :mod:`catalog.predicates` and are
responsible for translating it into their own query dialect. The store is
created lazily on first use and reused for the life of the process; a
configuration error is raised again on every call until it is fixed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Protocol, Sequence

from .config import Settings, settings
from .errors import StoreConfigurationError
from .predicates import Clause

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = (
    "articleCode",
    "pdpUrl",
    "title",
    "category",
    "regularPrice",
    "redPrice",
    "yellowPrice",
    "imageProductAlt",
    "imageProductSrc",
    "imageModelAlt",
    "imageModelSrc",
    "swatches",
    "galleryImages",
    "videoFallbackImage",
    "productColor",
    "sizes",
    "prices",
    "createdAt",
    "updatedAt",
)


@dataclass
class StorePage:
    records: List[Dict[str, Any]] = field(default_factory=list)
    total_count: int = 0


class ProductStore(Protocol):
    name: str

    def fetch_page(
        self,
        predicates: Sequence[Clause],
        sort: str,
        ascending: bool,
        offset: int,
        limit: int,
    ) -> StorePage: ...

    def ping(self) -> bool: ...


def project_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only the public product columns of a stored record."""
    return {column: record.get(column) for column in PRODUCT_COLUMNS}


def create_store(config: Settings) -> ProductStore:
    backend = config.store_backend
    if backend == "supabase":
        from .supabase_store import SupabaseProductStore

        url, key = config.supabase_credentials()
        return SupabaseProductStore.connect(url, key, config.supabase_table)
    if backend == "elasticsearch":
        from .es_client import ElasticsearchProductStore, get_client

        return ElasticsearchProductStore(get_client(config.es_host), config.es_index)
    if backend == "memory":
        from .memory_store import MemoryProductStore

        return MemoryProductStore.from_file(config.memory_store_path)
    raise StoreConfigurationError(
        f"Unknown STORE_BACKEND {backend!r}. Use one of: supabase, elasticsearch, memory."
    )


@lru_cache(maxsize=1)
def get_store() -> ProductStore:
    store = create_store(settings)
    logger.info("Using %s product store", store.name)
    return store
