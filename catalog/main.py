"""FastAPI application exposing the product catalog query endpoint."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse

from .options_cache import OptionsCache, get_options_cache
from .config import settings
from .errors import CatalogError
from .models import ErrorResponse, FilterOptionsResponse, HealthResponse, ProductsResponse
from .params import sanitize_params
from .search import load_filter_options, search_products
from .store import ProductStore, get_store

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL = logging.getLevelName(settings.log_level.upper())

# Force a predictable logging setup even when run under uvicorn. ``force=True``
# replaces uvicorn's default handlers.
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT, force=True)
for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "elastic_transport", "httpx"):
    logging.getLogger(name).setLevel(LOG_LEVEL)

logger = logging.getLogger(__name__)
logger.info("Logging configured at %s", settings.log_level.upper())

NO_STORE = {"Cache-Control": "no-store"}
UNEXPECTED_ERROR = "Unexpected error while loading products."
ERROR_RESPONSES = {500: {"model": ErrorResponse}}

app = FastAPI(title="Product Catalog Query Service")


def product_store() -> ProductStore:
    return get_store()


def filter_cache() -> OptionsCache:
    return get_options_cache()


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": str(exc) or UNEXPECTED_ERROR}, headers=NO_STORE)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": UNEXPECTED_ERROR}, headers=NO_STORE)


@app.get("/api/fashion-products", response_model=ProductsResponse, responses=ERROR_RESPONSES)
def fashion_products(
    response: Response,
    limit: Optional[str] = Query(None, description="Rows per page, 1-200"),
    page: Optional[str] = Query(None, description="1-based page number"),
    sort: Optional[str] = Query(None, description="created_at or updated_at"),
    direction: Optional[str] = Query(None, description="asc or desc"),
    search: Optional[str] = Query(None, description="Substring of title or model alt text"),
    categories: Optional[str] = Query(None, description="Comma-separated category slugs"),
    colors: Optional[str] = Query(None, description="Comma-separated color names"),
    sale_only: Optional[str] = Query(None, alias="saleOnly", description="'true' to show sale items only"),
    store: ProductStore = Depends(product_store),
) -> ProductsResponse:
    params = sanitize_params(
        {
            "limit": limit,
            "page": page,
            "sort": sort,
            "direction": direction,
            "search": search,
            "categories": categories,
            "colors": colors,
            "saleOnly": sale_only,
        }
    )
    result = search_products(store, params)
    response.headers.update(NO_STORE)
    return ProductsResponse(**result.to_payload())


@app.get("/api/fashion-products/filters", response_model=FilterOptionsResponse, responses=ERROR_RESPONSES)
def fashion_product_filters(
    store: ProductStore = Depends(product_store),
    cache: OptionsCache = Depends(filter_cache),
) -> FilterOptionsResponse:
    sample_size = settings.filter_sample_size
    cached = cache.load(store.name, sample_size)
    if cached is not None:
        logger.debug("cache_hit filters backend=%s sample=%s", store.name, sample_size)
        return FilterOptionsResponse(**cached)
    options = load_filter_options(store, sample_size)
    cache.save(store.name, sample_size, options, settings.cache_ttl_seconds)
    return FilterOptionsResponse(**options)


@app.get("/health", response_model=HealthResponse)
def health(store: ProductStore = Depends(product_store)) -> HealthResponse:
    return HealthResponse(store=store.name, reachable=store.ping())
