"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import StoreConfigurationError


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


def _get_optional_env(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    store_backend: str = _get_env("STORE_BACKEND", "supabase").lower()
    supabase_url: Optional[str] = _get_optional_env("SUPABASE_URL")
    supabase_key: Optional[str] = _get_optional_env("SUPABASE_ANON_KEY", "SUPABASE_SERVICE_ROLE_KEY")
    supabase_table: str = _get_env("SUPABASE_TABLE", "hm")
    es_host: str = _get_env("ES_HOST", "http://localhost:9200")
    es_index: str = _get_env("ES_INDEX", "hm")
    memory_store_path: str = _get_env("MEMORY_STORE_PATH", "products.json")
    redis_host: str = _get_env("REDIS_HOST", "localhost")
    redis_port: int = int(_get_env("REDIS_PORT", "6379"))
    cache_ttl_seconds: int = int(_get_env("CACHE_TTL_SECONDS", "300"))
    filter_sample_size: int = int(_get_env("FILTER_SAMPLE_SIZE", "200"))
    product_url_base: str = _get_env("PRODUCT_URL_BASE", "https://www2.hm.com/")
    image_url_base: str = _get_env("IMAGE_URL_BASE", "https://image.hm.com/")
    products_endpoint: str = _get_env("PRODUCTS_ENDPOINT", "http://localhost:8000/api/fashion-products")
    log_level: str = _get_env("LOG_LEVEL", "INFO")

    def supabase_credentials(self) -> Tuple[str, str]:
        """Return ``(url, key)`` or fail with a message naming the missing variables."""

        if not self.supabase_url or not self.supabase_key:
            raise StoreConfigurationError(
                "Supabase credentials are missing. Set SUPABASE_URL and SUPABASE_ANON_KEY "
                "(or SUPABASE_SERVICE_ROLE_KEY) in env."
            )
        return self.supabase_url, self.supabase_key


settings = Settings()
