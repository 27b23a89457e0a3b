"""Exceptions raised by the catalog query pipeline."""
from __future__ import annotations


class CatalogError(Exception):
    """Base class for errors reported to API callers."""


class StoreError(CatalogError):
    """The product store failed to execute a query."""


class StoreConfigurationError(CatalogError):
    """The product store cannot be created with the current settings."""
