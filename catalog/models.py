"""Pydantic models for response payloads."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ProductsResponse(BaseModel):
    products: list[dict[str, Any]] = Field(default_factory=list)
    appliedLimit: int
    sort: str
    direction: str
    page: int
    totalCount: int


class ErrorResponse(BaseModel):
    error: str


class CategoryOption(BaseModel):
    value: str
    label: str


class ColorOption(BaseModel):
    value: str
    label: str
    swatch: str | None = None


class FilterOptionsResponse(BaseModel):
    categories: list[CategoryOption]
    colors: list[ColorOption]


class HealthResponse(BaseModel):
    store: str
    reachable: bool
