"""Normalization of heterogeneous product records into one display model.

Stored variant fields arrive as native lists, as JSON text, as ``null`` or not
at all, depending on which ingestion run wrote the row. Every helper here
degrades to an empty or placeholder value instead of raising.
"""
from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

logger = logging.getLogger(__name__)

PRICE_FIELDS = ("redPrice", "yellowPrice", "regularPrice")
NO_PRICE = "N/A"
UNKNOWN_DATE = "Unknown"
DEFAULT_COLOR_LABEL = "Color"
DEFAULT_TITLE = "Product"
DEFAULT_IMAGE_ALT = "Product thumbnail"

# PostgreSQL trims trailing zeros from fractions and may emit "+00" offsets.
_TIMESTAMP_RE = re.compile(
    r"^(?P<main>\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(?::\d{2})?)"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<offset>[Zz]|[+-]\d{2}(?::?\d{2})?)?$",
    re.ASCII,
)


@dataclass(frozen=True)
class SizeEntry:
    name: str
    stock: Optional[float] = None


@dataclass(frozen=True)
class SwatchEntry:
    hexColor: Optional[str] = None
    colorName: Optional[str] = None


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _as_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def coerce_list(raw: Any) -> List[Any]:
    """Return ``raw`` as a list, decoding JSON text; anything else becomes ``[]``."""
    if not raw:
        return []
    value = raw
    if isinstance(raw, str):
        try:
            value = json.loads(raw)
        except ValueError:
            logger.debug("Discarding undecodable list payload %.60r", raw)
            return []
    return value if isinstance(value, list) else []


def coerce_mapping(raw: Any) -> Dict[str, Any]:
    if not raw:
        return {}
    value = raw
    if isinstance(raw, str):
        try:
            value = json.loads(raw)
        except ValueError:
            return {}
    return value if isinstance(value, dict) else {}


def parse_sizes(raw: Any) -> List[SizeEntry]:
    sizes: List[SizeEntry] = []
    for item in coerce_list(raw):
        if not isinstance(item, dict):
            continue
        label = _as_text(item.get("name"))
        if label is None:
            label = _as_text(item.get("sizeCode"))
        if not label:
            continue
        sizes.append(SizeEntry(name=label, stock=_as_number(item.get("stock"))))
    return sizes


def _swatch_from(item: Any) -> Optional[SwatchEntry]:
    if not isinstance(item, dict):
        return None
    hex_color = _as_text(item.get("hexColor"))
    color_name = _as_text(item.get("colorName"))
    if not hex_color and not color_name:
        return None
    return SwatchEntry(hexColor=hex_color, colorName=color_name)


def parse_swatches(raw: Any) -> List[SwatchEntry]:
    return [swatch for swatch in map(_swatch_from, coerce_list(raw)) if swatch is not None]


def parse_product_color(raw: Any) -> Optional[SwatchEntry]:
    """Single fallback swatch stored in ``productColor``."""
    return _swatch_from(coerce_mapping(raw))


def format_price(record: Mapping[str, Any]) -> str:
    """Pick the best human-readable price, preferring sale prices.

    Falls back to the first entry of ``prices``: its ``formattedPrice`` when
    present, else its numeric ``price`` as ``$X.XX``.
    """
    for name in PRICE_FIELDS:
        value = _as_text(record.get(name))
        if value and value.strip():
            return value.strip()

    prices = coerce_list(record.get("prices"))
    if prices and isinstance(prices[0], dict):
        first = prices[0]
        formatted = _as_text(first.get("formattedPrice"))
        if formatted and formatted.strip():
            return formatted.strip()
        numeric = _as_number(first.get("price"))
        if numeric is not None and math.isfinite(numeric):
            return f"${numeric:.2f}"
    return NO_PRICE


def _canonical_timestamp(text: str) -> str:
    """Rewrite fraction and offset into the shapes every ``fromisoformat`` accepts."""
    match = _TIMESTAMP_RE.match(text)
    if match is None:
        return text
    canonical = match.group("main")
    fraction = match.group("fraction")
    if fraction:
        canonical += "." + fraction[:6].ljust(6, "0")
    offset = match.group("offset")
    if offset in ("Z", "z"):
        canonical += "+00:00"
    elif offset:
        digits = offset[1:].replace(":", "")
        canonical += f"{offset[0]}{digits[:2]}:{digits[2:] or '00'}"
    return canonical


def format_date(value: Any) -> str:
    """Render an ISO timestamp in the local, locale-aware format."""
    if not value:
        return UNKNOWN_DATE
    if not isinstance(value, str):
        return str(value)
    try:
        parsed = datetime.fromisoformat(_canonical_timestamp(value.strip()))
    except ValueError:
        return value
    try:
        return parsed.astimezone().strftime("%x, %X")
    except (OverflowError, OSError, ValueError):
        return value


def format_category_name(value: Optional[str]) -> str:
    """Humanize a slug: ``"ladies_sport_bottoms"`` -> ``"Ladies Sport Bottoms"``."""
    if not value or not isinstance(value, str):
        return ""
    parts = [part[0].upper() + part[1:] if part else "" for part in value.split("_")]
    return " ".join(parts).strip()


def normalize_color_value(swatch: SwatchEntry) -> Optional[str]:
    """Lowercase key used to de-duplicate color options; name wins over hex."""
    name = (swatch.colorName or "").strip().lower()
    if name:
        return name
    hex_color = (swatch.hexColor or "").strip().lower()
    return hex_color or None


def color_label(swatch: SwatchEntry) -> str:
    return swatch.colorName or swatch.hexColor or DEFAULT_COLOR_LABEL


def with_base(base: str, value: Optional[str]) -> Optional[str]:
    """Prefix relative asset paths with ``base``; absolute URLs pass through."""
    if not value or not isinstance(value, str):
        return None
    if value.startswith("http"):
        return value
    return base + value.lstrip("/")


def record_swatches(record: Mapping[str, Any]) -> List[SwatchEntry]:
    """Swatches of a record, falling back to ``productColor`` when there are none."""
    swatches = parse_swatches(record.get("swatches"))
    if not swatches:
        fallback = parse_product_color(record.get("productColor"))
        if fallback is not None:
            swatches.append(fallback)
    return swatches


def color_options(records: Iterable[Mapping[str, Any]]) -> List[dict]:
    options: Dict[str, dict] = {}
    for record in records:
        for swatch in record_swatches(record):
            key = normalize_color_value(swatch)
            if not key or key in options:
                continue
            options[key] = {"value": key, "label": color_label(swatch), "swatch": swatch.hexColor}
    return sorted(options.values(), key=lambda option: option["label"].casefold())


def category_options(records: Iterable[Mapping[str, Any]]) -> List[dict]:
    unique = set()
    for record in records:
        category = _as_text(record.get("category"))
        if category and category.strip():
            unique.add(category.strip())
    options = [{"value": value, "label": format_category_name(value)} for value in unique]
    return sorted(options, key=lambda option: (option["label"].casefold(), option["value"]))


def total_pages(total_count: Optional[int], limit: int) -> Optional[int]:
    if total_count is None or limit < 1:
        return None
    return max(1, math.ceil(total_count / limit))


def clamp_page(requested: Any, pages: Optional[int], current: int = 1) -> int:
    """Clamp a user-entered page number; invalid input keeps ``current``."""
    try:
        value = float(requested)
    except (TypeError, ValueError):
        return current
    if not math.isfinite(value) or value < 1:
        return current
    page = math.floor(value)
    return min(page, pages) if pages else page


@dataclass
class ProductView:
    article_code: str
    title: str
    category: str
    category_label: str
    price: str
    url: Optional[str]
    image_url: Optional[str]
    image_alt: str
    sizes: List[SizeEntry] = field(default_factory=list)
    swatches: List[SwatchEntry] = field(default_factory=list)
    updated: str = UNKNOWN_DATE
    created: str = UNKNOWN_DATE


def to_product_view(
    record: Mapping[str, Any],
    product_url_base: str = "https://www2.hm.com/",
    image_url_base: str = "https://image.hm.com/",
) -> ProductView:
    title = _as_text(record.get("title"))
    model_alt = _as_text(record.get("imageModelAlt"))
    product_alt = _as_text(record.get("imageProductAlt"))
    category = _as_text(record.get("category")) or ""
    primary_image = _as_text(record.get("imageProductSrc")) or _as_text(record.get("imageModelSrc"))
    return ProductView(
        article_code=str(record.get("articleCode") or ""),
        title=title or model_alt or DEFAULT_TITLE,
        category=category,
        category_label=format_category_name(category),
        price=format_price(record),
        url=with_base(product_url_base, _as_text(record.get("pdpUrl"))),
        image_url=with_base(image_url_base, primary_image),
        image_alt=product_alt or model_alt or title or DEFAULT_IMAGE_ALT,
        sizes=parse_sizes(record.get("sizes")),
        swatches=parse_swatches(record.get("swatches")),
        updated=format_date(record.get("updatedAt")),
        created=format_date(record.get("createdAt")),
    )
