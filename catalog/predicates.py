"""Translation of sanitized parameters into an explicit predicate set.

The builder never produces query-language strings. Each store backend
translates the same structure into its own dialect:

* the top-level list is a conjunction,
* :class:`AnyOf` is a disjunction of plain predicates,
* :class:`Predicate` is one ``field <op> operand`` condition.

``ilike`` and ``text_ilike`` operands are SQL LIKE patterns where ``%``
matches any run of characters. ``text_ilike`` compares against the text
serialization of a JSON-typed column rather than a scalar value.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from .params import QueryParams

OP_IN = "in"
OP_ILIKE = "ilike"
OP_TEXT_ILIKE = "text_ilike"
OP_NOT_EMPTY = "not_empty"

SEARCH_FIELDS = ("title", "imageModelAlt")
SALE_FIELDS = ("redPrice", "yellowPrice")
COLOR_FIELDS = ("swatches", "productColor")

_WILDCARD_RE = re.compile(r"[%_]")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class Predicate:
    field: str
    op: str
    operand: Union[str, Tuple[str, ...], None] = None


@dataclass(frozen=True)
class AnyOf:
    predicates: Tuple[Predicate, ...]


Clause = Union[Predicate, AnyOf]


def escape_like(text: str) -> str:
    """Escape the LIKE escape character so user text matches literally."""
    return text.replace("\\", "\\\\")


def contains_pattern(text: str) -> str:
    return f"%{escape_like(text)}%"


def color_pattern(token: str) -> Optional[str]:
    """Turn a color token into a substring pattern, or ``None`` when nothing is left.

    Whitespace runs become ``%`` so that ``"light blue"`` also matches
    ``"Light Blue"`` split across JSON tokens.
    """
    words = _WHITESPACE_RE.split(_WILDCARD_RE.sub("", token).strip())
    if words == [""]:
        return None
    return "%" + "%".join(escape_like(word) for word in words) + "%"


def category_clause(categories: Tuple[str, ...]) -> Optional[Clause]:
    if not categories:
        return None
    return Predicate("category", OP_IN, tuple(categories))


def search_clause(search: str) -> Optional[Clause]:
    if not search:
        return None
    pattern = contains_pattern(search)
    return AnyOf(tuple(Predicate(field, OP_ILIKE, pattern) for field in SEARCH_FIELDS))


def sale_clause(sale_only: bool) -> Optional[Clause]:
    if not sale_only:
        return None
    return AnyOf(tuple(Predicate(field, OP_NOT_EMPTY) for field in SALE_FIELDS))


def color_clause(colors: Tuple[str, ...]) -> Optional[Clause]:
    predicates: List[Predicate] = []
    for token in colors:
        pattern = color_pattern(token)
        if pattern is None:
            continue
        predicates.extend(Predicate(field, OP_TEXT_ILIKE, pattern) for field in COLOR_FIELDS)
    if not predicates:
        return None
    return AnyOf(tuple(predicates))


def build_predicates(params: QueryParams) -> List[Clause]:
    """Return the conjunctive clause list for ``params``; empty dimensions add nothing."""

    clauses = [
        category_clause(params.categories),
        search_clause(params.search),
        sale_clause(params.sale_only),
        color_clause(params.colors),
    ]
    return [clause for clause in clauses if clause is not None]
