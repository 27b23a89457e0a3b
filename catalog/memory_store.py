"""In-process product store that evaluates predicates in Python.

Used for local development from a JSON dump and as the reference backend in
tests. Matching follows the SQL semantics of the hosted store: NULL never
matches a pattern and LIKE comparisons are case-insensitive.
"""
from __future__ import annotations

import json
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence

from .errors import StoreConfigurationError, StoreError
from .predicates import (
    OP_ILIKE,
    OP_IN,
    OP_NOT_EMPTY,
    OP_TEXT_ILIKE,
    AnyOf,
    Clause,
    Predicate,
)
from .store import StorePage, project_record

logger = logging.getLogger(__name__)


@lru_cache(maxsize=256)
def like_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a LIKE pattern (``%`` any run, ``_`` one character) to a regex.

    A backslash makes the next character literal; a trailing one is literal.
    """

    parts = []
    chars = iter(pattern)
    for char in chars:
        if char == "\\":
            parts.append(re.escape(next(chars, "\\")))
        elif char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def serialize_column(value: Any) -> str | None:
    """Text form of a JSON-typed column, matching a ``::text`` cast."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _ilike(value: Any, pattern: str) -> bool:
    if value is None:
        return False
    return like_to_regex(pattern).fullmatch(str(value)) is not None


def matches_predicate(record: Dict[str, Any], predicate: Predicate) -> bool:
    value = record.get(predicate.field)
    if predicate.op == OP_IN:
        return value is not None and value in (predicate.operand or ())
    if predicate.op == OP_ILIKE:
        return _ilike(value, str(predicate.operand))
    if predicate.op == OP_TEXT_ILIKE:
        return _ilike(serialize_column(value), str(predicate.operand))
    if predicate.op == OP_NOT_EMPTY:
        return value is not None and value != ""
    raise StoreError(f"Unsupported predicate operator {predicate.op!r}")


def matches_clause(record: Dict[str, Any], clause: Clause) -> bool:
    if isinstance(clause, AnyOf):
        return any(matches_predicate(record, predicate) for predicate in clause.predicates)
    return matches_predicate(record, clause)


def matches_all(record: Dict[str, Any], predicates: Sequence[Clause]) -> bool:
    return all(matches_clause(record, clause) for clause in predicates)


class MemoryProductStore:
    name = "memory"

    def __init__(self, records: Iterable[Dict[str, Any]]) -> None:
        self._records: List[Dict[str, Any]] = list(records)

    @classmethod
    def from_file(cls, path: str | Path) -> "MemoryProductStore":
        file_path = Path(path)
        if not file_path.exists():
            raise StoreConfigurationError(f"Product dump {file_path} does not exist. Set MEMORY_STORE_PATH.")
        with file_path.open("r", encoding="utf-8") as fh:
            try:
                records = json.load(fh)
            except json.JSONDecodeError as exc:
                raise StoreConfigurationError(f"Product dump {file_path} is not valid JSON") from exc
        if not isinstance(records, list):
            raise StoreConfigurationError(f"Product dump {file_path} must hold a JSON array of products")
        logger.info("Loaded %s products from %s", len(records), file_path)
        return cls(record for record in records if isinstance(record, dict))

    def fetch_page(
        self,
        predicates: Sequence[Clause],
        sort: str,
        ascending: bool,
        offset: int,
        limit: int,
    ) -> StorePage:
        matched = [record for record in self._records if matches_all(record, predicates)]
        # Records without a sort value go last in both directions; ties keep load order.
        present = [record for record in matched if record.get(sort) is not None]
        missing = [record for record in matched if record.get(sort) is None]
        ordered = sorted(present, key=lambda record: str(record[sort]), reverse=not ascending) + missing
        window = ordered[offset : offset + limit]
        return StorePage(records=[project_record(record) for record in window], total_count=len(matched))

    def ping(self) -> bool:
        return True
