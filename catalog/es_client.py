"""Elasticsearch client factory and product store.

The rest of the code works against the official synchronous client. Predicates
are translated into a ``bool`` query whose clauses all sit in ``filter``
context, since nothing here is scored.

JSON-typed columns (``swatches``, ``productColor``) cannot be pattern-matched
as objects, so documents are expected to carry a keyword copy of their JSON
text under ``<column>Text``.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, List, Sequence

from elastic_transport import TransportError
from elasticsearch import ApiError, Elasticsearch

from .errors import StoreError
from .predicates import (
    OP_ILIKE,
    OP_IN,
    OP_NOT_EMPTY,
    OP_TEXT_ILIKE,
    AnyOf,
    Clause,
    Predicate,
)
from .store import PRODUCT_COLUMNS, StorePage, project_record

logger = logging.getLogger(__name__)

SERIALIZED_SUFFIX = "Text"
_WILDCARD_SPECIALS = {"*", "?", "\\"}


@lru_cache(maxsize=1)
def get_client(host: str) -> Elasticsearch:
    logger.info("Connecting to Elasticsearch at %s", host)
    return Elasticsearch(host)


def keyword_field(field: str) -> str:
    return f"{field}.keyword"


def like_to_wildcard(pattern: str) -> str:
    """Convert a LIKE pattern to Elasticsearch wildcard syntax."""
    converted = []
    chars = iter(pattern)
    for char in chars:
        if char == "\\":
            literal = next(chars, "\\")
            converted.append("\\" + literal if literal in _WILDCARD_SPECIALS else literal)
        elif char == "%":
            converted.append("*")
        elif char == "_":
            converted.append("?")
        elif char in _WILDCARD_SPECIALS:
            converted.append("\\" + char)
        else:
            converted.append(char)
    return "".join(converted)


def _wildcard(field: str, pattern: str) -> dict:
    return {"wildcard": {field: {"value": like_to_wildcard(pattern), "case_insensitive": True}}}


def translate_predicate(predicate: Predicate) -> dict:
    if predicate.op == OP_IN:
        return {"terms": {keyword_field(predicate.field): list(predicate.operand or ())}}
    if predicate.op == OP_ILIKE:
        return _wildcard(keyword_field(predicate.field), str(predicate.operand))
    if predicate.op == OP_TEXT_ILIKE:
        return _wildcard(predicate.field + SERIALIZED_SUFFIX, str(predicate.operand))
    if predicate.op == OP_NOT_EMPTY:
        return {
            "bool": {
                "filter": [{"exists": {"field": predicate.field}}],
                "must_not": [{"term": {keyword_field(predicate.field): ""}}],
            }
        }
    raise StoreError(f"Unsupported predicate operator {predicate.op!r}")


def translate_clause(clause: Clause) -> dict:
    if isinstance(clause, AnyOf):
        return {
            "bool": {
                "should": [translate_predicate(predicate) for predicate in clause.predicates],
                "minimum_should_match": 1,
            }
        }
    return translate_predicate(clause)


def build_search_kwargs(
    predicates: Sequence[Clause],
    sort: str,
    ascending: bool,
    offset: int,
    limit: int,
) -> Dict[str, Any]:
    filters: List[dict] = [translate_clause(clause) for clause in predicates]
    query: dict = {"bool": {"filter": filters}} if filters else {"match_all": {}}
    return {
        "query": query,
        "sort": [{sort: {"order": "asc" if ascending else "desc", "missing": "_last"}}],
        "from_": offset,
        "size": limit,
        "track_total_hits": True,
        "source_includes": list(PRODUCT_COLUMNS),
    }


class ElasticsearchProductStore:
    name = "elasticsearch"

    def __init__(self, es: Elasticsearch, index: str) -> None:
        self.es = es
        self.index = index

    def fetch_page(
        self,
        predicates: Sequence[Clause],
        sort: str,
        ascending: bool,
        offset: int,
        limit: int,
    ) -> StorePage:
        kwargs = build_search_kwargs(predicates, sort, ascending, offset, limit)
        logger.debug("ES query payload=%s", kwargs)
        try:
            response = self.es.search(index=self.index, **kwargs)
        except (ApiError, TransportError) as exc:
            logger.warning("Elasticsearch query on %s failed: %s", self.index, exc)
            raise StoreError(str(exc)) from exc
        hits = response.get("hits", {})
        total = hits.get("total", {})
        total_count = total.get("value", 0) if isinstance(total, dict) else int(total or 0)
        records = [project_record(hit.get("_source", {})) for hit in hits.get("hits", [])]
        return StorePage(records=records, total_count=total_count)

    def ping(self) -> bool:
        try:
            return bool(self.es.ping())
        except TransportError:
            return False
