"""Supabase (PostgREST) product store.

Plain predicates map onto the builder's own filter methods. Disjunctions are
rendered into PostgREST's ``or`` filter syntax, where commas, dots, colons and
parentheses are structural and operand values containing them must be quoted.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Sequence

import httpx
from postgrest.exceptions import APIError
from supabase import Client, ClientOptions, create_client

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
from .store import PRODUCT_COLUMNS, StorePage

logger = logging.getLogger(__name__)

SELECT_COLUMNS = ", ".join(PRODUCT_COLUMNS)
_RESERVED_RE = re.compile(r'[,.:()"\\\s]')


def quote_value(value: str) -> str:
    """Quote a PostgREST filter operand when it contains reserved characters."""
    if value and not _RESERVED_RE.search(value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def text_column(field: str) -> str:
    return f"{field}::text"


def render_predicate(predicate: Predicate) -> str:
    """Render one predicate in PostgREST logic-tree syntax."""
    if predicate.op == OP_IN:
        values = ",".join(quote_value(value) for value in predicate.operand or ())
        return f"{predicate.field}.in.({values})"
    if predicate.op == OP_ILIKE:
        return f"{predicate.field}.ilike.{quote_value(str(predicate.operand))}"
    if predicate.op == OP_TEXT_ILIKE:
        return f"{text_column(predicate.field)}.ilike.{quote_value(str(predicate.operand))}"
    if predicate.op == OP_NOT_EMPTY:
        return f'and({predicate.field}.not.is.null,{predicate.field}.neq."")'
    raise StoreError(f"Unsupported predicate operator {predicate.op!r}")


def render_any_of(clause: AnyOf) -> str:
    return ",".join(render_predicate(predicate) for predicate in clause.predicates)


def apply_predicate(query: Any, predicate: Predicate) -> Any:
    if predicate.op == OP_IN:
        return query.in_(predicate.field, list(predicate.operand or ()))
    if predicate.op == OP_ILIKE:
        return query.ilike(predicate.field, str(predicate.operand))
    if predicate.op == OP_TEXT_ILIKE:
        return query.filter(text_column(predicate.field), "ilike", str(predicate.operand))
    if predicate.op == OP_NOT_EMPTY:
        return query.not_.is_(predicate.field, "null").neq(predicate.field, "")
    raise StoreError(f"Unsupported predicate operator {predicate.op!r}")


def apply_predicates(query: Any, predicates: Sequence[Clause]) -> Any:
    for clause in predicates:
        if isinstance(clause, AnyOf):
            query = query.or_(render_any_of(clause))
        else:
            query = apply_predicate(query, clause)
    return query


class SupabaseProductStore:
    name = "supabase"

    def __init__(self, client: Client, table: str) -> None:
        self.client = client
        self.table = table

    @classmethod
    def connect(cls, url: str, key: str, table: str) -> "SupabaseProductStore":
        logger.info("Connecting to Supabase at %s (table %s)", url, table)
        options = ClientOptions(auto_refresh_token=False, persist_session=False)
        return cls(create_client(url, key, options=options), table)

    def fetch_page(
        self,
        predicates: Sequence[Clause],
        sort: str,
        ascending: bool,
        offset: int,
        limit: int,
    ) -> StorePage:
        query = self.client.table(self.table).select(SELECT_COLUMNS, count="exact")
        query = apply_predicates(query, predicates)
        query = query.order(sort, desc=not ascending).range(offset, offset + limit - 1)
        try:
            response = query.execute()
        except (APIError, httpx.HTTPError) as exc:
            message = getattr(exc, "message", None) or str(exc)
            logger.warning("Supabase query on %s failed: %s", self.table, message)
            raise StoreError(message) from exc
        return StorePage(records=list(response.data or []), total_count=response.count or 0)

    def ping(self) -> bool:
        try:
            self.client.table(self.table).select("articleCode").limit(1).execute()
        except (APIError, httpx.HTTPError) as exc:
            logger.warning("Supabase ping failed: %s", exc)
            return False
        return True
