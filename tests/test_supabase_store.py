"""Translation of predicates into PostgREST filters."""

from types import SimpleNamespace

import pytest
from postgrest.exceptions import APIError

from catalog.errors import StoreError
from catalog.params import QueryParams
from catalog.predicates import build_predicates
from catalog.supabase_store import (
    SELECT_COLUMNS,
    SupabaseProductStore,
    apply_predicates,
    quote_value,
    render_any_of,
)


class FakeQuery:
    """Records builder calls the way postgrest's request builder chains them."""

    def __init__(self, response=None, error=None):
        self.calls = []
        self.response = response
        self.error = error

    def __getattr__(self, name):
        def record(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return record

    @property
    def not_(self):
        self.calls.append(("not_", (), {}))
        return self

    def execute(self):
        if self.error is not None:
            raise self.error
        return self.response


class FakeClient:
    def __init__(self, query):
        self.query = query
        self.tables = []

    def table(self, name):
        self.tables.append(name)
        return self.query


def test_quote_value():
    """Reserved characters force quoting."""
    assert quote_value("%red%") == "%red%"
    assert quote_value("%light%blue%") == "%light%blue%"
    assert quote_value("%a,b%") == '"%a,b%"'
    assert quote_value('%say "hi"%') == '"%say \\"hi\\"%"'
    assert quote_value("") == '""'


def test_disjunctions_render_as_or_filters():
    """Alternatives render as one or filter."""
    params = QueryParams(search="denim jacket", colors=("light blue",), sale_only=True)
    search, sale, color = build_predicates(params)

    assert render_any_of(search) == 'title.ilike."%denim jacket%",imageModelAlt.ilike."%denim jacket%"'
    assert render_any_of(sale) == (
        'and(redPrice.not.is.null,redPrice.neq.""),and(yellowPrice.not.is.null,yellowPrice.neq."")'
    )
    assert render_any_of(color) == (
        "swatches::text.ilike.%light%blue%,productColor::text.ilike.%light%blue%"
    )


def test_apply_predicates_uses_builder_methods():
    """Plain predicates use builder methods."""
    query = FakeQuery()
    apply_predicates(query, build_predicates(QueryParams(categories=("shoes", "men_jeans"), search="tee")))

    assert query.calls == [
        ("in_", ("category", ["shoes", "men_jeans"]), {}),
        ("or_", ("title.ilike.%tee%,imageModelAlt.ilike.%tee%",), {}),
    ]


def test_fetch_page_applies_sort_and_range():
    """Sort and window reach the query builder."""
    query = FakeQuery(response=SimpleNamespace(data=[{"articleCode": "1"}], count=45))
    client = FakeClient(query)
    page = SupabaseProductStore(client, "hm").fetch_page([], "createdAt", False, 20, 20)

    assert client.tables == ["hm"]
    assert query.calls[0] == ("select", (SELECT_COLUMNS,), {"count": "exact"})
    assert ("order", ("createdAt",), {"desc": True}) in query.calls
    assert ("range", (20, 39), {}) in query.calls
    assert page.total_count == 45
    assert page.records == [{"articleCode": "1"}]


def test_fetch_page_handles_missing_data_and_count():
    """Missing data and count read as empty."""
    query = FakeQuery(response=SimpleNamespace(data=None, count=None))
    page = SupabaseProductStore(FakeClient(query), "hm").fetch_page([], "updatedAt", True, 0, 20)

    assert page.records == []
    assert page.total_count == 0


def test_fetch_page_wraps_api_errors():
    """PostgREST errors surface as StoreError."""
    error = APIError({"message": 'column hm.updatedAt does not exist', "code": "42703"})
    query = FakeQuery(error=error)

    with pytest.raises(StoreError, match="does not exist"):
        SupabaseProductStore(FakeClient(query), "hm").fetch_page([], "updatedAt", False, 0, 20)
