"""Terminal client that lists normalized products.

Runs the query pipeline in-process by default; ``--endpoint`` goes through
the HTTP feed instead.
"""
from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Iterable

from catalog.config import settings
from catalog.errors import CatalogError
from catalog.feed_client import FeedResponse, ProductFeedClient
from catalog.normalize import to_product_view, total_pages
from catalog.params import QueryParams, sanitize_params
from catalog.search import search_products
from catalog.store import get_store

GREEN = "\033[92m"
RED = "\033[91m"
RESET = "\033[0m"


def perform_local_query(params: QueryParams) -> FeedResponse:
    try:
        result = search_products(get_store(), params)
    except CatalogError as exc:
        return FeedResponse(error=str(exc))
    return FeedResponse(products=result.products, total_count=result.total_count, page=result.page)


async def perform_remote_query(endpoint: str, params: QueryParams) -> FeedResponse:
    client = ProductFeedClient(endpoint)
    try:
        return await client.fetch(params)
    finally:
        await client.aclose()


def perform_query(params: QueryParams, endpoint: str | None) -> FeedResponse:
    if endpoint:
        return asyncio.run(perform_remote_query(endpoint, params))
    return perform_local_query(params)


def pretty_print_response(params: QueryParams, payload: FeedResponse) -> None:
    if not payload.ok:
        print(f"{RED}Unable to load products.{RESET} {payload.error}")
        return
    if not payload.products:
        print("No products match the selected filters.")
        return
    pages = total_pages(payload.total_count, params.limit)
    page_label = f"{payload.page or params.page}" + (f" of {pages}" if pages else "")
    print(f"{GREEN}Page {page_label}{RESET} | showing {len(payload.products)} of {payload.total_count} rows")
    for idx, record in enumerate(payload.products, start=params.offset + 1):
        view = to_product_view(record, settings.product_url_base, settings.image_url_base)
        colors = ", ".join(swatch.colorName or swatch.hexColor or "" for swatch in view.swatches)
        sizes = " ".join(size.name if size.stock is None else f"{size.name}({size.stock:g})" for size in view.sizes)
        print(f"  {idx:03d}. {view.price:>10} | {view.category_label or '-'} | {view.title}")
        if colors or sizes:
            print(f"       colors: {colors or '-'} | sizes: {sizes or '-'}")
        print(f"       updated: {view.updated} | {view.url or '#'}")


def interactive_shell(base: dict, endpoint: str | None) -> None:
    print("Interactive product listing. Type a search term, or 'exit' to quit.")
    while True:
        try:
            query = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return
        if query.lower() in {"exit", "quit"}:
            return
        params = sanitize_params({**base, "search": query})
        pretty_print_response(params, perform_query(params, endpoint))


def batch_mode(file_path: Path, base: dict, endpoint: str | None) -> None:
    with file_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            query = line.strip()
            if not query:
                continue
            params = sanitize_params({**base, "search": query})
            print(f"Search: {query}")
            pretty_print_response(params, perform_query(params, endpoint))


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="CLI client for the product catalog")
    parser.add_argument("search", nargs="?", help="Search text. If omitted and --interactive is set, starts REPL mode.")
    parser.add_argument("--limit", help="Rows per page (1-200)")
    parser.add_argument("--page", help="Page number")
    parser.add_argument("--sort", help="created_at or updated_at")
    parser.add_argument("--direction", help="asc or desc")
    parser.add_argument("--categories", help="Comma-separated category slugs")
    parser.add_argument("--colors", help="Comma-separated colors")
    parser.add_argument("--sale-only", action="store_true", help="Only products with a red or yellow price")
    parser.add_argument("--endpoint", help="Query this product feed URL instead of the local store")
    parser.add_argument("--batch", type=Path, help="File with search terms to execute line by line")
    parser.add_argument("--interactive", action="store_true", help="Read search terms from the terminal")
    args = parser.parse_args(list(argv) if argv is not None else None)

    base = {
        "limit": args.limit,
        "page": args.page,
        "sort": args.sort,
        "direction": args.direction,
        "categories": args.categories,
        "colors": args.colors,
        "saleOnly": "true" if args.sale_only else None,
    }
    if args.batch:
        batch_mode(args.batch, base, args.endpoint)
        return 0
    if args.interactive:
        interactive_shell(base, args.endpoint)
        return 0
    params = sanitize_params({**base, "search": args.search})
    payload = perform_query(params, args.endpoint)
    pretty_print_response(params, payload)
    return 0 if payload.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
