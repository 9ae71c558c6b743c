#!/usr/bin/env python3
"""List or search bundled datasets and catalog products."""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

# Ensure project root is on the Python path when executed directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fertilizer_engine.catalog import CatalogHandle
from fertilizer_engine.utils import list_dataset_files, load_dataset

CATALOG_FILE = "dataset_catalog.json"


def dataset_descriptions() -> dict[str, str]:
    """Return every dataset file mapped to its description, if documented."""

    described = load_dataset(CATALOG_FILE)
    if not isinstance(described, dict):
        described = {}
    return {name: str(described.get(name, "")) for name in list_dataset_files()}


def search_datasets(term: str) -> dict[str, str]:
    """Return datasets whose name or description contains ``term``."""

    needle = term.casefold()
    return {
        name: desc
        for name, desc in dataset_descriptions().items()
        if needle in name.casefold() or needle in desc.casefold()
    }


def _print_entries(entries: dict[str, str]) -> None:
    for name, desc in entries.items():
        print(f"{name}: {desc}" if desc else name)


def _cmd_list(args: argparse.Namespace) -> None:
    if args.describe:
        _print_entries(dataset_descriptions())
    else:
        for name in list_dataset_files():
            print(name)


def _cmd_search(args: argparse.Namespace) -> None:
    _print_entries(search_datasets(args.term))


def _cmd_products(args: argparse.Namespace) -> None:
    handle = CatalogHandle(args.catalog)
    items = handle.search(args.term) if args.term else handle.products
    for product in items:
        print(f"{product.product_name}: {', '.join(product.nutrients)}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Inspect bundled datasets and the product catalog")
    sub = parser.add_subparsers(dest="command", required=True)

    list_parser = sub.add_parser("list", help="list dataset files in the search paths")
    list_parser.add_argument("--describe", action="store_true", help="include descriptions")
    list_parser.set_defaults(handler=_cmd_list)

    search_parser = sub.add_parser("search", help="match dataset names and descriptions")
    search_parser.add_argument("term")
    search_parser.set_defaults(handler=_cmd_search)

    products_parser = sub.add_parser("products", help="list catalog products and nutrients")
    products_parser.add_argument("term", nargs="?", help="filter by name or nutrient")
    products_parser.add_argument("--catalog", help="catalog file to read instead of the default")
    products_parser.set_defaults(handler=_cmd_products)

    args = parser.parse_args(argv)
    args.handler(args)


if __name__ == "__main__":  # pragma: no cover
    main()
