#!/usr/bin/env python3
"""Search the fertilizer catalog for products matching a free-text query."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
import sys

# Ensure project root is on the Python path when executed directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fertilizer_engine.ai_model import AIModelConfig, async_get_recommendations
from fertilizer_engine.catalog import CatalogHandle
from fertilizer_engine.recommendation import RecommendationResult, get_recommendations


def _print_result(result: RecommendationResult) -> None:
    print(result.explanation)
    print(f"Nutrients: {', '.join(result.suggested_nutrients) or '-'}")
    for product in result.products:
        form = f" [{product.product_form}]" if product.product_form else ""
        print(f"- {product.product_name}{form}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Find fertilizer products for a query")
    parser.add_argument("query", help="nutrients, crop or need, e.g. 'kelp or calcium'")
    parser.add_argument("--application", help="application method preference")
    parser.add_argument("--organic", action="store_true", help="only organic certified products")
    parser.add_argument("--form", dest="product_form", help="product form such as Liquid")
    parser.add_argument("--catalog", type=Path, help="alternate catalog file")
    parser.add_argument("--json", action="store_true", help="print the result as JSON")
    parser.add_argument("--ai", action="store_true", help="ask the AI model for nutrients")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))
    catalog = CatalogHandle(args.catalog)

    if args.ai:
        config = AIModelConfig(use_ai=True)
        result = asyncio.run(
            async_get_recommendations(
                args.query,
                catalog.products,
                args.application,
                args.organic,
                args.product_form,
                config=config,
            )
        )
    else:
        result = get_recommendations(
            args.query,
            catalog.products,
            application=args.application,
            organic_only=args.organic,
            product_form=args.product_form,
        )

    if args.json:
        print(json.dumps(result.as_dict(), indent=2))
    else:
        _print_result(result)


if __name__ == "__main__":  # pragma: no cover
    main()
