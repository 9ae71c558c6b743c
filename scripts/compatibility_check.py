#!/usr/bin/env python3
"""Check whether catalog products can be tank mixed."""

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

from fertilizer_engine.ai_model import AIModelConfig, async_analyze_compatibility
from fertilizer_engine.catalog import CatalogHandle
from fertilizer_engine.compatibility import analyze_compatibility
from fertilizer_engine.models import CompatibilityVerdict


def _print_verdict(verdict: CompatibilityVerdict) -> None:
    status = "compatible" if verdict.compatible else "NOT compatible"
    print(f"{', '.join(verdict.products)}: {status} (risk {verdict.risk.value})")
    print(verdict.explanation.strip())
    for title, items in (
        ("Interactions", verdict.chemical_interactions),
        ("Warnings", verdict.warnings),
        ("Recommendations", verdict.recommendations),
        ("Alternatives", verdict.alternative_strategies),
    ):
        if items:
            print(f"{title}:")
            for item in items:
                print(f"  - {item}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Analyze tank-mix compatibility")
    parser.add_argument("products", nargs="+", help="product names from the catalog")
    parser.add_argument("--catalog", type=Path, help="alternate catalog file")
    parser.add_argument("--json", action="store_true", help="print the verdict as JSON")
    parser.add_argument("--ai", action="store_true", help="ask the AI model for the analysis")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))
    catalog = CatalogHandle(args.catalog)

    selected = []
    missing = []
    for name in args.products:
        product = catalog.get(name)
        if product is None:
            missing.append(name)
        else:
            selected.append(product)
    if missing:
        print(f"Unknown products: {', '.join(missing)}", file=sys.stderr)
        return 1

    if args.ai:
        verdict = asyncio.run(
            async_analyze_compatibility(selected, config=AIModelConfig(use_ai=True))
        )
    else:
        verdict = analyze_compatibility(selected)

    if args.json:
        print(json.dumps(verdict.as_dict(), indent=2))
    else:
        _print_verdict(verdict)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
