"""Search pipeline turning a free-text query into matching catalog products."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable

from .models import Combinator, Product, TokenGroups
from .nutrient_resolver import NutrientResolution, resolve_query
from .product_filter import filter_products

_LOGGER = logging.getLogger(__name__)

__all__ = ["RecommendationResult", "build_result", "get_recommendations"]


@dataclass(slots=True)
class RecommendationResult:
    """Products found for one query together with how they were selected.

    ``is_fallback`` is ``True`` whenever the deterministic keyword resolver
    produced the nutrient groups rather than the AI collaborator.
    """

    products: list[Product] = field(default_factory=list)
    explanation: str = ""
    suggested_nutrients: list[str] = field(default_factory=list)
    groups: TokenGroups = ()
    combinator: Combinator = Combinator.ALL
    is_fallback: bool = True
    application_preference: str | None = None

    @property
    def product_names(self) -> list[str]:
        return [p.product_name for p in self.products]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "products": [p.as_dict() for p in self.products],
            "explanation": self.explanation,
            "suggested_nutrients": list(self.suggested_nutrients),
            "groups": [list(g) for g in self.groups],
            "combinator": self.combinator.value,
            "is_fallback": self.is_fallback,
            "application_preference": self.application_preference,
        }


def build_result(
    query: str,
    resolution: NutrientResolution,
    products: Iterable[Product],
    *,
    application: str | None = None,
    organic_only: bool = False,
    product_form: str | None = None,
    explanation: str | None = None,
    is_fallback: bool = True,
) -> RecommendationResult:
    """Filter ``products`` by ``resolution`` and wrap them in a result."""

    found = filter_products(
        products,
        resolution.groups,
        resolution.combinator,
        application=application,
        organic_only=organic_only,
        product_form=product_form,
    )
    if explanation is None:
        explanation = (
            f'Based on your search for "{query}", we found {len(found)} products '
            "containing the requested nutrients."
        )
    return RecommendationResult(
        products=found,
        explanation=explanation,
        suggested_nutrients=resolution.tokens,
        groups=resolution.groups,
        combinator=resolution.combinator,
        is_fallback=is_fallback,
        application_preference=application,
    )


def get_recommendations(
    query: str,
    products: Iterable[Product],
    application: str | None = None,
    organic_only: bool = False,
    product_form: str | None = None,
) -> RecommendationResult:
    """Return products matching ``query`` using the keyword resolver."""

    resolution = resolve_query(query)
    result = build_result(
        query,
        resolution,
        products,
        application=application,
        organic_only=organic_only,
        product_form=product_form,
    )
    _LOGGER.info(
        "Search %r matched %d products for %s",
        query,
        len(result.products),
        result.suggested_nutrients,
    )
    return result
