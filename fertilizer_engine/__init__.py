"""Convenient access to fertilizer engine functionality."""

from __future__ import annotations

from . import (application_methods, catalog, compatibility, models,
               nutrient_resolver, product_filter, recommendation, utils)
from .application_methods import (SHOW_ALL, all_application_terms, classify,
                                  list_categories, matches_application)
from .catalog import CatalogHandle, load_catalog
from .compatibility import (CompatibilityMatrix, analyze_compatibility,
                            load_matrix)
from .models import *  # noqa: F401,F403
from .nutrient_resolver import (NutrientResolution, NutrientResolver,
                                get_nutrient_info, list_nutrient_combinations,
                                resolve_query)
from .product_filter import ALL_FORMS, contains_nutrient, filter_products
from .recommendation import RecommendationResult, get_recommendations
from .utils import clear_dataset_cache, load_dataset


def clear_caches() -> None:
    """Reset every cached dataset, vocabulary, category list and matrix."""

    clear_dataset_cache()
    nutrient_resolver.clear_cache()
    application_methods.clear_cache()
    compatibility.clear_cache()


__all__ = sorted(
    set(models.__all__)
    | {
        "SHOW_ALL",
        "ALL_FORMS",
        "CatalogHandle",
        "CompatibilityMatrix",
        "NutrientResolution",
        "NutrientResolver",
        "RecommendationResult",
        "all_application_terms",
        "analyze_compatibility",
        "classify",
        "clear_caches",
        "clear_dataset_cache",
        "contains_nutrient",
        "filter_products",
        "get_nutrient_info",
        "get_recommendations",
        "list_categories",
        "list_nutrient_combinations",
        "load_catalog",
        "load_dataset",
        "load_matrix",
        "matches_application",
        "resolve_query",
    }
)
