"""Select catalog products whose composition satisfies resolved nutrient groups."""

from __future__ import annotations

import json
import logging
from typing import Iterable, Sequence

from .application_methods import SHOW_ALL, matches_application
from .models import Combinator, Product, TokenGroups
from .utils import whole_word_pattern

_LOGGER = logging.getLogger(__name__)

ALL_FORMS = "All Forms"

__all__ = [
    "ALL_FORMS",
    "contains_nutrient",
    "group_satisfied",
    "matches_groups",
    "filter_products",
]


def _surfaces(product: Product) -> Iterable[str]:
    yield from product.nutrients
    yield product.product_name
    yield product.description
    yield from product.benefits
    if product.analysis:
        yield json.dumps(dict(product.analysis), ensure_ascii=False)


def contains_nutrient(product: Product, token: str) -> bool:
    """Return ``True`` if ``token`` occurs as a whole word anywhere on ``product``.

    The nutrient list, name, description, benefits and the serialized
    analysis mapping are all searched. ``"S"`` therefore matches
    ``"S (sulfate)"`` but not ``"Silicon"``.
    """

    pattern = whole_word_pattern(token)
    return any(text and pattern.search(text) for text in _surfaces(product))


def group_satisfied(product: Product, group: Sequence[str]) -> bool:
    return any(contains_nutrient(product, token) for token in group)


def matches_groups(product: Product, groups: TokenGroups, combinator: Combinator) -> bool:
    """Return whether ``product`` satisfies ``groups`` under ``combinator``.

    No groups at all means no nutrient preference and matches every product.
    """

    if not groups:
        return True
    if combinator is Combinator.ANY:
        return any(group_satisfied(product, group) for group in groups)
    return all(group_satisfied(product, group) for group in groups)


def filter_products(
    products: Iterable[Product],
    groups: TokenGroups,
    combinator: Combinator = Combinator.ALL,
    *,
    application: str | None = None,
    organic_only: bool = False,
    product_form: str | None = None,
) -> list[Product]:
    """Return ``products`` matching the nutrient groups and optional filters.

    Catalog order is preserved. ``application`` is matched permissively (see
    :func:`matches_application`), ``product_form`` must equal the product's
    declared form unless it is ``None`` or ``"All Forms"``.
    """

    result: list[Product] = []
    for product in products:
        if not matches_groups(product, groups, combinator):
            continue
        if application and application != SHOW_ALL:
            if not matches_application(application, product.application):
                continue
        if product_form and product_form != ALL_FORMS:
            if product.product_form != product_form:
                continue
        if organic_only and not product.organic_certified:
            continue
        result.append(product)

    _LOGGER.debug(
        "Filtered %d products for %s (%s)", len(result), groups, combinator.value
    )
    return result
