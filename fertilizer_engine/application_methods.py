"""Application method categories and matching of product application lists."""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable, Mapping

from .models import ApplicationMethodCategory
from .utils import load_dataset

DATA_FILE = "application_methods.json"

# Pseudo category selecting every product regardless of its application list
SHOW_ALL = "Show All"

__all__ = [
    "SHOW_ALL",
    "list_categories",
    "get_category",
    "classify",
    "category_matches",
    "matches_application",
    "all_application_terms",
    "clear_cache",
]


@lru_cache(maxsize=1)
def list_categories() -> tuple[ApplicationMethodCategory, ...]:
    """Return all categories in dataset order."""

    data = load_dataset(DATA_FILE)
    if not isinstance(data, list):
        return ()
    return tuple(
        ApplicationMethodCategory(
            name=str(entry["name"]),
            description=str(entry.get("description", "")),
            methods=tuple(str(m) for m in entry.get("methods", ())),
            keywords=tuple(str(k).casefold() for k in entry.get("keywords", ())),
        )
        for entry in data
        if isinstance(entry, Mapping) and entry.get("name")
    )


def clear_cache() -> None:
    list_categories.cache_clear()


def get_category(name: str) -> ApplicationMethodCategory | None:
    """Return the category whose display name equals ``name``."""

    wanted = name.strip().casefold()
    for category in list_categories():
        if category.name.casefold() == wanted:
            return category
    return None


def classify(
    preference: str,
    categories: Iterable[ApplicationMethodCategory] | None = None,
) -> ApplicationMethodCategory | None:
    """Return the category a free-text ``preference`` refers to.

    An exact name match wins, otherwise the first category with a keyword
    contained in the preference is returned.
    """

    pref = preference.strip().casefold()
    if not pref:
        return None
    cats = tuple(categories) if categories is not None else list_categories()
    for category in cats:
        if category.name.casefold() == pref:
            return category
    for category in cats:
        if any(keyword in pref for keyword in category.keywords):
            return category
    return None


def category_matches(category: ApplicationMethodCategory, applications: Iterable[str]) -> bool:
    """Return ``True`` if any raw application string belongs to ``category``."""

    name = category.name.casefold()
    methods = [m.casefold() for m in category.methods]
    for app in applications:
        text = app.casefold()
        if text == name:
            return True
        if any(keyword in text for keyword in category.keywords):
            return True
        if any(method in text for method in methods):
            return True
    return False


def matches_application(preference: str | None, applications: Iterable[str] | None) -> bool:
    """Return whether a product's ``applications`` suit the user ``preference``.

    Matching is permissive: no preference, ``"Show All"``, an empty
    application list or a preference that names no known category all keep
    the product.
    """

    if not preference or preference == SHOW_ALL:
        return True
    apps = list(applications or ())
    if not apps:
        return True
    category = classify(preference)
    if category is None:
        return True
    return category_matches(category, apps)


def all_application_terms() -> list[str]:
    """Return every category name, keyword and method label sorted."""

    terms: set[str] = set()
    for category in list_categories():
        terms.add(category.name)
        terms.update(category.keywords)
        terms.update(category.methods)
    return sorted(terms)
