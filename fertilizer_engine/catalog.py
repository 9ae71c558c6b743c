"""Loading and lookup of the fertilizer product catalog."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Iterable, Mapping

import voluptuous as vol

from .models import Product
from .utils import dataset_file, load_data

_LOGGER = logging.getLogger(__name__)

CATALOG_ENV = "FERTILIZER_CATALOG_FILE"
DEFAULT_CATALOG_FILE = "fertilizer_products.json"

__all__ = [
    "PRODUCT_SCHEMA",
    "CatalogHandle",
    "get_catalog_file",
    "parse_records",
    "load_catalog",
]


def _string_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise vol.Invalid("expected a list of strings")
    return [str(v) for v in value]


def _string_mapping(value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise vol.Invalid("expected a mapping")
    return {str(k): str(v) for k, v in value.items()}


PRODUCT_SCHEMA = vol.Schema(
    {
        vol.Required("product_name"): vol.All(str, vol.Strip, vol.Length(min=1)),
        vol.Optional("nutrients", default=list): _string_list,
        vol.Optional("application", default=list): _string_list,
        vol.Optional("benefits", default=list): _string_list,
        vol.Optional("product_form", default=""): vol.Any(None, str),
        vol.Optional("organic_certified", default=False): vol.Any(None, bool),
        vol.Optional("description", default=""): vol.Any(None, str),
        vol.Optional("analysis", default=dict): _string_mapping,
        vol.Optional("application_rates", default=dict): _string_mapping,
        vol.Optional("instructions"): vol.Any(None, str),
        vol.Optional("storage_handling"): vol.Any(None, str),
        vol.Optional("link"): vol.Any(None, str),
    },
    extra=vol.REMOVE_EXTRA,
)


def get_catalog_file() -> str:
    """Return the catalog dataset file name honoring ``FERTILIZER_CATALOG_FILE``."""

    return os.getenv(CATALOG_ENV) or DEFAULT_CATALOG_FILE


def parse_records(records: Iterable[Any]) -> list[Product]:
    """Return products built from ``records`` skipping malformed entries.

    Invalid records and repeated product names are logged and dropped so a
    single bad entry never aborts the whole load.
    """

    products: list[Product] = []
    seen: set[str] = set()
    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            _LOGGER.warning("Skipping catalog record %s: not an object", index)
            continue
        try:
            data = PRODUCT_SCHEMA(dict(record))
        except vol.Invalid as err:
            _LOGGER.warning(
                "Skipping catalog record %s (%s): %s",
                index,
                record.get("product_name", "<unnamed>"),
                err,
            )
            continue
        name = data["product_name"]
        if name in seen:
            _LOGGER.warning("Skipping duplicate catalog product %s", name)
            continue
        seen.add(name)
        products.append(Product.from_dict(data))
    return products


def load_catalog(path: str | Path | None = None) -> list[Product]:
    """Return products from ``path`` or from the configured catalog dataset."""

    if path is None:
        found = dataset_file(get_catalog_file())
        if found is None:
            raise FileNotFoundError(get_catalog_file())
        path = found

    data = load_data(path)
    if isinstance(data, Mapping):
        data = data.get("products", [])
    if not isinstance(data, list):
        raise ValueError(f"Catalog {path} does not contain a list of products")

    products = parse_records(data)
    _LOGGER.debug("Loaded %d products from %s", len(products), path)
    return products


class CatalogHandle:
    """Explicit owner of the in-memory product catalog.

    Components receive products from a handle instead of reading a module
    level cache, so each caller controls when the catalog is loaded,
    refreshed or cleared.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        products: Iterable[Product] | None = None,
    ) -> None:
        self._path = Path(path) if path is not None else None
        self._products: tuple[Product, ...] | None = (
            tuple(products) if products is not None else None
        )

    @classmethod
    def from_records(cls, records: Iterable[Any]) -> "CatalogHandle":
        return cls(products=parse_records(records))

    @property
    def loaded(self) -> bool:
        return self._products is not None

    @property
    def products(self) -> tuple[Product, ...]:
        """Return catalog products, loading them on first access."""
        if self._products is None:
            self.load()
        return self._products  # type: ignore[return-value]

    def load(self) -> tuple[Product, ...]:
        if self._products is None:
            self._products = tuple(load_catalog(self._path))
        return self._products

    def refresh(self) -> tuple[Product, ...]:
        """Discard the loaded products and read the catalog again."""
        self.clear()
        return self.load()

    def clear(self) -> None:
        self._products = None

    def get(self, name: str) -> Product | None:
        """Return the product named ``name`` (case-insensitive) if present."""
        wanted = name.strip().casefold()
        for product in self.products:
            if product.product_name.casefold() == wanted:
                return product
        return None

    def names(self) -> list[str]:
        return [p.product_name for p in self.products]

    def search(self, term: str) -> list[Product]:
        """Return products whose name or a declared nutrient contains ``term``."""

        needle = term.strip().casefold()
        if not needle:
            return list(self.products)
        return [
            p
            for p in self.products
            if needle in p.product_name.casefold()
            or any(needle in n.casefold() for n in p.nutrients)
        ]

    def __len__(self) -> int:
        return len(self.products)

    def __iter__(self):
        return iter(self.products)
