from collections.abc import Callable
from typing import Any

import pytest

import fertilizer_engine
from fertilizer_engine.catalog import CatalogHandle
from fertilizer_engine.models import Product


@pytest.fixture(autouse=True)
def _reset_caches(monkeypatch):
    """Keep dataset caches and AI settings isolated between tests."""
    for name in (
        "FERTILIZER_DATA_DIR",
        "FERTILIZER_EXTRA_DATA_DIRS",
        "FERTILIZER_OVERLAY_DIR",
        "FERTILIZER_CATALOG_FILE",
        "FERTILIZER_USE_AI",
        "OPENAI_API_KEY",
        "OPENAI_MODEL",
        "OPENAI_TEMPERATURE",
        "OPENAI_TIMEOUT",
        "OPENAI_BASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    fertilizer_engine.clear_caches()
    yield
    fertilizer_engine.clear_caches()


@pytest.fixture
def make_product() -> Callable[..., Product]:
    """Return a factory building products with sensible defaults."""

    def _make(name: str = "Test Product", nutrients=(), ph: str | None = None, **kwargs: Any) -> Product:
        analysis = dict(kwargs.pop("analysis", {}))
        if ph is not None:
            analysis["pH"] = ph
        return Product(
            product_name=name,
            nutrients=tuple(nutrients),
            analysis=analysis,
            **kwargs,
        )

    return _make


@pytest.fixture
def catalog() -> CatalogHandle:
    """Return a handle on the bundled product catalog."""
    return CatalogHandle()


@pytest.fixture
def products(catalog) -> tuple[Product, ...]:
    return catalog.products
