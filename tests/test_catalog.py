import json
import logging

import pytest

from fertilizer_engine.catalog import CatalogHandle, load_catalog, parse_records
from fertilizer_engine.models import ProductForm


def test_bundled_catalog_loads(catalog):
    assert len(catalog) == 10
    names = catalog.names()
    assert names[0] == "NTS Liquid Humus"
    assert "NTS Trace Granules" in names


def test_catalog_is_lazy_and_refreshable(tmp_path):
    path = tmp_path / "products.json"
    path.write_text(json.dumps([{"product_name": "A", "nutrients": ["N"]}]))
    handle = CatalogHandle(path)
    assert not handle.loaded
    assert handle.names() == ["A"]
    assert handle.loaded

    path.write_text(json.dumps({"products": [{"product_name": "B"}]}))
    assert handle.names() == ["A"]
    handle.refresh()
    assert handle.names() == ["B"]
    handle.clear()
    assert not handle.loaded


def test_parse_records_skips_invalid_and_duplicates(caplog):
    records = [
        {"product_name": "First", "nutrients": ["N"], "unknown": 1},
        "not a record",
        {"nutrients": ["P"]},
        {"product_name": "Bad", "nutrients": "K"},
        {"product_name": "First", "nutrients": ["K"]},
        {"product_name": "  Second  ", "organic_certified": True},
    ]
    with caplog.at_level(logging.WARNING):
        products = parse_records(records)

    assert [p.product_name for p in products] == ["First", "Second"]
    assert products[0].nutrients == ("N",)
    assert products[1].organic_certified is True
    assert "duplicate" in caplog.text


def test_load_catalog_from_env(tmp_path, monkeypatch):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "custom.yaml").write_text(
        "- product_name: Yaml Product\n  nutrients: [Ca]\n  product_form: Granular\n"
    )
    monkeypatch.setenv("FERTILIZER_DATA_DIR", str(data_dir))
    monkeypatch.setenv("FERTILIZER_CATALOG_FILE", "custom.yaml")

    products = load_catalog()
    assert [p.product_name for p in products] == ["Yaml Product"]
    assert products[0].form is ProductForm.GRANULAR


def test_load_catalog_errors(tmp_path, monkeypatch):
    monkeypatch.setenv("FERTILIZER_CATALOG_FILE", "missing.json")
    with pytest.raises(FileNotFoundError):
        load_catalog()

    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"products": "nope"}))
    with pytest.raises(ValueError):
        load_catalog(path)


def test_get_is_case_insensitive(catalog):
    product = catalog.get("nts kelp powder")
    assert product is not None
    assert product.product_name == "NTS Kelp Powder"
    assert catalog.get("Unknown") is None


def test_search_matches_name_or_nutrient(catalog):
    assert [p.product_name for p in catalog.search("fulvic")] == [
        "NTS Fast Fulvic",
        "NTS Triple Ten",
    ]
    assert [p.product_name for p in catalog.search("rich")] == ["K-Rich"]
    assert len(catalog.search("  ")) == len(catalog)


def test_product_helpers(catalog):
    humus = catalog.get("NTS Liquid Humus")
    assert humus.ph == "10.5-11.5"
    assert humus.form is ProductForm.LIQUID
    assert catalog.get("NTS Trace Granules").ph is None
    data = humus.as_dict()
    assert data["nutrients"] == ["Potassium humate"]
    assert data["analysis"]["pH"] == "10.5-11.5"


def test_products_are_hashable_and_read_only(catalog):
    product = catalog.get("NTS Calcium Fuel")
    assert product in set(catalog.products)
    with pytest.raises(TypeError):
        product.analysis["pH"] = "1.0"
    assert product.as_dict()["analysis"] == dict(product.analysis)
