import json

import pytest

from fertilizer_engine import utils


def test_load_dataset_env_override(tmp_path, monkeypatch):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "sample.json").write_text(json.dumps({"foo": 1}))
    monkeypatch.setenv("FERTILIZER_DATA_DIR", str(data_dir))
    utils.clear_dataset_cache()
    assert utils.load_dataset("sample.json") == {"foo": 1}


def test_load_dataset_merges_extra_and_overlay(tmp_path, monkeypatch):
    base = tmp_path / "base"
    extra = tmp_path / "extra"
    overlay = tmp_path / "overlay"
    for path in (base, extra, overlay):
        path.mkdir()
    (base / "terms.json").write_text(json.dumps({"a": {"x": 1, "y": 2}, "b": 1}))
    (extra / "terms.json").write_text(json.dumps({"a": {"y": 3}}))
    (overlay / "terms.json").write_text(json.dumps({"b": 5}))

    monkeypatch.setenv("FERTILIZER_DATA_DIR", str(base))
    monkeypatch.setenv("FERTILIZER_EXTRA_DATA_DIRS", str(extra))
    monkeypatch.setenv("FERTILIZER_OVERLAY_DIR", str(overlay))
    utils.clear_dataset_cache()

    assert utils.load_dataset("terms.json") == {"a": {"x": 1, "y": 3}, "b": 5}
    assert utils.dataset_file("terms.json") == overlay / "terms.json"


def test_load_dataset_lists_are_replaced(tmp_path, monkeypatch):
    base = tmp_path / "base"
    overlay = tmp_path / "overlay"
    base.mkdir()
    overlay.mkdir()
    (base / "items.json").write_text(json.dumps([1, 2]))
    (overlay / "items.json").write_text(json.dumps([3]))
    monkeypatch.setenv("FERTILIZER_DATA_DIR", str(base))
    monkeypatch.setenv("FERTILIZER_OVERLAY_DIR", str(overlay))
    utils.clear_dataset_cache()
    assert utils.load_dataset("items.json") == [3]


def test_load_dataset_missing_file_is_empty():
    assert utils.load_dataset("does_not_exist.json") == {}
    assert utils.dataset_file("does_not_exist.json") is None


def test_load_json_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        utils.load_json(tmp_path / "missing.json")
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with pytest.raises(ValueError, match="bad.json"):
        utils.load_json(bad)


def test_load_data_reads_yaml(tmp_path):
    path = tmp_path / "data.yaml"
    path.write_text("products:\n  - product_name: A\n")
    assert utils.load_data(path) == {"products": [{"product_name": "A"}]}


def test_deep_update_nested():
    base = {"a": {"b": 1, "c": 2}}
    utils.deep_update(base, {"a": {"c": 3, "d": 4}, "e": 5})
    assert base == {"a": {"b": 1, "c": 3, "d": 4}, "e": 5}


def test_list_dataset_files_excludes_catalog():
    files = utils.list_dataset_files()
    assert "fertilizer_products.json" in files
    assert "nutrient_compatibility.json" in files
    assert "dataset_catalog.json" not in files


@pytest.mark.parametrize(
    "text,term,expected",
    [
        ("S (sulfate)", "S", True),
        ("Silicon", "S", False),
        ("soil health", "s", False),
        ("N (organic)", "N (organic)", True),
        ("Vitamin B12 blend", "B", False),
        ("calcium, boron", "boron", True),
    ],
)
def test_whole_word_pattern(text, term, expected):
    assert bool(utils.whole_word_pattern(term).search(text)) is expected


def test_first_number():
    assert utils.first_number("10.5-11.5") == 10.5
    assert utils.first_number("pH 7") == 7.0
    assert utils.first_number("neutral") is None
    assert utils.first_number(None) is None
