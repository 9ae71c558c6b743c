from fertilizer_engine.models import Combinator
from fertilizer_engine.nutrient_resolver import resolve_query
from fertilizer_engine.product_filter import (
    ALL_FORMS,
    contains_nutrient,
    filter_products,
    matches_groups,
)


def _names(items):
    return [p.product_name for p in items]


def test_contains_nutrient_is_whole_word(make_product):
    sulfate = make_product(nutrients=["S (sulfate)"])
    silicon = make_product(nutrients=["Silicon"])
    assert contains_nutrient(sulfate, "S")
    assert not contains_nutrient(silicon, "S")
    assert contains_nutrient(silicon, "silicon")


def test_contains_nutrient_searches_all_surfaces(make_product):
    assert contains_nutrient(make_product(name="Kelp Tonic"), "Kelp")
    assert contains_nutrient(make_product(description="Rich in zinc and Zn"), "Zn")
    assert contains_nutrient(make_product(benefits=("Adds Fe",)), "Fe")
    assert contains_nutrient(make_product(analysis={"Mg": "3%"}), "Mg")
    assert not contains_nutrient(make_product(analysis={"Mgx": "3%"}), "Mg")


def test_contains_nutrient_escapes_regex_characters(make_product):
    product = make_product(nutrients=["N (organic)"])
    assert contains_nutrient(product, "N (organic)")
    assert not contains_nutrient(product, "N (total)")


def test_zero_groups_match_everything(make_product):
    product = make_product()
    assert matches_groups(product, (), Combinator.ALL)
    assert matches_groups(product, (), Combinator.ANY)


def test_any_group_member_satisfies_group(make_product):
    product = make_product(nutrients=["Seaweed"])
    assert matches_groups(product, (("Kelp", "Seaweed"),), Combinator.ALL)


def test_or_query_on_catalog(products):
    resolution = resolve_query("kelp or calcium")
    found = filter_products(products, resolution.groups, resolution.combinator)
    assert _names(found) == [
        "NTS Triple Ten",
        "NTS Calcium Fuel",
        "NTS Kelp Powder",
        "NTS Seaweed Tonic",
    ]


def test_and_query_on_catalog(products):
    resolution = resolve_query("calcium and boron")
    found = filter_products(products, resolution.groups, resolution.combinator)
    assert _names(found) == ["NTS Triple Ten", "NTS Calcium Fuel"]


def test_all_is_subset_of_any(products):
    groups = resolve_query("calcium and boron").groups
    all_names = set(_names(filter_products(products, groups, Combinator.ALL)))
    any_names = set(_names(filter_products(products, groups, Combinator.ANY)))
    assert all_names <= any_names


def test_npk_on_catalog(products):
    resolution = resolve_query("npk")
    assert _names(filter_products(products, resolution.groups)) == ["NTS Triple Ten"]


def test_organic_only(products):
    resolution = resolve_query("kelp or calcium")
    found = filter_products(
        products, resolution.groups, resolution.combinator, organic_only=True
    )
    assert _names(found) == ["NTS Kelp Powder", "NTS Seaweed Tonic"]


def test_product_form_filter(products):
    groups = resolve_query("kelp or calcium").groups
    powders = filter_products(products, groups, Combinator.ANY, product_form="Powder")
    assert _names(powders) == ["NTS Calcium Fuel", "NTS Kelp Powder"]
    everything = filter_products(products, groups, Combinator.ANY, product_form=ALL_FORMS)
    assert len(everything) == 4


def test_application_filter(products):
    found = filter_products(products, (), application="Seed Treatment")
    assert _names(found) == ["NTS Kelp Powder"]
    assert len(filter_products(products, (), application="Show All")) == len(products)


def test_filter_preserves_catalog_order(products):
    found = filter_products(products, (), Combinator.ALL)
    assert _names(found) == [p.product_name for p in products]
