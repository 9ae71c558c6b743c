from fertilizer_engine.models import Combinator
from fertilizer_engine.recommendation import get_recommendations


def test_recommendations_for_or_query(products):
    result = get_recommendations("kelp or calcium", products)
    assert result.product_names == [
        "NTS Triple Ten",
        "NTS Calcium Fuel",
        "NTS Kelp Powder",
        "NTS Seaweed Tonic",
    ]
    assert result.combinator is Combinator.ANY
    assert result.suggested_nutrients == ["Kelp", "Seaweed", "Ca"]
    assert result.is_fallback
    assert result.explanation == (
        'Based on your search for "kelp or calcium", we found 4 products '
        "containing the requested nutrients."
    )


def test_empty_result_still_reports_nutrients(products):
    result = get_recommendations("selenium and cobalt", products)
    assert result.products == []
    assert result.suggested_nutrients == ["Co", "Se"]
    assert "we found 0 products" in result.explanation


def test_filters_are_applied(products):
    result = get_recommendations(
        "kelp or calcium",
        products,
        application="Seed Treatment",
        organic_only=True,
        product_form="Powder",
    )
    assert result.product_names == ["NTS Kelp Powder"]
    assert result.application_preference == "Seed Treatment"


def test_as_dict_is_serializable(products):
    data = get_recommendations("potassium humate", products).as_dict()
    assert [p["product_name"] for p in data["products"]] == ["NTS Liquid Humus"]
    assert data["groups"] == [["Potassium humate"]]
    assert data["combinator"] == "all"
