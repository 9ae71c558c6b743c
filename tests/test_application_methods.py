from fertilizer_engine import application_methods as am


def test_categories_loaded_in_order():
    names = [c.name for c in am.list_categories()]
    assert names == [
        "Soil Application",
        "Foliar Spray",
        "Drench",
        "Seed Treatment",
        "Compost",
        "Hydroponic",
    ]
    assert am.get_category("foliar spray").methods == ("Spray", "Mist", "Drip")
    assert am.get_category("Aerial") is None


def test_classify_prefers_exact_name():
    assert am.classify("Drench").name == "Drench"
    assert am.classify("root drench application").name == "Soil Application"
    assert am.classify("leaf feeding").name == "Foliar Spray"
    assert am.classify("teleportation") is None
    assert am.classify("  ") is None


def test_matches_application():
    assert am.matches_application("Foliar Spray", ["Foliar", "Fertigation"])
    assert am.matches_application("Seed Treatment", ["Seed Treatment"])
    assert not am.matches_application("Seed Treatment", ["Broadcast", "Compost"])
    assert am.matches_application("Compost", ["Broadcast", "Compost"])


def test_matches_application_is_permissive():
    assert am.matches_application(am.SHOW_ALL, ["Broadcast"])
    assert am.matches_application(None, ["Broadcast"])
    assert am.matches_application("", ["Broadcast"])
    assert am.matches_application("Foliar Spray", [])
    assert am.matches_application("teleportation", ["Broadcast"])


def test_canonical_method_label_matches():
    soil = am.get_category("Soil Application")
    assert am.category_matches(soil, ["Side-dress only"])
    assert not am.category_matches(soil, ["Coating"])


def test_all_application_terms_sorted_union():
    terms = am.all_application_terms()
    assert terms == sorted(terms)
    assert "Foliar Spray" in terms
    assert "Reservoir treatment" in terms
    assert "seedling" in terms
