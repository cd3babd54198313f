"""
Tests for query keyword analysis and structured field matching.
"""

from artisan_match.services.query_analysis import (
    analyze_query,
    describe_matches,
    edit_distance,
    fuzzy_match,
    match_fields,
)


def test_detects_profession_and_material(normalizer):
    analysis = analyze_query("Silver jewelry in Jaipur", normalizer)

    assert analysis.professions == ("jewelry",)
    assert analysis.materials == ("silver",)
    assert "jaipur" in analysis.tokens
    assert "in" not in analysis.tokens
    assert analysis.method == "hybrid"
    assert analysis.confidence == 0.6


def test_products_infer_profession(normalizer):
    analysis = analyze_query("handmade necklace for a wedding", normalizer)

    assert analysis.products == ("necklace",)
    assert analysis.professions == ("jewelry",)


def test_profession_synonym_maps_to_canonical(normalizer):
    analysis = analyze_query("looking for a potter", normalizer)

    assert analysis.professions == ("pottery",)
    assert analysis.method == "synonym"


def test_query_without_keywords_has_base_confidence(normalizer):
    analysis = analyze_query("something nice for my mother", normalizer)

    assert analysis.keywords == ()
    assert analysis.confidence == 0.3
    assert analysis.method == "keyword"


def test_to_dict_uses_public_field_names(normalizer):
    data = analyze_query("teak chair", normalizer).to_dict()

    assert data["original_query"] == "teak chair"
    assert data["professions"] == ["woodworking"]
    assert set(data) >= {"materials", "techniques", "keywords", "confidence", "method"}


def test_edit_distance():
    assert edit_distance("kitten", "sitting") == 3
    assert edit_distance("silver", "silver") == 0
    assert edit_distance("", "clay") == 4


def test_fuzzy_match_scales_with_length():
    assert fuzzy_match("jewelery", ["jewelry"])
    assert fuzzy_match("silvr", ["sterling silver"])
    assert not fuzzy_match("clai", ["clay"])
    assert fuzzy_match("embroidary", ["embroidery work"])
    assert not fuzzy_match("pottery", ["painting"])


def test_match_fields_for_exact_query(normalizer, profiles):
    analysis = analyze_query("silver jewelry jaipur", normalizer)

    matches = match_fields(profiles[0], analysis, normalizer)

    assert matches.profession == ["jewelry"]
    assert matches.profession_exact
    assert matches.materials == ["silver"]
    assert matches.location == ["jaipur"]
    assert set(matches.description) == {"silver", "jewelry"}
    assert matches.techniques == []


def test_match_fields_ignores_generic_location_words(normalizer, profiles):
    analysis = analyze_query("pottery from delhi city", normalizer)

    matches = match_fields(profiles[1], analysis, normalizer)

    assert matches.location == ["delhi"]


def test_match_fields_without_fuzzy(normalizer, profiles):
    analysis = analyze_query("jewelery", normalizer)

    assert match_fields(profiles[0], analysis, normalizer).profession == ["jewelery"]
    assert match_fields(profiles[0], analysis, normalizer, fuzzy=False).profession == []


def test_describe_matches(normalizer, profiles):
    analysis = analyze_query("silver jewelry jaipur", normalizer)
    reasons = describe_matches(match_fields(profiles[0], analysis, normalizer), profiles[0])

    assert reasons[0] == "Profession matches: jewelry"
    assert "Material expertise: silver" in reasons
    assert "Located in Jaipur, Rajasthan (matches 'jaipur')" in reasons
