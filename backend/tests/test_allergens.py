"""Tests for the allergen guard on generated recipes."""

from mealgen.services.allergens import ALLERGEN_ONTOLOGY, find_allergen_violations, get_all_allergen_codes


def test_get_all_allergen_codes():
    codes = get_all_allergen_codes()
    assert len(codes) == 10
    assert "milk" in codes
    assert "peanuts" in codes
    assert set(codes) == set(ALLERGEN_ONTOLOGY)


def test_no_allergies_no_violations():
    assert find_allergen_violations(["butter", "peanuts"], []) == []


def test_code_expands_to_keywords():
    assert find_allergen_violations(["unsalted butter", "rice"], ["milk"]) == ["milk: unsalted butter"]
    assert find_allergen_violations(["2 eggs"], ["eggs"]) == ["eggs: 2 eggs"]


def test_aliases_resolve_to_codes():
    assert find_allergen_violations(["parmesan cheese"], ["dairy"]) == ["dairy: parmesan cheese"]
    assert find_allergen_violations(["walnuts", "peanut oil"], ["nuts"]) == ["nuts: walnuts", "nuts: peanut oil"]
    assert find_allergen_violations(["all-purpose flour"], ["gluten"]) == ["gluten: all-purpose flour"]


def test_plural_forms_match():
    assert find_allergen_violations(["shrimps"], ["shellfish"]) == ["shellfish: shrimps"]


def test_word_boundaries():
    # "eggplant" is not an egg
    assert find_allergen_violations(["eggplant"], ["eggs"]) == []


def test_plant_based_dairy_lookalikes_are_allowed():
    assert find_allergen_violations(["coconut milk", "peanut butter"], ["dairy"]) == []


def test_unknown_allergy_matched_literally():
    assert find_allergen_violations(["fresh kiwi slices"], ["Kiwi"]) == ["Kiwi: fresh kiwi slices"]


def test_case_insensitive():
    assert find_allergen_violations(["Sesame Seeds"], ["SESAME"]) == ["SESAME: Sesame Seeds"]
