import pytest

from mealgen.schemas.meal_plan import MealPlanRequest
from mealgen.schemas.recipe import GenerationRequest, MacroTargets, QuickDinnerRequest
from mealgen.services.llm.prompt_builder import (
    build_meal_plan_prompt,
    build_quick_dinner_prompt,
    build_recipe_prompt,
    meal_types_for,
)

CONTRACT_TAIL = "IMPORTANT: Return ONLY the JSON object, no additional text or markdown formatting."


def test_recipe_prompt_is_deterministic():
    a = GenerationRequest(ingredients=["chicken", "rice"], allergies=["peanuts"])
    b = GenerationRequest(ingredients=["chicken", "rice"], allergies=["peanuts"])
    assert build_recipe_prompt(a) == build_recipe_prompt(b)


def test_recipe_prompt_applies_defaults():
    prompt = build_recipe_prompt(GenerationRequest(ingredients=["chicken"]))
    assert "- chicken" in prompt
    assert "- Meal type: dinner" in prompt
    assert "- Servings: 2" in prompt
    assert "- Maximum cooking time: 30 minutes" in prompt
    assert prompt.endswith(CONTRACT_TAIL)


def test_recipe_prompt_omits_empty_sections():
    prompt = build_recipe_prompt(GenerationRequest(ingredients=["tofu"]))
    assert "Allergies" not in prompt
    assert "Dietary restrictions" not in prompt
    assert "NUTRITION TARGETS" not in prompt
    assert "SPECIAL REQUESTS" not in prompt


def test_recipe_prompt_lists_allergies_and_restrictions():
    request = GenerationRequest(
        ingredients=["tofu"],
        allergies=["Peanuts", "shellfish"],
        dietaryRestrictions=["Gluten Free", "vegan"],
        cuisinePreferences=["Thai"],
    )
    prompt = build_recipe_prompt(request)
    assert "- Allergies (MUST AVOID): peanuts, shellfish" in prompt
    assert "- Dietary restrictions: gluten-free, vegan" in prompt
    assert "- Preferred cuisines: thai" in prompt


def test_recipe_prompt_macro_block_only_lists_present_targets():
    request = GenerationRequest(ingredients=["eggs"], macroGoals=MacroTargets(protein=40))
    prompt = build_recipe_prompt(request)
    assert "## NUTRITION TARGETS:" in prompt
    assert "- Target protein: 40g" in prompt
    assert "Target calories" not in prompt
    assert "Target carbs" not in prompt


def test_recipe_prompt_keeps_special_requests_verbatim():
    request = GenerationRequest(ingredients=["beef"], specialRequests="Make it  SPICY, please!")
    prompt = build_recipe_prompt(request)
    assert "## SPECIAL REQUESTS:\nMake it  SPICY, please!" in prompt


def test_blank_special_requests_are_dropped():
    request = GenerationRequest(ingredients=["beef"], specialRequests="   ")
    assert request.special_requests is None


def test_meal_plan_prompt_splits_calories_per_meal():
    request = MealPlanRequest(days=3, mealsPerDay=3, people=2, targetCalories=2000)
    prompt = build_meal_plan_prompt(request)
    assert "- Number of days: 3" in prompt
    assert "about 667 per meal" in prompt
    assert "breakfast, lunch, dinner" in prompt
    assert '"daily_plans"' in prompt
    assert "covering all 3 days with 3 meals each" in prompt


def test_meal_types_for_each_count():
    assert meal_types_for(2) == ["breakfast", "dinner"]
    assert len(meal_types_for(4)) == 4
    assert len(meal_types_for(5)) == 5


def test_quick_dinner_prompt_uses_style_and_time():
    prompt = build_quick_dinner_prompt(QuickDinnerRequest(type="healthy", maxTime=20))
    assert "lower-calorie" in prompt
    assert "- Maximum preparation time: 20 minutes" in prompt
    assert prompt.endswith(CONTRACT_TAIL)


@pytest.mark.parametrize("allergy", ["peanuts", "pepper", "oil", "salt", "sesame", "shellfish", "milk", "eggs"])
def test_allergies_only_appear_on_the_must_avoid_line(allergy):
    request = GenerationRequest(ingredients=["chicken", "rice", "broccoli"], allergies=[allergy])
    lines = build_recipe_prompt(request).splitlines()
    for name in request.ingredients:
        assert f"- {name}" in lines
    assert [line for line in lines if allergy in line.lower()] == [f"- Allergies (MUST AVOID): {allergy}"]
