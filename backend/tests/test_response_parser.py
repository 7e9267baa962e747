import json

import pytest

from fakes import meal_plan_text, recipe_dict, recipe_text
from mealgen.errors import ParseError
from mealgen.schemas.meal_plan import MealPlanRequest
from mealgen.services.parsing.response_parser import (
    INVALID_MEAL_PLAN,
    INVALID_RECIPE,
    MALFORMED_OUTPUT,
    MEAL_PLAN_SHAPE_MISMATCH,
    parse_meal_plan,
    parse_recipe,
    strip_code_fence,
)


def _plan_request(days=3, meals=3):
    return MealPlanRequest(days=days, mealsPerDay=meals, people=2, targetCalories=2000)


@pytest.mark.parametrize(
    "raw",
    [
        '{"a": 1}',
        '```json\n{"a": 1}\n```',
        '```\n{"a": 1}\n```',
        '  ```JSON\n{"a": 1}```  \n',
    ],
)
def test_strip_code_fence(raw):
    assert json.loads(strip_code_fence(raw)) == {"a": 1}


def test_parse_recipe_accepts_fenced_and_bare_output():
    bare = parse_recipe(recipe_text())
    fenced = parse_recipe(f"```json\n{recipe_text()}\n```")
    assert bare == fenced
    assert bare.name == "Garlic Chicken"
    assert bare.cooking_time == 25
    assert [s.step for s in bare.instructions] == [1, 2]


def test_parse_recipe_round_trips_through_wire_format():
    recipe = parse_recipe(recipe_text())
    again = parse_recipe(json.dumps(recipe.model_dump(mode="json", by_alias=True)))
    assert again == recipe


def test_parse_recipe_rejects_non_json_and_keeps_raw():
    with pytest.raises(ParseError) as exc_info:
        parse_recipe("not json")
    assert exc_info.value.reason == MALFORMED_OUTPUT
    assert exc_info.value.raw == "not json"


def test_parse_recipe_rejects_missing_instructions():
    data = recipe_dict()
    del data["instructions"]
    with pytest.raises(ParseError) as exc_info:
        parse_recipe(json.dumps(data))
    assert exc_info.value.reason == INVALID_RECIPE


def test_parse_recipe_rejects_gapped_steps():
    data = recipe_dict()
    data["instructions"][1]["step"] = 3
    with pytest.raises(ParseError) as exc_info:
        parse_recipe(json.dumps(data))
    assert exc_info.value.reason == INVALID_RECIPE


def test_parse_recipe_rejects_unknown_difficulty():
    data = recipe_dict()
    data["difficulty"] = "legendary"
    with pytest.raises(ParseError):
        parse_recipe(json.dumps(data))


def test_parse_meal_plan_matching_shape():
    days = parse_meal_plan(meal_plan_text(days=3, meals_per_day=3), _plan_request())
    assert [d.day for d in days] == [1, 2, 3]
    assert all(len(d.meals) == 3 for d in days)
    assert days[0].meals[0].type == "breakfast"


def test_parse_meal_plan_wrong_day_count():
    with pytest.raises(ParseError) as exc_info:
        parse_meal_plan(meal_plan_text(days=2, meals_per_day=3), _plan_request(days=3))
    assert exc_info.value.reason == MEAL_PLAN_SHAPE_MISMATCH


def test_parse_meal_plan_wrong_meal_count():
    with pytest.raises(ParseError) as exc_info:
        parse_meal_plan(meal_plan_text(days=3, meals_per_day=2), _plan_request(days=3, meals=3))
    assert exc_info.value.reason == MEAL_PLAN_SHAPE_MISMATCH


def test_parse_meal_plan_requires_daily_plans_list():
    with pytest.raises(ParseError) as exc_info:
        parse_meal_plan('{"days": []}', _plan_request())
    assert exc_info.value.reason == INVALID_MEAL_PLAN


def test_parse_meal_plan_validates_nested_recipes():
    data = json.loads(meal_plan_text(days=1, meals_per_day=2))
    data["daily_plans"][0]["meals"][1]["recipe"]["ingredients"] = []
    with pytest.raises(ParseError) as exc_info:
        parse_meal_plan(json.dumps(data), _plan_request(days=1, meals=2))
    assert exc_info.value.reason == INVALID_MEAL_PLAN
