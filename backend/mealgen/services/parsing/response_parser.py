"""
Turn raw provider text into validated domain objects.

The prompts ask for a bare JSON object, so parsing is limited to stripping an
optional code fence and decoding. Nothing is repaired: any structural problem
raises ParseError carrying the untouched provider text.
"""

import json
import re
from typing import Any

from pydantic import TypeAdapter, ValidationError

from mealgen.errors import ParseError
from mealgen.logging import get_logger
from mealgen.schemas.meal_plan import DayPlan, MealPlanRequest
from mealgen.schemas.recipe import Recipe
from mealgen.services.llm.prompt_builder import meal_types_for

logger = get_logger(__name__)

MALFORMED_OUTPUT = "malformed output"
INVALID_RECIPE = "invalid recipe structure"
INVALID_MEAL_PLAN = "invalid meal plan structure"
MEAL_PLAN_SHAPE_MISMATCH = "meal plan does not match requested shape"

_FENCE_OPEN = re.compile(r"^```(?:json)?[ \t]*\n?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\n?[ \t]*```$")

_DAY_PLANS = TypeAdapter(list[DayPlan])


def strip_code_fence(raw: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` plus surrounding whitespace."""
    text = raw.strip()
    text = _FENCE_OPEN.sub("", text, count=1)
    text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def _summarize(exc: ValidationError, limit: int = 3) -> str:
    parts = []
    for err in exc.errors()[:limit]:
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}")
    if exc.error_count() > limit:
        parts.append(f"(+{exc.error_count() - limit} more)")
    return "; ".join(parts)


def decode_json(raw: str) -> Any:
    try:
        return json.loads(strip_code_fence(raw))
    except json.JSONDecodeError as exc:
        logger.warning("parser.malformed error=%s raw_len=%s", exc, len(raw))
        raise ParseError(MALFORMED_OUTPUT, raw, detail=str(exc)) from exc


def parse_recipe(raw: str) -> Recipe:
    data = decode_json(raw)
    if not isinstance(data, dict) or not data.get("name") or not data.get("ingredients") or not data.get("instructions"):
        logger.warning("parser.recipe.missing_fields raw_len=%s", len(raw))
        raise ParseError(INVALID_RECIPE, raw)
    try:
        return Recipe.model_validate(data)
    except ValidationError as exc:
        logger.warning("parser.recipe.invalid errors=%s", exc.error_count())
        raise ParseError(INVALID_RECIPE, raw, detail=_summarize(exc)) from exc


def parse_meal_plan(raw: str, request: MealPlanRequest) -> list[DayPlan]:
    """Decode, schema-validate every nested recipe, then check the plan has the requested shape."""
    data = decode_json(raw)
    plans = data.get("daily_plans") if isinstance(data, dict) else None
    if not isinstance(plans, list):
        raise ParseError(INVALID_MEAL_PLAN, raw, detail="daily_plans must be a list")
    try:
        days = _DAY_PLANS.validate_python(plans)
    except ValidationError as exc:
        logger.warning("parser.meal_plan.invalid errors=%s", exc.error_count())
        raise ParseError(INVALID_MEAL_PLAN, raw, detail=_summarize(exc)) from exc

    if len(days) != request.days:
        raise ParseError(MEAL_PLAN_SHAPE_MISMATCH, raw, detail=f"expected {request.days} days, got {len(days)}")
    if [d.day for d in days] != list(range(1, request.days + 1)):
        raise ParseError(MEAL_PLAN_SHAPE_MISMATCH, raw, detail="days must be numbered 1..n in order")
    expected_meals = len(meal_types_for(request.meals_per_day))
    for day in days:
        if len(day.meals) != expected_meals:
            raise ParseError(
                MEAL_PLAN_SHAPE_MISMATCH,
                raw,
                detail=f"day {day.day} has {len(day.meals)} meals, expected {expected_meals}",
            )
    return days
