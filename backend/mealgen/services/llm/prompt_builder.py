"""
Prompt construction for the generation provider.

All builders are pure: equal requests give byte-identical prompts. Each prompt
ends with an output contract (a fenced example object plus "JSON only"), which
keeps the response parser's job down to stripping formatting.
"""

import json
from typing import Optional

from mealgen.schemas.meal_plan import MealPlanRequest
from mealgen.schemas.recipe import GenerationRequest, MacroTargets, QuickDinnerRequest
from mealgen.services.llm.prompts import (
    MEAL_PLAN_INSTRUCTIONS,
    MEAL_PLAN_PERSONA,
    OUTPUT_CONTRACT,
    QUICK_DINNER_STYLES,
    QUICK_DINNER_TEMPLATE,
    RECIPE_EXAMPLE,
    RECIPE_INSTRUCTIONS,
    RECIPE_PERSONA,
)

# Slot order per meals-per-day; the plan prompt and the shape check both use it.
MEAL_TYPES_BY_COUNT = {
    2: ["breakfast", "dinner"],
    3: ["breakfast", "lunch", "dinner"],
    4: ["breakfast", "lunch", "snack", "dinner"],
    5: ["breakfast", "snack", "lunch", "snack", "dinner"],
}


def meal_types_for(meals_per_day: int) -> list[str]:
    return MEAL_TYPES_BY_COUNT.get(meals_per_day, MEAL_TYPES_BY_COUNT[3])


def _num(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _recipe_example(servings: int, meal_type: str, calories: Optional[int] = None) -> dict:
    example = json.loads(json.dumps(RECIPE_EXAMPLE))
    example["servings"] = servings
    example["mealType"] = meal_type
    if calories is not None:
        example["nutrition"]["calories"] = calories
    return example


def _output_contract(example: dict) -> str:
    return OUTPUT_CONTRACT.format(example=json.dumps(example, indent=2, ensure_ascii=False))


def _macro_lines(macros: Optional[MacroTargets], daily: bool = False) -> list[str]:
    if macros is None or not macros.has_any():
        return []
    prefix = "Daily target" if daily else "Target"
    lines = []
    if macros.calories is not None:
        lines.append(f"- {prefix} calories: {_num(macros.calories)}")
    if macros.protein is not None:
        lines.append(f"- {prefix} protein: {_num(macros.protein)}g")
    if macros.carbs is not None:
        lines.append(f"- {prefix} carbs: {_num(macros.carbs)}g")
    if macros.fats is not None:
        lines.append(f"- {prefix} fats: {_num(macros.fats)}g")
    return lines


def build_recipe_prompt(request: GenerationRequest) -> str:
    sections = [
        RECIPE_PERSONA,
        "## AVAILABLE INGREDIENTS:\n" + "\n".join(f"- {name}" for name in request.ingredients),
    ]

    requirements = [
        "## USER REQUIREMENTS:",
        f"- Meal type: {request.meal_type}",
        f"- Servings: {request.servings}",
        f"- Maximum cooking time: {request.cooking_time} minutes",
    ]
    if request.dietary_restrictions:
        requirements.append(f"- Dietary restrictions: {', '.join(request.dietary_restrictions)}")
    if request.allergies:
        requirements.append(f"- Allergies (MUST AVOID): {', '.join(request.allergies)}")
    if request.cuisine_preferences:
        requirements.append(f"- Preferred cuisines: {', '.join(request.cuisine_preferences)}")
    sections.append("\n".join(requirements))

    macro_lines = _macro_lines(request.macro_goals)
    if macro_lines:
        sections.append("\n".join(["## NUTRITION TARGETS:"] + macro_lines))

    if request.special_requests is not None:
        sections.append("## SPECIAL REQUESTS:\n" + request.special_requests)

    sections.append(RECIPE_INSTRUCTIONS.format(cooking_time=request.cooking_time))
    sections.append(_output_contract(_recipe_example(request.servings, request.meal_type)))
    return "\n\n".join(sections)


def build_meal_plan_prompt(request: MealPlanRequest) -> str:
    meal_types = meal_types_for(request.meals_per_day)
    calories_per_meal = round(request.target_calories / request.meals_per_day)

    requirements = [
        "## MEAL PLAN REQUIREMENTS:",
        f"- Number of days: {request.days}",
        f"- Meals per day: {request.meals_per_day}",
        f"- Servings per meal: {request.people}",
        f"- Daily calorie target: {request.target_calories} (about {calories_per_meal} per meal)",
    ]
    requirements.extend(_macro_lines(request.macro_goals, daily=True))
    if request.restrictions:
        requirements.append(f"- Dietary restrictions: {', '.join(request.restrictions)}")
    if request.allergies:
        requirements.append(f"- Allergies (MUST AVOID): {', '.join(request.allergies)}")

    example = {
        "daily_plans": [
            {
                "day": 1,
                "meals": [
                    {
                        "type": meal_types[0],
                        "recipe": _recipe_example(request.people, meal_types[0], calories_per_meal),
                    }
                ],
            }
        ]
    }
    contract = _output_contract(example).replace(
        "Return ONLY the JSON object,",
        f"Return ONLY the JSON object covering all {request.days} days with "
        f"{request.meals_per_day} meals each,",
    )
    return "\n\n".join(
        [
            MEAL_PLAN_PERSONA.format(days=request.days),
            "\n".join(requirements),
            MEAL_PLAN_INSTRUCTIONS.format(
                days=request.days,
                meals_per_day=request.meals_per_day,
                meal_types=", ".join(meal_types),
            ),
            contract,
        ]
    )


def build_quick_dinner_prompt(request: QuickDinnerRequest, servings: int = 2) -> str:
    description = QUICK_DINNER_STYLES.get(request.type, QUICK_DINNER_STYLES["easy"])
    example = _recipe_example(servings, "dinner")
    example["cookingTime"] = request.max_time
    return "\n\n".join(
        [
            QUICK_DINNER_TEMPLATE.format(description=description, max_time=request.max_time, servings=servings),
            _output_contract(example),
        ]
    )
