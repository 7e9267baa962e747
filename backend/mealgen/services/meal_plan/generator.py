import time

from mealgen.errors import AllergenViolationError
from mealgen.logging import get_logger
from mealgen.schemas.meal_plan import MealPlanRequest, MealPlanResult
from mealgen.services.allergens import find_allergen_violations
from mealgen.services.llm.generation_client import GenerationClient
from mealgen.services.llm.prompt_builder import build_meal_plan_prompt
from mealgen.services.llm.prompts import MEAL_PLAN_PROMPT_VERSION
from mealgen.services.meal_plan.shopping_list import build_shopping_list
from mealgen.services.parsing.response_parser import parse_meal_plan
from mealgen.storage.models import utcnow

logger = get_logger(__name__)


async def generate_meal_plan(request: MealPlanRequest, client: GenerationClient) -> MealPlanResult:
    """One provider call for the whole plan, then validation, allergen guard and shopping list."""
    logger.info(
        "meal_plan.generate.start days=%s meals_per_day=%s people=%s",
        request.days,
        request.meals_per_day,
        request.people,
    )
    prompt = build_meal_plan_prompt(request)
    raw = await client.generate(prompt, prompt_name="meal_plan", prompt_version=MEAL_PLAN_PROMPT_VERSION)
    daily_plans = parse_meal_plan(raw, request)

    ingredients = [ing for day in daily_plans for meal in day.meals for ing in meal.recipe.ingredients]
    violations = find_allergen_violations([ing.name for ing in ingredients], request.allergies)
    if violations:
        raise AllergenViolationError(raw, violations)

    shopping_list = build_shopping_list(ingredients)
    plan = MealPlanResult(
        id=f"plan_{int(time.time() * 1000)}",
        name=f"{request.days}-day meal plan",
        days=request.days,
        meals_per_day=request.meals_per_day,
        people=request.people,
        total_cost=round(sum(item.estimated_cost for item in shopping_list)),
        daily_plans=daily_plans,
        shopping_list=shopping_list,
        created_at=utcnow(),
    )
    logger.info("meal_plan.generate.success id=%s shopping_items=%s", plan.id, len(shopping_list))
    return plan
