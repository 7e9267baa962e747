"""
Synchronous single-recipe generation. Skips the job queue, so the whole call
(including retries) runs inside ``settings.sync_generation_budget_s``.
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

from mealgen.config import settings
from mealgen.errors import AllergenViolationError, ServiceUnavailableError
from mealgen.logging import get_logger
from mealgen.schemas.recipe import GenerationRequest, QuickDinnerRequest, Recipe
from mealgen.services.allergens import find_allergen_violations
from mealgen.services.llm.generation_client import GenerationClient
from mealgen.services.llm.prompt_builder import build_quick_dinner_prompt, build_recipe_prompt
from mealgen.services.llm.prompts import QUICK_DINNER_PROMPT_VERSION, RECIPE_PROMPT_VERSION
from mealgen.services.parsing.response_parser import parse_recipe

logger = get_logger(__name__)

T = TypeVar("T")


async def within_budget(awaitable: Awaitable[T], budget_s: Optional[float] = None) -> T:
    budget_s = budget_s if budget_s is not None else settings.sync_generation_budget_s
    try:
        return await asyncio.wait_for(awaitable, timeout=budget_s)
    except asyncio.TimeoutError as exc:
        logger.error("recipe.generate.budget_exceeded budget_s=%s", budget_s)
        raise ServiceUnavailableError("AI service temporarily unavailable. Please try again later.") from exc


async def generate_recipe(request: GenerationRequest, client: GenerationClient) -> Recipe:
    prompt = build_recipe_prompt(request)
    logger.info("recipe.generate.start ingredients=%s prompt_chars=%s", len(request.ingredients), len(prompt))
    raw = await client.generate(prompt, prompt_name="recipe", prompt_version=RECIPE_PROMPT_VERSION)
    recipe = parse_recipe(raw)
    violations = find_allergen_violations([i.name for i in recipe.ingredients], request.allergies)
    if violations:
        raise AllergenViolationError(raw, violations)
    logger.info("recipe.generate.success name=%s", recipe.name)
    return recipe


async def generate_quick_dinner(request: QuickDinnerRequest, client: GenerationClient) -> Recipe:
    prompt = build_quick_dinner_prompt(request)
    logger.info("quick_dinner.generate.start type=%s max_time=%s", request.type, request.max_time)
    raw = await client.generate(prompt, prompt_name="quick_dinner", prompt_version=QUICK_DINNER_PROMPT_VERSION)
    return parse_recipe(raw)
