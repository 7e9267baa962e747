"""Synchronous single-recipe endpoints (no job queue)."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from mealgen.api.deps import get_caller_id, get_client
from mealgen.errors import GenerationError, ParseError, ServiceUnavailableError
from mealgen.logging import get_logger
from mealgen.schemas.recipe import GenerationRequest, QuickDinnerRequest
from mealgen.services.llm.generation_client import GenerationClient
from mealgen.services.recipe_generator import generate_quick_dinner, generate_recipe, within_budget
from mealgen.storage.models import utcnow

router = APIRouter()
logger = get_logger(__name__)

_QUOTA_MARKERS = ("quota", "rate limit", "too many requests", "429", "resource exhausted", "limit")


def generation_error_response(exc: Exception) -> JSONResponse:
    """configuration/auth -> 503, parse -> 422, quota/rate limit -> 429, anything else -> 500."""
    cause = exc.last_cause if isinstance(exc, GenerationError) else exc
    message = str(cause).lower()
    if isinstance(cause, ServiceUnavailableError) or "api key" in message:
        status, error = 503, "AI service configuration error. Please try again later."
        if isinstance(cause, ServiceUnavailableError) and "api key" not in message:
            error = cause.message
    elif isinstance(exc, ParseError):
        status, error = 422, "Failed to generate recipe in correct format. Please try again."
    elif any(marker in message for marker in _QUOTA_MARKERS):
        status, error = 429, "AI service temporarily unavailable. Please try again later."
    else:
        status, error = 500, "Failed to generate recipe. Please try again."
    logger.error("generation.failed status=%s error=%s", status, exc)
    return JSONResponse({"error": error}, status_code=status)


@router.post("/generation")
async def generate_single_recipe(
    request: GenerationRequest,
    caller_id: str = Depends(get_caller_id),
    client: GenerationClient = Depends(get_client),
):
    try:
        recipe = await within_budget(generate_recipe(request, client))
    except (GenerationError, ParseError, ServiceUnavailableError) as exc:
        return generation_error_response(exc)
    return {
        "success": True,
        "recipe": recipe.model_dump(mode="json", by_alias=True, exclude_none=True),
        "generatedAt": utcnow().isoformat().replace("+00:00", "Z"),
        "userId": caller_id,
    }


@router.post("/quick-dinner")
async def quick_dinner(
    request: QuickDinnerRequest,
    caller_id: str = Depends(get_caller_id),
    client: GenerationClient = Depends(get_client),
):
    try:
        recipe = await within_budget(generate_quick_dinner(request, client))
    except (GenerationError, ParseError, ServiceUnavailableError) as exc:
        return generation_error_response(exc)
    logger.info("quick_dinner.generated user_id=%s name=%s", caller_id, recipe.name)
    return {"recipe": recipe.model_dump(mode="json", by_alias=True, exclude_none=True)}
