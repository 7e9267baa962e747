from fastapi import APIRouter

from mealgen.api.generation import router as generation_router
from mealgen.api.health import router as health_router
from mealgen.api.meal_plan import router as meal_plan_router

router = APIRouter(prefix="/api")
router.include_router(health_router)
router.include_router(generation_router)
router.include_router(meal_plan_router)
