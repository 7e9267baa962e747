from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mealgen.schemas.recipe import RESTRICTION_ALIASES, MacroTargets, Recipe, normalize_tags


class MealPlanRequest(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    days: int = Field(ge=1, le=14)
    meals_per_day: int = Field(ge=2, le=5, alias="mealsPerDay")
    people: int = Field(ge=1, le=10)
    target_calories: int = Field(ge=500, le=5000, alias="targetCalories")
    restrictions: list[str] = Field(default_factory=list)
    allergies: list[str] = Field(default_factory=list)
    macro_goals: Optional[MacroTargets] = Field(default=None, alias="macroGoals")

    @field_validator("restrictions")
    @classmethod
    def _restrictions(cls, value: list[str]) -> list[str]:
        return normalize_tags(value, RESTRICTION_ALIASES)

    @field_validator("allergies")
    @classmethod
    def _allergies(cls, value: list[str]) -> list[str]:
        return normalize_tags(value)


class PlannedMeal(BaseModel):
    type: str
    recipe: Recipe


class DayPlan(BaseModel):
    day: int
    meals: list[PlannedMeal] = Field(min_length=1)


class ShoppingItem(BaseModel):
    name: str
    quantity: str
    category: str
    estimated_cost: float


class MealPlanResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    days: int
    meals_per_day: int = Field(alias="mealsPerDay")
    people: int
    total_cost: float
    daily_plans: list[DayPlan]
    shopping_list: list[ShoppingItem]
    created_at: datetime
