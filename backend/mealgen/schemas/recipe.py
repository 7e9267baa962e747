from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DIFFICULTIES = ("easy", "medium", "hard")

# Free-form restriction labels from the UI -> canonical tags sent to the provider.
RESTRICTION_ALIASES = {
    "vegetarian": "vegetarian",
    "vegan": "vegan",
    "gluten free": "gluten-free",
    "gluten-free": "gluten-free",
    "lactose free": "dairy-free",
    "lactose-free": "dairy-free",
    "dairy free": "dairy-free",
    "dairy-free": "dairy-free",
    "low carb": "low-carb",
    "low-carb": "low-carb",
    "keto": "keto",
    "ketogenic": "keto",
    "paleo": "paleo",
}


def normalize_tags(tags: list[str], aliases: Optional[dict[str, str]] = None) -> list[str]:
    """Strip, lower-case, map through ``aliases`` and de-duplicate (order kept)."""
    out: list[str] = []
    for tag in tags:
        key = (tag or "").strip().lower()
        if not key:
            continue
        if aliases:
            key = aliases.get(key, key)
        if key not in out:
            out.append(key)
    return out


class MacroTargets(BaseModel):
    """Each target is independently optional; absent means "no target"."""

    model_config = ConfigDict(frozen=True)

    protein: Optional[float] = None
    carbs: Optional[float] = None
    fats: Optional[float] = None
    calories: Optional[float] = None

    def has_any(self) -> bool:
        return any(v is not None for v in (self.protein, self.carbs, self.fats, self.calories))


class GenerationRequest(BaseModel):
    """Single-recipe request. Defaults are applied here, once, at ingestion."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    ingredients: list[str] = Field(min_length=1)
    dietary_restrictions: list[str] = Field(default_factory=list, alias="dietaryRestrictions")
    allergies: list[str] = Field(default_factory=list)
    macro_goals: Optional[MacroTargets] = Field(default=None, alias="macroGoals")
    cuisine_preferences: list[str] = Field(default_factory=list, alias="cuisinePreferences")
    cooking_time: int = Field(default=30, ge=1, le=1440, alias="cookingTime")
    servings: int = Field(default=2, ge=1, le=50)
    meal_type: str = Field(default="dinner", alias="mealType")
    special_requests: Optional[str] = Field(default=None, alias="specialRequests")

    @field_validator("ingredients")
    @classmethod
    def _strip_ingredients(cls, value: list[str]) -> list[str]:
        cleaned = [v.strip() for v in value if v and v.strip()]
        if not cleaned:
            raise ValueError("At least one ingredient is required")
        return cleaned

    @field_validator("dietary_restrictions")
    @classmethod
    def _normalize_restrictions(cls, value: list[str]) -> list[str]:
        return normalize_tags(value, RESTRICTION_ALIASES)

    @field_validator("allergies", "cuisine_preferences")
    @classmethod
    def _normalize(cls, value: list[str]) -> list[str]:
        return normalize_tags(value)

    @field_validator("meal_type")
    @classmethod
    def _meal_type(cls, value: str) -> str:
        return (value or "").strip().lower() or "dinner"

    @field_validator("special_requests")
    @classmethod
    def _special_requests(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value


class QuickDinnerRequest(BaseModel):
    type: Literal["super-fast", "easy", "healthy", "comfort"] = "easy"
    max_time: int = Field(ge=5, le=240, alias="maxTime")

    model_config = ConfigDict(populate_by_name=True)


class RecipeIngredient(BaseModel):
    name: str
    amount: str
    unit: str


class InstructionStep(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    step: int
    instruction: str
    time_minutes: Optional[int] = Field(default=None, alias="timeMinutes")


class Nutrition(BaseModel):
    calories: float
    protein: float
    carbs: float
    fats: float
    fiber: Optional[float] = None


class Recipe(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    cooking_time: int = Field(alias="cookingTime")
    servings: int
    difficulty: Literal["easy", "medium", "hard"]
    cuisine: str
    meal_type: str = Field(alias="mealType")
    ingredients: list[RecipeIngredient] = Field(min_length=1)
    instructions: list[InstructionStep] = Field(min_length=1)
    nutrition: Nutrition
    tips: Optional[list[str]] = None
    tags: Optional[list[str]] = None

    @model_validator(mode="after")
    def _contiguous_steps(self) -> "Recipe":
        numbers = [s.step for s in self.instructions]
        if numbers != list(range(1, len(numbers) + 1)):
            raise ValueError(f"instruction steps must be numbered 1..{len(numbers)}, got {numbers}")
        return self
