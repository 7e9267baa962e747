import math
import re
from typing import Iterable

from mealgen.schemas.meal_plan import ShoppingItem
from mealgen.schemas.recipe import RecipeIngredient

# First matching category wins, so order matters ("bell pepper" is produce, not spice).
CATEGORY_KEYWORDS: list[tuple[str, list[str]]] = [
    ("meat", ["chicken", "beef", "pork", "turkey", "lamb", "fish", "salmon", "tuna"]),
    ("produce", ["broccoli", "carrot", "onion", "garlic", "tomato", "potato", "pepper", "spinach"]),
    ("grains", ["rice", "pasta", "bread", "flour", "oats", "quinoa"]),
    ("dairy", ["milk", "cheese", "yogurt", "butter", "cream"]),
    ("oils", ["oil"]),
    ("spices", ["salt", "herbs", "spices", "basil", "oregano"]),
]
DEFAULT_CATEGORY = "other"

BASE_COSTS = {
    "chicken": 200, "beef": 300, "pork": 180, "fish": 250,
    "rice": 50, "pasta": 40, "bread": 30,
    "cheese": 150, "milk": 25, "yogurt": 35,
    "tomato": 40, "onion": 20, "garlic": 15, "potato": 25,
    "oil": 80, "salt": 10, "pepper": 20,
}
DEFAULT_BASE_COST = 50

_AMOUNT_RE = re.compile(r"^\s*(\d+)(?:\s+(\d+)/(\d+)|/(\d+)|[.,](\d+))?")


def parse_amount(text: str) -> float:
    """Leading quantity of an amount string: '2' -> 2, '1.5' -> 1.5, '1/2' -> 0.5, '1 1/2' -> 1.5, 'pinch' -> 1."""
    match = _AMOUNT_RE.match(text or "")
    if not match:
        return 1.0
    whole, mixed_num, mixed_den, den, decimal = match.groups()
    if mixed_num and int(mixed_den):
        value = int(whole) + int(mixed_num) / int(mixed_den)
    elif den:
        value = int(whole) / int(den) if int(den) else float(whole)
    elif decimal:
        value = float(f"{whole}.{decimal}")
    else:
        value = float(whole)
    return value or 1.0


def categorize_ingredient(name: str) -> str:
    lowered = name.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def estimate_cost(name: str, amount: float) -> float:
    lowered = name.lower()
    base = next((cost for key, cost in BASE_COSTS.items() if key in lowered), DEFAULT_BASE_COST)
    return round(base * amount * 0.1, 2)


def build_shopping_list(ingredients: Iterable[RecipeIngredient]) -> list[ShoppingItem]:
    """Merge ingredient lines by name (case-insensitive), summing amounts; first unit seen wins."""
    consolidated: dict[str, dict] = {}
    for ingredient in ingredients:
        key = ingredient.name.strip().lower()
        if not key:
            continue
        amount = parse_amount(ingredient.amount)
        if key in consolidated:
            consolidated[key]["amount"] += amount
        else:
            consolidated[key] = {"amount": amount, "unit": ingredient.unit.strip()}

    items = [
        ShoppingItem(
            name=key[:1].upper() + key[1:],
            quantity=f"{math.ceil(data['amount'])} {data['unit']}".strip(),
            category=categorize_ingredient(key),
            estimated_cost=estimate_cost(key, data["amount"]),
        )
        for key, data in consolidated.items()
    ]
    return sorted(items, key=lambda item: item.category)
