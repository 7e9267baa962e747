RECIPE_PROMPT_VERSION = "v2"
MEAL_PLAN_PROMPT_VERSION = "v2"
QUICK_DINNER_PROMPT_VERSION = "v1"

# Shape of one Recipe exactly as ResponseParser expects it back.
RECIPE_EXAMPLE = {
    "name": "Recipe Name",
    "description": "Brief appetizing description",
    "cookingTime": 25,
    "servings": 2,
    "difficulty": "easy",
    "cuisine": "italian",
    "mealType": "dinner",
    "ingredients": [
        {"name": "ingredient name", "amount": "2", "unit": "pieces"},
    ],
    "instructions": [
        {"step": 1, "instruction": "Detailed instruction", "timeMinutes": 5},
    ],
    "nutrition": {"calories": 450, "protein": 25, "carbs": 40, "fats": 20, "fiber": 8},
    "tips": ["Optional cooking tip"],
    "tags": ["quick", "weeknight"],
}

RECIPE_PERSONA = (
    "You are a professional chef and nutritionist. Generate a creative, delicious recipe "
    "based on the following requirements:"
)

RECIPE_INSTRUCTIONS = """## INSTRUCTIONS:
1. Create ONE complete recipe using primarily the available ingredients
2. You may add 1-2 basic pantry staples if needed, never one listed under MUST AVOID
3. Respect every dietary restriction and never use an ingredient listed under MUST AVOID
4. Aim for the nutrition targets if provided
5. Keep cooking time under {cooking_time} minutes
6. Number the instruction steps 1, 2, 3, ... without gaps"""

MEAL_PLAN_PERSONA = (
    "You are a professional chef and nutritionist. Create a complete {days}-day meal plan "
    "that satisfies the following requirements:"
)

MEAL_PLAN_INSTRUCTIONS = """## INSTRUCTIONS:
1. Create a complete meal plan for {days} days with exactly {meals_per_day} meals per day
2. Use these meal types for each day, in this order: {meal_types}
3. Every meal must contain a complete recipe with ingredients and numbered steps
4. Respect every dietary restriction and never use an ingredient listed under MUST AVOID
5. Aim for the calorie and macronutrient targets
6. Keep each day varied and balanced"""

QUICK_DINNER_STYLES = {
    "super-fast": "a very fast and simple dish with minimal preparation",
    "easy": "a simple dish for an ordinary weeknight",
    "healthy": "a healthy, lower-calorie dish rich in vegetables and protein",
    "comfort": "a classic comfort-food dish",
}

QUICK_DINNER_TEMPLATE = """You are a professional chef. Suggest {description}.

## REQUIREMENTS:
- Maximum preparation time: {max_time} minutes
- Servings: {servings}
- Meal type: dinner
- Use commonly available ingredients"""

OUTPUT_CONTRACT = """## OUTPUT FORMAT:
Respond with a valid JSON object matching this exact structure:

```json
{example}
```

IMPORTANT: Return ONLY the JSON object, no additional text or markdown formatting."""
