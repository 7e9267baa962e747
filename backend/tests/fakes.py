"""Test doubles and canned provider replies shared by the test modules."""

import json

from mealgen.services.llm.generation_client import ProviderReply
from mealgen.services.llm.prompt_builder import meal_types_for
from mealgen.services.llm.prompts import RECIPE_EXAMPLE


class FakeTransport:
    """Replays scripted replies; an Exception in the script is raised instead of returned."""

    model = "fake/test-model"

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.prompts = []

    def call(self, prompt, *, prompt_name, prompt_version):
        self.prompts.append((prompt_name, prompt))
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, ProviderReply):
            return reply
        return ProviderReply(text=reply)


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def recipe_dict(name="Garlic Chicken", ingredients=None, meal_type="dinner"):
    recipe = json.loads(json.dumps(RECIPE_EXAMPLE))
    recipe["name"] = name
    recipe["mealType"] = meal_type
    recipe["ingredients"] = ingredients or [
        {"name": "chicken breast", "amount": "2", "unit": "pieces"},
        {"name": "garlic", "amount": "3", "unit": "cloves"},
    ]
    recipe["instructions"] = [
        {"step": 1, "instruction": "Season the chicken", "timeMinutes": 5},
        {"step": 2, "instruction": "Pan-fry with garlic", "timeMinutes": 15},
    ]
    return recipe


def meal_plan_text(days=3, meals_per_day=3, ingredients=None):
    plans = [
        {
            "day": day,
            "meals": [
                {"type": meal_type, "recipe": recipe_dict(f"Day {day} {meal_type}", ingredients, meal_type)}
                for meal_type in meal_types_for(meals_per_day)
            ],
        }
        for day in range(1, days + 1)
    ]
    return json.dumps({"daily_plans": plans})



def recipe_text(**kwargs):
    return json.dumps(recipe_dict(**kwargs))



def auth(user="user-a"):
    return {"Authorization": f"Bearer {user}"}


class EchoVerifier:
    """Tests authenticate as whatever token follows the bearer scheme."""

    def __init__(self):
        self.tokens = []

    def verify(self, token):
        self.tokens.append(token)
        return token
