"""Shared fixtures for the test modules: in-memory database and a fake OpenAI client."""
import json
from types import SimpleNamespace
from unittest.mock import MagicMock

from mealplan.infra.Meal_Repository import MealRepository
from mealplan.infra.database import make_engine


def make_memory_repository() -> MealRepository:
    repo = MealRepository(make_engine("sqlite://"))
    repo.initialize()
    return repo


def fake_openai_client(payload) -> MagicMock:
    """Client whose responses.create returns payload (JSON-encoded unless already a str)."""
    client = MagicMock()
    text = payload if isinstance(payload, str) else json.dumps(payload)
    client.responses.create.return_value = SimpleNamespace(output_text=text)
    return client


def pasta_lunch(**overrides):
    meal = {
        "date": "2024-01-01",
        "meal_type": "Lunch",
        "recipe_name": "Pasta",
        "ingredients": ["pasta", "tomato"],
        "instructions": ["boil", "mix"],
        "calories": 500,
    }
    meal.update(overrides)
    return meal
