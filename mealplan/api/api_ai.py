import json
import logging
from json import JSONDecodeError
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException
from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from mealplan.domain.ShoppingListCategory import ShoppingListCategory
from mealplan.utilities.config import GENERATION_LANGUAGE, OPENAI_API_KEY, OPENAI_MODEL
from mealplan.utilities.constants import (
    DATE_FORMAT,
    MEAL_PLAN_JSON_SCHEMA,
    MEAL_PLAN_PROMPT_TEMPLATE,
    MEALS_PER_DAY_DESCRIPTION,
    SHOPPING_LIST_JSON_SCHEMA,
    SHOPPING_LIST_PROMPT_TEMPLATE,
)
from mealplan.utilities.validators import MealPlanRequest, ShoppingListRequest

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """The AI model call failed or returned something unusable."""


# === Helper: Get OpenAI Client ===
def _get_openai_client() -> Optional[OpenAI]:
    """Return an OpenAI client if OPENAI_API_KEY is set, otherwise None."""
    if not OPENAI_API_KEY:
        return None
    return OpenAI(api_key=OPENAI_API_KEY)


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def build_meal_plan_prompt(request: MealPlanRequest, language: str = GENERATION_LANGUAGE) -> str:
    """Render the natural-language prompt for a meal plan request."""
    return MEAL_PLAN_PROMPT_TEMPLATE.format(
        start_date=request.start_date.strftime(DATE_FORMAT),
        end_date=request.end_date.strftime(DATE_FORMAT),
        language=language,
        meals_description=MEALS_PER_DAY_DESCRIPTION.get(request.meals_per_day, MEALS_PER_DAY_DESCRIPTION[3]),
        calories_level=request.calories_level,
        vegetarian=_yes_no(request.vegetarian),
        red_meat=_yes_no(request.red_meat),
        budget_friendly=_yes_no(request.budget_friendly),
        notes=request.notes or "None",
    )


def build_shopping_list_prompt(ingredients: List[str]) -> str:
    return SHOPPING_LIST_PROMPT_TEMPLATE.format(ingredients="\n".join(ingredients))


# === Structured call ===
def _generate_structured(prompt: str, schema_name: str, schema: Dict[str, Any]) -> Dict[str, Any]:
    """Send one prompt constrained to a JSON schema and return the decoded object.

    Raises:
        GenerationError: on missing credentials, API failure, empty or non-JSON output.
    """
    client = _get_openai_client()
    if client is None:
        raise GenerationError("OPENAI_API_KEY not set, cannot generate content")

    try:
        response = client.responses.create(
            model=OPENAI_MODEL,
            input=prompt,
            text={
                "format": {
                    "type": "json_schema",
                    "name": schema_name,
                    "schema": schema,
                    "strict": True,
                }
            },
        )
    except OpenAIError as e:
        logger.exception("AI call for %s failed", schema_name)
        raise GenerationError(f"AI request failed: {e}") from e

    raw = (response.output_text or "").strip()
    if not raw:
        raise GenerationError("AI returned an empty response")
    try:
        parsed = json.loads(raw)
    except JSONDecodeError as e:
        logger.error("AI output for %s is not valid JSON: %.200s", schema_name, raw)
        raise GenerationError("AI response is not valid JSON") from e
    if not isinstance(parsed, dict):
        raise GenerationError("AI response does not match the requested schema")
    return parsed


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def _check_meal(meal: Any) -> Dict[str, Any]:
    if not isinstance(meal, dict):
        raise GenerationError("AI returned a meal that is not an object")
    for key in ("date", "meal_type", "recipe_name"):
        if not isinstance(meal.get(key), str):
            raise GenerationError(f"AI meal is missing '{key}'")
    for key in ("ingredients", "instructions"):
        if not _is_str_list(meal.get(key)):
            raise GenerationError(f"AI meal field '{key}' is not a list of strings")
    calories = meal.get("calories")
    if calories is not None and (isinstance(calories, bool) or not isinstance(calories, int)):
        raise GenerationError("AI meal field 'calories' is not an integer")
    return {
        "date": meal["date"],
        "meal_type": meal["meal_type"],
        "recipe_name": meal["recipe_name"],
        "ingredients": meal["ingredients"],
        "instructions": meal["instructions"],
        "calories": calories,
    }


# === Meal Plan Generation ===
def generate_meal_plan(request: MealPlanRequest) -> List[Dict[str, Any]]:
    """Ask the model for a meal plan matching the form.

    Day/slot coverage and date range are left to the model; the caller
    persists the result.
    """
    logger.info("Generating meal plan %s..%s (%d meals/day)",
                request.start_date, request.end_date, request.meals_per_day)
    parsed = _generate_structured(build_meal_plan_prompt(request), "meal_plan", MEAL_PLAN_JSON_SCHEMA)
    meals = parsed.get("meals")
    if not isinstance(meals, list):
        raise GenerationError("AI response has no 'meals' list")
    return [_check_meal(m) for m in meals]


# === Shopping List Generation ===
def generate_shopping_list(ingredients: List[str]) -> List[ShoppingListCategory]:
    """Consolidate a flat ingredient list into categories. Empty input is rejected before any call."""
    if not ingredients:
        raise GenerationError("Select at least one meal with ingredients")
    logger.info("Generating shopping list from %d ingredients", len(ingredients))
    parsed = _generate_structured(build_shopping_list_prompt(ingredients), "shopping_list", SHOPPING_LIST_JSON_SCHEMA)
    categories = parsed.get("categories")
    if not isinstance(categories, list):
        raise GenerationError("AI response has no 'categories' list")
    result = []
    for entry in categories:
        if not isinstance(entry, dict):
            raise GenerationError("AI returned a shopping category that is not an object")
        try:
            result.append(ShoppingListCategory.from_dict(entry))
        except ValueError as e:
            raise GenerationError(str(e)) from e
    return result


# === FastAPI Endpoints ===
router = APIRouter(prefix="/api/generate")


@router.post("/meal-plan")
def generate_meal_plan_endpoint(payload: Any = Body(...)):
    try:
        request = MealPlanRequest.model_validate(payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    try:
        return generate_meal_plan(request)
    except GenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/shopping-list")
def generate_shopping_list_endpoint(payload: Any = Body(...)):
    try:
        request = ShoppingListRequest.model_validate(payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not request.ingredients:
        raise HTTPException(status_code=400, detail="Select at least one meal with ingredients")
    try:
        return [c.to_dict() for c in generate_shopping_list(request.ingredients)]
    except GenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))
