from typing import Final

DATE_FORMAT: Final[str] = "%Y-%m-%d"
WEEK_STARTS_ON: Final[int] = 0  # Monday
CALORIES_LEVELS: Final[tuple[str, ...]] = ("low", "medium", "high")
MEALS_PER_DAY_DESCRIPTION: Final[dict[int, str]] = {
    1: "1 meal per day (Lunch)",
    2: "2 meals per day (Lunch and Dinner)",
    3: "3 meals per day (Breakfast, Lunch, and Dinner)",
}
MEAL_PLAN_PROMPT_TEMPLATE: Final[str] = (
    """Generate a meal plan from {start_date} to {end_date}.
  It's ok to cook a meal and eat it in two different occasions if the time of the meal plan is longer than 3 days, but don't make it happen too much. Please provide all the information and the text in {language}.
  Requirements:
  - Meals per day: {meals_description}
  - Calories level: {calories_level}
  - Vegetarian: {vegetarian}
  - Red Meat allowed: {red_meat}
  - Budget-friendly: {budget_friendly}
  - Additional notes: {notes}

  For each meal, provide:
  1. A descriptive recipe name.
  2. A detailed list of ingredients with exact measurements and quantities.
  3. Comprehensive, step-by-step cooking instructions that are clear, specific, and easy to follow for a home cook. Do not skip any steps.
  4. Estimated calories."""
)
SHOPPING_LIST_PROMPT_TEMPLATE: Final[str] = (
    """I have a list of ingredients from various recipes. Please consolidate them into a clean, categorized shopping list. Combine similar items and sum up quantities if possible.

  Ingredients list:
  {ingredients}
  """
)
MEAL_PLAN_JSON_SCHEMA: Final[dict] = {
    "type": "object",
    "properties": {
        "meals": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "date": {"type": "string", "description": "Date in YYYY-MM-DD format"},
                    "meal_type": {"type": "string", "description": "e.g., Breakfast, Lunch, Dinner"},
                    "recipe_name": {"type": "string"},
                    "ingredients": {"type": "array", "items": {"type": "string"}},
                    "instructions": {"type": "array", "items": {"type": "string"}},
                    "calories": {"type": "integer"},
                },
                "required": ["date", "meal_type", "recipe_name", "ingredients", "instructions", "calories"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["meals"],
    "additionalProperties": False,
}
SHOPPING_LIST_JSON_SCHEMA: Final[dict] = {
    "type": "object",
    "properties": {
        "categories": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "category": {"type": "string", "description": "e.g., Produce, Dairy, Meat, Pantry"},
                    "items": {"type": "array", "items": {"type": "string"}},
                },
                "required": ["category", "items"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["categories"],
    "additionalProperties": False,
}
