"""
Input validation schemas using Pydantic for better data integrity.
"""
from datetime import date, datetime, timedelta
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from mealplan.utilities.constants import CALORIES_LEVELS, DATE_FORMAT


def _today() -> date:
    return date.today()


def _week_from_today() -> date:
    return date.today() + timedelta(days=6)


class MealPlanRequest(BaseModel):
    """Snapshot of the plan-generation form.

    Accepts both the camelCase names posted by the browser and the
    snake_case attribute names.
    """
    model_config = ConfigDict(populate_by_name=True)

    start_date: date = Field(default_factory=_today, alias="startDate")
    end_date: date = Field(default_factory=_week_from_today, alias="endDate")
    meals_per_day: int = Field(3, ge=1, le=3, alias="mealsPerDay")
    calories_level: str = Field("medium", alias="caloriesLevel")
    vegetarian: bool = False
    red_meat: bool = Field(True, alias="redMeat")
    budget_friendly: bool = Field(True, alias="budgetFriendly")
    notes: str = ""

    @field_validator('calories_level')
    @classmethod
    def validate_calories_level(cls, v):
        """Restrict calorie level to low/medium/high."""
        v = (v or "").strip().lower()
        if v not in CALORIES_LEVELS:
            raise ValueError(f"caloriesLevel must be one of {', '.join(CALORIES_LEVELS)}")
        return v

    @field_validator('notes')
    @classmethod
    def strip_notes(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode='after')
    def validate_range(self):
        if self.end_date < self.start_date:
            raise ValueError('endDate must not be before startDate')
        return self


class SkipInput(BaseModel):
    """Body of the skip toggle endpoint."""
    skipped: bool


class ShoppingListRequest(BaseModel):
    """Flat ingredient list sent to shopping-list generation."""
    ingredients: List[str] = Field(default_factory=list)

    @field_validator('ingredients')
    @classmethod
    def drop_blank(cls, v):
        """Filter out empty ingredient strings."""
        return [i for i in v if i and i.strip()]


def is_iso_date(value) -> bool:
    """True for a zero-padded YYYY-MM-DD calendar date (the stored, sortable form)."""
    if not isinstance(value, str):
        return False
    try:
        return datetime.strptime(value, DATE_FORMAT).strftime(DATE_FORMAT) == value
    except ValueError:
        return False
