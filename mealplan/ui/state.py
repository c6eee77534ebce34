"""Explicit UI state for the calendar page.

Every transition is a pure function ``(UIState, ...) -> UIState``; nothing
here performs I/O. ``PlannerController`` decides when the API is called and
feeds the results back through these functions.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from mealplan.domain.MealRecord import MealRecord
from mealplan.logic.shopping.list_builder import collect_ingredients, default_selection
from mealplan.utilities.constants import DATE_FORMAT
from mealplan.utilities.validators import MealPlanRequest

SHOPPING_CLOSED = "closed"
SHOPPING_SELECTING = "selecting"
SHOPPING_GENERATED = "generated"


class ShoppingState(BaseModel):
    model_config = ConfigDict(frozen=True)

    phase: str = SHOPPING_CLOSED
    selected_ids: List[int] = Field(default_factory=list)
    categories: List[Dict[str, Any]] = Field(default_factory=list)
    busy: bool = False


class UIState(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_date: date
    selected_date: date
    meals: List[Dict[str, Any]] = Field(default_factory=list)
    form: MealPlanRequest = Field(default_factory=MealPlanRequest)
    form_open: bool = False
    form_busy: bool = False
    detail_meal_id: Optional[int] = None
    shopping: ShoppingState = Field(default_factory=ShoppingState)
    alert: Optional[str] = None


def initial_state(today: Optional[date] = None) -> UIState:
    today = today or date.today()
    return UIState(current_date=today, selected_date=today)


# -------------------- Calendar --------------------
def week_bounds(state: UIState) -> Tuple[date, date]:
    """Monday and Sunday of the week containing current_date."""
    monday = state.current_date - timedelta(days=state.current_date.weekday())
    return monday, monday + timedelta(days=6)


def week_days(state: UIState) -> List[date]:
    monday, _ = week_bounds(state)
    return [monday + timedelta(days=i) for i in range(7)]


def shift_week(state: UIState, weeks: int) -> UIState:
    return state.model_copy(update={"current_date": state.current_date + timedelta(weeks=weeks)})


def go_today(state: UIState, today: Optional[date] = None) -> UIState:
    return state.model_copy(update={"current_date": today or date.today()})


def select_date(state: UIState, day: date) -> UIState:
    return state.model_copy(update={"selected_date": day})


def set_meals(state: UIState, meals: List[Dict[str, Any]]) -> UIState:
    return state.model_copy(update={"meals": list(meals)})


def meals_for_date(state: UIState, day: date) -> List[Dict[str, Any]]:
    key = day.strftime(DATE_FORMAT)
    return [m for m in state.meals if m.get("date") == key]


def meals_for_selected_date(state: UIState) -> List[Dict[str, Any]]:
    return meals_for_date(state, state.selected_date)


def remove_meal(state: UIState, meal_id: int) -> UIState:
    detail = None if state.detail_meal_id == meal_id else state.detail_meal_id
    return state.model_copy(update={
        "meals": [m for m in state.meals if m.get("id") != meal_id],
        "detail_meal_id": detail,
    })


# -------------------- Generation form --------------------
def open_form(state: UIState) -> UIState:
    return state.model_copy(update={"form_open": True})


def update_form(state: UIState, **changes: Any) -> UIState:
    """Return a state whose form snapshot has the given fields replaced (validated)."""
    data = state.form.model_dump()
    data.update(changes)
    return state.model_copy(update={"form": MealPlanRequest.model_validate(data)})


def close_form(state: UIState) -> UIState:
    if state.form_busy:
        return state
    return state.model_copy(update={"form_open": False})


def begin_generation(state: UIState) -> UIState:
    return state.model_copy(update={"form_busy": True, "alert": None})


def end_generation(state: UIState, error: Optional[str] = None) -> UIState:
    """Finish a submission: success closes the form, failure re-enables it with an alert."""
    if error:
        return state.model_copy(update={"form_busy": False, "alert": error})
    return state.model_copy(update={"form_busy": False, "form_open": False})


# -------------------- Meal detail --------------------
def open_detail(state: UIState, meal_id: int) -> UIState:
    return state.model_copy(update={"detail_meal_id": meal_id})


def close_detail(state: UIState) -> UIState:
    return state.model_copy(update={"detail_meal_id": None})


def detail_meal(state: UIState) -> Optional[Dict[str, Any]]:
    if state.detail_meal_id is None:
        return None
    return next((m for m in state.meals if m.get("id") == state.detail_meal_id), None)


def apply_skip(state: UIState, meal_id: int, skipped: bool) -> UIState:
    """Set the skipped flag of one in-memory meal (called once the server confirmed)."""
    meals = [dict(m, skipped=skipped) if m.get("id") == meal_id else m for m in state.meals]
    return state.model_copy(update={"meals": meals})


# -------------------- Shopping flow --------------------
def _records(state: UIState) -> List[MealRecord]:
    return [MealRecord.from_dict(m) for m in state.meals]


def open_shopping(state: UIState) -> UIState:
    """Start the shopping flow with every non-skipped meal of the week selected."""
    shopping = ShoppingState(phase=SHOPPING_SELECTING, selected_ids=default_selection(_records(state)))
    return state.model_copy(update={"shopping": shopping})


def toggle_shopping_selection(state: UIState, meal_id: int) -> UIState:
    selected = list(state.shopping.selected_ids)
    if meal_id in selected:
        selected.remove(meal_id)
    else:
        selected.append(meal_id)
    return state.model_copy(update={"shopping": state.shopping.model_copy(update={"selected_ids": selected})})


def selected_ingredients(state: UIState) -> List[str]:
    return collect_ingredients(_records(state), state.shopping.selected_ids)


def begin_shopping_list(state: UIState) -> UIState:
    shopping = state.shopping.model_copy(update={"busy": True})
    return state.model_copy(update={"shopping": shopping, "alert": None})


def set_shopping_list(state: UIState, categories: List[Dict[str, Any]]) -> UIState:
    shopping = state.shopping.model_copy(update={
        "phase": SHOPPING_GENERATED, "categories": list(categories), "busy": False,
    })
    return state.model_copy(update={"shopping": shopping})


def shopping_failed(state: UIState, message: str) -> UIState:
    shopping = state.shopping.model_copy(update={"busy": False})
    return state.model_copy(update={"shopping": shopping, "alert": message})


def reset_shopping_list(state: UIState) -> UIState:
    """Go back from a generated list to meal selection."""
    shopping = state.shopping.model_copy(update={"phase": SHOPPING_SELECTING, "categories": []})
    return state.model_copy(update={"shopping": shopping})


def close_shopping(state: UIState) -> UIState:
    if state.shopping.busy:
        return state
    return state.model_copy(update={"shopping": ShoppingState()})


def dismiss_alert(state: UIState) -> UIState:
    return state.model_copy(update={"alert": None})
