import logging
from typing import Optional

import httpx

from mealplan.ui import state as ui
from mealplan.ui.state import UIState
from mealplan.utilities.constants import DATE_FORMAT
from mealplan.utilities.validators import MealPlanRequest

logger = logging.getLogger(__name__)

GENERATE_PLAN_FAILED = "Failed to generate meal plan. Please try again."
SHOPPING_LIST_FAILED = "Failed to generate shopping list. Please try again."
NO_MEALS_SELECTED = "Please select at least one meal."
SKIP_FAILED = "Failed to skip meal."
DELETE_FAILED = "Failed to delete meal."
RELOAD_FAILED = "Meal plan saved, but the calendar could not be refreshed."


class RequestFailed(Exception):
    """The API answered with a non-2xx status."""

    def __init__(self, status_code: int, detail: str = ""):
        super().__init__(f"HTTP {status_code} {detail}".strip())
        self.status_code = status_code


# Transport errors, error statuses and undecodable bodies
REQUEST_ERRORS = (RequestFailed, httpx.HTTPError, ValueError)


def _check(resp) -> None:
    # Only is_success is used so TestClient responses behave like httpx ones
    if not resp.is_success:
        raise RequestFailed(resp.status_code, resp.text)


class PlannerController:
    """Drives UIState transitions against the HTTP API.

    The generation endpoints and the meal endpoints are reached through the
    same ``httpx.Client`` (any client with a base URL, including FastAPI's
    TestClient).
    """

    def __init__(self, http: httpx.Client, state: Optional[UIState] = None):
        self.http = http
        self.state = state or ui.initial_state()

    # -------------------- Calendar --------------------
    def _fetch_week(self) -> None:
        start, end = ui.week_bounds(self.state)
        resp = self.http.get("/api/meals", params={
            "startDate": start.strftime(DATE_FORMAT),
            "endDate": end.strftime(DATE_FORMAT),
        })
        _check(resp)
        self.state = ui.set_meals(self.state, resp.json())

    def load_week(self) -> UIState:
        """Reload the visible week; failures are logged and the previous meals kept."""
        try:
            self._fetch_week()
        except REQUEST_ERRORS as e:
            logger.error("Failed to load meals: %s", e)
        return self.state

    def _goto(self, new_state: UIState) -> UIState:
        old_week = ui.week_bounds(self.state)
        self.state = new_state
        if ui.week_bounds(new_state) != old_week:
            self.load_week()
        return self.state

    def change_week(self, weeks: int) -> UIState:
        return self._goto(ui.shift_week(self.state, weeks))

    def go_today(self) -> UIState:
        return self._goto(ui.go_today(self.state))

    def select_date(self, day) -> UIState:
        self.state = ui.select_date(self.state, day)
        return self.state

    # -------------------- Generation --------------------
    def submit_generation(self, form: Optional[MealPlanRequest] = None) -> UIState:
        """Generate, save and reload.

        A failed generation or save re-enables the form with an alert. Once the
        save succeeded the form closes even if the reload fails.
        """
        if form is not None:
            self.state = self.state.model_copy(update={"form": form})
        form = self.state.form
        self.state = ui.begin_generation(self.state)
        try:
            resp = self.http.post("/api/generate/meal-plan", json=form.model_dump(mode="json", by_alias=True))
            _check(resp)
            meal_plan = resp.json()
            resp = self.http.post("/api/meals/save", json={
                "mealPlan": meal_plan,
                "startDate": form.start_date.strftime(DATE_FORMAT),
                "endDate": form.end_date.strftime(DATE_FORMAT),
            })
            _check(resp)
        except REQUEST_ERRORS as e:
            logger.error("Failed to generate plan: %s", e)
            self.state = ui.end_generation(self.state, GENERATE_PLAN_FAILED)
            return self.state
        self.state = ui.end_generation(self.state)
        try:
            self._fetch_week()
        except REQUEST_ERRORS as e:
            logger.error("Meal plan saved but reload failed: %s", e)
            self.state = self.state.model_copy(update={"alert": RELOAD_FAILED})
        return self.state

    # -------------------- Meals --------------------
    def toggle_skip(self, meal_id: int) -> UIState:
        """Flip the skipped flag; the local state changes only after the server confirms."""
        meal = next((m for m in self.state.meals if m.get("id") == meal_id), None)
        if meal is None:
            return self.state
        skipped = not meal.get("skipped", False)
        try:
            resp = self.http.put(f"/api/meals/{meal_id}/skip", json={"skipped": skipped})
            _check(resp)
        except REQUEST_ERRORS as e:
            logger.error("Failed to toggle skip for meal %s: %s", meal_id, e)
            self.state = self.state.model_copy(update={"alert": SKIP_FAILED})
            return self.state
        self.state = ui.apply_skip(self.state, meal_id, skipped)
        return self.state

    def delete_meal(self, meal_id: int) -> UIState:
        try:
            resp = self.http.delete(f"/api/meals/{meal_id}")
            _check(resp)
        except REQUEST_ERRORS as e:
            logger.error("Failed to delete meal %s: %s", meal_id, e)
            self.state = self.state.model_copy(update={"alert": DELETE_FAILED})
            return self.state
        self.state = ui.remove_meal(self.state, meal_id)
        return self.state

    # -------------------- Shopping --------------------
    def open_shopping(self) -> UIState:
        self.state = ui.open_shopping(self.state)
        return self.state

    def toggle_shopping_selection(self, meal_id: int) -> UIState:
        self.state = ui.toggle_shopping_selection(self.state, meal_id)
        return self.state

    def generate_shopping_list(self) -> UIState:
        """Generate the list for the selected meals; an empty selection never reaches the API."""
        ingredients = ui.selected_ingredients(self.state)
        if not ingredients:
            self.state = self.state.model_copy(update={"alert": NO_MEALS_SELECTED})
            return self.state
        self.state = ui.begin_shopping_list(self.state)
        try:
            resp = self.http.post("/api/generate/shopping-list", json={"ingredients": ingredients})
            _check(resp)
            categories = resp.json()
        except REQUEST_ERRORS as e:
            logger.error("Failed to generate shopping list: %s", e)
            self.state = ui.shopping_failed(self.state, SHOPPING_LIST_FAILED)
            return self.state
        self.state = ui.set_shopping_list(self.state, categories)
        return self.state
