import unittest
from datetime import date
from unittest.mock import patch

from fastapi.testclient import TestClient

from mealplan.api.api_run import app
from mealplan.api.routes.meals import get_repository
from mealplan.infra.Meal_Repository import StorageError
from mealplan.tests.helpers import fake_openai_client, make_memory_repository, pasta_lunch
from mealplan.ui import state as ui
from mealplan.ui.controller import (
    GENERATE_PLAN_FAILED,
    NO_MEALS_SELECTED,
    RELOAD_FAILED,
    SHOPPING_LIST_FAILED,
    SKIP_FAILED,
    PlannerController,
    RequestFailed,
    _check,
)
from mealplan.utilities.validators import MealPlanRequest

CLIENT_FACTORY = 'mealplan.api.api_ai._get_openai_client'


class TestPlannerController(unittest.TestCase):
    def setUp(self):
        self.repo = make_memory_repository()
        app.dependency_overrides[get_repository] = lambda: self.repo
        self.http = TestClient(app)
        self.controller = PlannerController(self.http, ui.initial_state(date(2024, 1, 3)))

    def tearDown(self):
        app.dependency_overrides.clear()

    def _seed(self, *meals):
        self.repo.replace_range_and_insert(list(meals))
        self.controller.load_week()

    def test_load_week_and_change_week(self):
        self._seed(pasta_lunch(date="2024-01-02"), pasta_lunch(date="2024-01-09", recipe_name="Next"))
        self.assertEqual([m["date"] for m in self.controller.state.meals], ["2024-01-02"])
        self.controller.change_week(1)
        self.assertEqual([m["recipe_name"] for m in self.controller.state.meals], ["Next"])

    def test_submit_generation_saves_and_reloads(self):
        form = MealPlanRequest(start_date=date(2024, 1, 1), end_date=date(2024, 1, 2), meals_per_day=1)
        self._seed(pasta_lunch(date="2024-01-01", recipe_name="Old"))
        generated = {"meals": [pasta_lunch(date="2024-01-01", recipe_name="New"),
                               pasta_lunch(date="2024-01-02", recipe_name="Also new")]}
        self.controller.state = ui.open_form(self.controller.state)
        with patch(CLIENT_FACTORY, return_value=fake_openai_client(generated)):
            state = self.controller.submit_generation(form)
        self.assertFalse(state.form_open)
        self.assertFalse(state.form_busy)
        self.assertIsNone(state.alert)
        self.assertEqual([m["recipe_name"] for m in state.meals], ["New", "Also new"])

    def test_submit_generation_failure_keeps_meals(self):
        self._seed(pasta_lunch(recipe_name="Old"))
        self.controller.state = ui.open_form(self.controller.state)
        with patch(CLIENT_FACTORY, return_value=fake_openai_client("not json")):
            state = self.controller.submit_generation()
        self.assertTrue(state.form_open)
        self.assertFalse(state.form_busy)
        self.assertEqual(state.alert, GENERATE_PLAN_FAILED)
        self.assertEqual([m["recipe_name"] for m in state.meals], ["Old"])
        self.assertEqual(len(self.repo.get_range("2024-01-01", "2024-01-07")), 1)

    def test_submit_generation_save_failure(self):
        self._seed(pasta_lunch(recipe_name="Old"))
        duplicated = {"meals": [pasta_lunch(recipe_name="A"), pasta_lunch(recipe_name="B")]}
        form = MealPlanRequest(start_date=date(2024, 1, 1), end_date=date(2024, 1, 7))
        with patch(CLIENT_FACTORY, return_value=fake_openai_client(duplicated)):
            state = self.controller.submit_generation(form)
        self.assertEqual(state.alert, GENERATE_PLAN_FAILED)
        self.assertEqual([m.recipe_name for m in self.repo.get_range("2024-01-01", "2024-01-07")], ["Old"])

    def test_submit_generation_reload_failure_after_save(self):
        self._seed(pasta_lunch(recipe_name="Old"))
        generated = {"meals": [pasta_lunch(recipe_name="New")]}
        form = MealPlanRequest(start_date=date(2024, 1, 1), end_date=date(2024, 1, 1))
        self.controller.state = ui.open_form(self.controller.state)
        with patch(CLIENT_FACTORY, return_value=fake_openai_client(generated)), \
                patch.object(self.repo, 'get_range', side_effect=StorageError("down")):
            state = self.controller.submit_generation(form)
        self.assertFalse(state.form_open)
        self.assertFalse(state.form_busy)
        self.assertEqual(state.alert, RELOAD_FAILED)
        self.assertEqual([m["recipe_name"] for m in state.meals], ["Old"])
        self.assertEqual([m.recipe_name for m in self.repo.get_range("2024-01-01", "2024-01-01")], ["New"])

    def test_load_week_failure_keeps_meals(self):
        self._seed(pasta_lunch(recipe_name="Old"))
        with patch.object(self.repo, 'get_range', side_effect=StorageError("down")):
            state = self.controller.load_week()
        self.assertEqual([m["recipe_name"] for m in state.meals], ["Old"])

    def test_error_status_raises_request_failed(self):
        resp = self.http.put('/api/meals/1/skip', json={})
        self.assertEqual(resp.status_code, 400)
        with self.assertRaises(RequestFailed) as ctx:
            _check(resp)
        self.assertEqual(ctx.exception.status_code, 400)
        _check(self.http.get('/api/health'))

    def test_toggle_skip_applies_after_confirmation(self):
        self._seed(pasta_lunch())
        meal_id = self.controller.state.meals[0]["id"]
        state = self.controller.toggle_skip(meal_id)
        self.assertTrue(state.meals[0]["skipped"])
        self.assertTrue(self.repo.get(meal_id).skipped)
        state = self.controller.toggle_skip(meal_id)
        self.assertFalse(state.meals[0]["skipped"])

    def test_toggle_skip_failure_leaves_flag(self):
        self._seed(pasta_lunch())
        meal_id = self.controller.state.meals[0]["id"]
        with patch.object(self.repo, 'set_skipped', side_effect=StorageError("down")):
            state = self.controller.toggle_skip(meal_id)
        self.assertFalse(state.meals[0]["skipped"])
        self.assertEqual(state.alert, SKIP_FAILED)

    def test_delete_meal(self):
        self._seed(pasta_lunch())
        meal_id = self.controller.state.meals[0]["id"]
        state = self.controller.delete_meal(meal_id)
        self.assertEqual(state.meals, [])
        self.assertIsNone(self.repo.get(meal_id))

    def test_shopping_list_from_selected_meals(self):
        self._seed(pasta_lunch(), pasta_lunch(meal_type="Dinner", ingredients=["rice"]))
        self.controller.open_shopping()
        payload = {"categories": [{"category": "Pantry", "items": ["pasta", "rice"]}]}
        client = fake_openai_client(payload)
        with patch(CLIENT_FACTORY, return_value=client):
            state = self.controller.generate_shopping_list()
        self.assertEqual(state.shopping.phase, ui.SHOPPING_GENERATED)
        self.assertEqual(state.shopping.categories, payload["categories"])
        sent = client.responses.create.call_args.kwargs["input"]
        for item in ("pasta", "tomato", "rice"):
            self.assertIn(item, sent)

    def test_empty_selection_is_rejected_before_any_call(self):
        self._seed(pasta_lunch())
        meal_id = self.controller.state.meals[0]["id"]
        self.controller.open_shopping()
        self.controller.toggle_shopping_selection(meal_id)
        with patch(CLIENT_FACTORY) as factory, patch.object(self.http, 'post', wraps=self.http.post) as post:
            state = self.controller.generate_shopping_list()
        factory.assert_not_called()
        post.assert_not_called()
        self.assertEqual(state.alert, NO_MEALS_SELECTED)
        self.assertEqual(state.shopping.phase, ui.SHOPPING_SELECTING)

    def test_shopping_list_failure(self):
        self._seed(pasta_lunch())
        self.controller.open_shopping()
        with patch(CLIENT_FACTORY, return_value=None):
            state = self.controller.generate_shopping_list()
        self.assertEqual(state.alert, SHOPPING_LIST_FAILED)
        self.assertFalse(state.shopping.busy)
        self.assertEqual(state.shopping.phase, ui.SHOPPING_SELECTING)


if __name__ == '__main__':
    unittest.main()
