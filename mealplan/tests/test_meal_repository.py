import json
import unittest

from mealplan.infra.Meal_Repository import MealRepository, SaveError, StorageError
from mealplan.infra.database import make_engine
from mealplan.tests.helpers import make_memory_repository, pasta_lunch


class TestMealRepository(unittest.TestCase):
    def setUp(self):
        self.repo = make_memory_repository()

    def _dump(self):
        return [(m.date, m.meal_type, m.recipe_name, m.skipped)
                for m in self.repo.get_range("0000-01-01", "9999-12-31")]

    def test_initialize_is_idempotent(self):
        self.repo.replace_range_and_insert([pasta_lunch()])
        self.repo.initialize()
        self.assertEqual(len(self.repo.get_range("2024-01-01", "2024-01-01")), 1)

    def test_range_is_inclusive_and_sorted(self):
        self.repo.replace_range_and_insert([
            pasta_lunch(date="2024-01-03", meal_type="Lunch"),
            pasta_lunch(date="2024-01-01", meal_type="Lunch"),
            pasta_lunch(date="2024-01-01", meal_type="Dinner"),
            pasta_lunch(date="2024-01-02", meal_type="Breakfast"),
            pasta_lunch(date="2024-01-04", meal_type="Lunch"),
            pasta_lunch(date="2023-12-31", meal_type="Lunch"),
        ])
        meals = self.repo.get_range("2024-01-01", "2024-01-03")
        self.assertEqual(
            [(m.date, m.meal_type) for m in meals],
            [("2024-01-01", "Dinner"), ("2024-01-01", "Lunch"),
             ("2024-01-02", "Breakfast"), ("2024-01-03", "Lunch")],
        )

    def test_replace_range_clears_only_that_range(self):
        self.repo.replace_range_and_insert([
            pasta_lunch(date="2024-01-01", recipe_name="Old Monday"),
            pasta_lunch(date="2024-01-02", recipe_name="Old Tuesday"),
            pasta_lunch(date="2024-01-08", recipe_name="Next week"),
        ])
        count = self.repo.replace_range_and_insert(
            [pasta_lunch(date="2024-01-01", recipe_name="New Monday")], "2024-01-01", "2024-01-07")
        self.assertEqual(count, 1)
        names = [m.recipe_name for m in self.repo.get_range("2024-01-01", "2024-01-31")]
        self.assertEqual(names, ["New Monday", "Next week"])

    def test_inserted_meals_are_never_skipped(self):
        self.repo.replace_range_and_insert([pasta_lunch(skipped=True)], "2024-01-01", "2024-01-01")
        meal = self.repo.get_range("2024-01-01", "2024-01-01")[0]
        self.assertFalse(meal.skipped)

    def test_failure_mid_batch_leaves_table_untouched(self):
        self.repo.replace_range_and_insert([
            pasta_lunch(date="2024-01-01", recipe_name="Keep me"),
            pasta_lunch(date="2024-01-02", recipe_name="Keep me too"),
        ])
        before = self._dump()
        bad_batch = [
            pasta_lunch(date="2024-01-01", recipe_name="New"),
            {"date": "2024-01-02", "meal_type": "Lunch"},  # no recipe_name
        ]
        with self.assertRaises(SaveError):
            self.repo.replace_range_and_insert(bad_batch, "2024-01-01", "2024-01-07")
        self.assertEqual(self._dump(), before)

    def test_duplicate_slot_in_batch_is_rejected(self):
        self.repo.replace_range_and_insert([pasta_lunch(recipe_name="Original")])
        batch = [pasta_lunch(recipe_name="A"), pasta_lunch(recipe_name="B")]
        with self.assertRaises(SaveError):
            self.repo.replace_range_and_insert(batch, "2024-01-01", "2024-01-01")
        self.assertEqual([m.recipe_name for m in self.repo.get_range("2024-01-01", "2024-01-01")], ["Original"])

    def test_save_without_range_does_not_delete(self):
        self.repo.replace_range_and_insert([pasta_lunch(meal_type="Lunch")])
        self.repo.replace_range_and_insert([pasta_lunch(meal_type="Dinner")], "2024-01-01", None)
        self.assertEqual(len(self.repo.get_range("2024-01-01", "2024-01-01")), 2)

    def test_malformed_entries_raise_save_error(self):
        for bad in (
            "not a meal",
            pasta_lunch(ingredients="pasta"),
            pasta_lunch(ingredients=42),
            pasta_lunch(date="01/01/2024"),
            pasta_lunch(calories="lots"),
            pasta_lunch(calories="500"),
            pasta_lunch(calories=512.9),
            pasta_lunch(calories=True),
        ):
            with self.subTest(bad=bad):
                with self.assertRaises(SaveError):
                    self.repo.replace_range_and_insert([bad])
        self.assertEqual(self._dump(), [])

    def test_whole_float_calories_are_stored_as_int(self):
        self.repo.replace_range_and_insert([pasta_lunch(calories=640.0), pasta_lunch(meal_type="Dinner", calories=None)])
        stored = {m.meal_type: m.calories for m in self.repo.get_range("2024-01-01", "2024-01-01")}
        self.assertEqual(stored, {"Lunch": 640, "Dinner": None})
        self.assertIsInstance(stored["Lunch"], int)

    def test_lists_round_trip(self):
        ingredients = ["200 g spaghetti", "2 pomodori", "sale q.b."]
        instructions = ["Bollire l'acqua", "Cuocere la pasta", "Servire"]
        self.repo.replace_range_and_insert([pasta_lunch(ingredients=ingredients, instructions=instructions)])
        meal = self.repo.get_range("2024-01-01", "2024-01-01")[0]
        self.assertEqual(json.loads(meal.ingredients), ingredients)
        self.assertEqual(meal.ingredients_list(), ingredients)
        self.assertEqual(meal.instructions_list(), instructions)

    def test_set_skipped(self):
        self.repo.replace_range_and_insert([pasta_lunch()])
        meal = self.repo.get_range("2024-01-01", "2024-01-01")[0]
        self.repo.set_skipped(meal.id, True)
        self.assertTrue(self.repo.get(meal.id).skipped)
        self.repo.set_skipped(meal.id, False)
        self.assertFalse(self.repo.get(meal.id).skipped)

    def test_set_skipped_unknown_id_is_noop(self):
        self.repo.set_skipped(999, True)
        self.assertIsNone(self.repo.get(999))
        self.assertEqual(self._dump(), [])

    def test_delete(self):
        self.repo.replace_range_and_insert([pasta_lunch(), pasta_lunch(meal_type="Dinner")])
        lunch = [m for m in self.repo.get_range("2024-01-01", "2024-01-01") if m.meal_type == "Lunch"][0]
        self.repo.delete(lunch.id)
        self.repo.delete(12345)
        self.assertEqual([m.meal_type for m in self.repo.get_range("2024-01-01", "2024-01-01")], ["Dinner"])

    def test_unavailable_database_raises_storage_error(self):
        repo = MealRepository(make_engine("sqlite:////nonexistent-dir/for/tests/meals.db"))
        with self.assertRaises(StorageError):
            repo.get_range("2024-01-01", "2024-01-07")


if __name__ == '__main__':
    unittest.main()
