"""Shopping list input builder.

Provides collect_ingredients(meals, selected_ids): the flat ingredient list
sent to shopping-list generation. Consolidation itself is left to the model.
"""
from typing import Iterable, List, Optional

from mealplan.domain.MealRecord import MealRecord


def default_selection(meals: Iterable[MealRecord]) -> List[int]:
    """Ids of the meals preselected when the shopping flow opens (all non-skipped)."""
    return [m.id for m in meals if not m.skipped and m.id is not None]


def collect_ingredients(meals: Iterable[MealRecord], selected_ids: Optional[Iterable[int]] = None) -> List[str]:
    """Flatten decoded ingredient lists of the selected meals, keeping meal order.

    Args:
        meals: MealRecords of the visible week.
        selected_ids: ids to include; None means every meal.

    Returns:
        Ingredient strings in meal order, duplicates preserved.
    """
    wanted = None if selected_ids is None else set(selected_ids)
    ingredients: List[str] = []
    for meal in meals:
        if wanted is not None and meal.id not in wanted:
            continue
        ingredients.extend(meal.ingredients_list())
    return ingredients


__all__ = ['collect_ingredients', 'default_selection']
