"""Calorie aggregation for the visible range."""
from collections import OrderedDict
from datetime import date as _date, datetime, timedelta
from typing import Any, Dict, Iterable

from mealplan.domain.MealRecord import MealRecord
from mealplan.utilities.constants import DATE_FORMAT


def compute_daily_calories(meals: Iterable[MealRecord], start: str, end: str) -> Dict[str, Any]:
    """Aggregate calories per day for [start, end], ignoring skipped meals.

    Returns structure:
    {
      'days': { 'YYYY-MM-DD': {'calories': int, 'meals': int, 'skipped': int}, ... },
      'total_calories': int
    }
    Every day of the range is present, even without meals.
    """
    first = datetime.strptime(start, DATE_FORMAT).date()
    last = datetime.strptime(end, DATE_FORMAT).date()
    days: Dict[str, Dict[str, int]] = OrderedDict()
    d: _date = first
    while d <= last:
        days[d.strftime(DATE_FORMAT)] = {'calories': 0, 'meals': 0, 'skipped': 0}
        d += timedelta(days=1)

    total = 0
    for meal in meals:
        bucket = days.get(meal.date)
        if bucket is None:
            continue
        if meal.skipped:
            bucket['skipped'] += 1
            continue
        cals = meal.calories or 0
        bucket['calories'] += cals
        bucket['meals'] += 1
        total += cals

    return {'days': days, 'total_calories': total}


__all__ = ["compute_daily_calories"]
