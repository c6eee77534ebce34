import json
import logging
from collections.abc import Mapping
from datetime import date
from typing import Any, Iterable, List, Optional, Union

from sqlalchemy import delete, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from mealplan.domain.MealRecord import MealRecord
from mealplan.infra.database import Base, MealPlanRow, get_engine
from mealplan.utilities.constants import DATE_FORMAT
from mealplan.utilities.validators import is_iso_date

logger = logging.getLogger(__name__)

DateLike = Union[str, date]


class StorageError(Exception):
    """The database could not be read or written."""


class SaveError(StorageError):
    """A replace-and-insert batch was rejected; nothing was changed."""


def _date_key(value: DateLike) -> str:
    if isinstance(value, date):
        return value.strftime(DATE_FORMAT)
    return str(value)


def _to_record(row: MealPlanRow) -> MealRecord:
    return MealRecord(
        id=row.id,
        date=row.date,
        meal_type=row.meal_type,
        recipe_name=row.recipe_name,
        ingredients=row.ingredients,
        instructions=row.instructions,
        calories=row.calories,
        skipped=bool(row.skipped),
    )


def _encode_steps(value: Any) -> str:
    """Encode a list of strings; an already encoded JSON array is re-encoded canonically."""
    if isinstance(value, str):
        value = json.loads(value)
        if not isinstance(value, list):
            raise ValueError("Expected a JSON array")
    return MealRecord.encode_list(value)


def _to_row(meal: Any) -> MealPlanRow:
    """Build a new row from a generated meal dict; skipped is always reset."""
    if isinstance(meal, MealRecord):
        meal = meal.to_dict()
    if not isinstance(meal, Mapping):
        raise TypeError(f"Meal entry must be an object, got {type(meal).__name__}")
    for key in ("date", "meal_type", "recipe_name"):
        if not isinstance(meal.get(key), str) or not meal[key].strip():
            raise ValueError(f"Meal entry is missing '{key}'")
    if not is_iso_date(meal["date"]):
        raise ValueError(f"Meal date '{meal['date']}' is not YYYY-MM-DD")

    calories = meal.get("calories")
    if calories is not None:
        if isinstance(calories, float) and calories.is_integer():
            calories = int(calories)
        if isinstance(calories, bool) or not isinstance(calories, int):
            raise TypeError(f"calories must be an integer, got {calories!r}")
    return MealPlanRow(
        date=meal["date"],
        meal_type=meal["meal_type"],
        recipe_name=meal["recipe_name"],
        ingredients=_encode_steps(meal.get("ingredients")),
        instructions=_encode_steps(meal.get("instructions")),
        calories=calories,
        skipped=False,
    )


class MealRepository:
    """Relational storage for MealRecords (table ``meal_plans``)."""

    def __init__(self, engine: Optional[Engine] = None):
        self.engine = engine or get_engine()
        self._Session = sessionmaker(bind=self.engine, expire_on_commit=False)

    def initialize(self) -> None:
        """Create the meal table if it does not exist yet. Safe on every startup."""
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            logger.exception("Failed to initialize meal table")
            raise StorageError("Failed to initialize database") from e

    def get_range(self, start: DateLike, end: DateLike) -> List[MealRecord]:
        """Return meals with start <= date <= end ordered by date, then meal_type."""
        stmt = (
            select(MealPlanRow)
            .where(MealPlanRow.date >= _date_key(start), MealPlanRow.date <= _date_key(end))
            .order_by(MealPlanRow.date.asc(), MealPlanRow.meal_type.asc())
        )
        try:
            with self._Session() as session:
                return [_to_record(row) for row in session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            logger.exception("Failed to load meals between %s and %s", start, end)
            raise StorageError("Failed to load meals") from e

    def get(self, meal_id: int) -> Optional[MealRecord]:
        try:
            with self._Session() as session:
                row = session.get(MealPlanRow, meal_id)
                return _to_record(row) if row is not None else None
        except SQLAlchemyError as e:
            logger.exception("Failed to load meal %s", meal_id)
            raise StorageError("Failed to load meal") from e

    def replace_range_and_insert(self, meals: Iterable[Any],
                                 start: Optional[DateLike] = None,
                                 end: Optional[DateLike] = None) -> int:
        """Atomically clear [start, end] (when both are given) and insert meals.

        Either every meal is inserted and the deletion committed, or the
        transaction is rolled back and the table is left untouched.

        Returns:
            Number of inserted meals.

        Raises:
            SaveError: on malformed entries, uniqueness violations or any
                database failure during the transaction.
        """
        count = 0
        try:
            with self._Session() as session, session.begin():
                if start and end:
                    session.execute(
                        delete(MealPlanRow).where(
                            MealPlanRow.date >= _date_key(start),
                            MealPlanRow.date <= _date_key(end),
                        )
                    )
                for meal in meals:
                    session.add(_to_row(meal))
                    # Flush per row so a duplicate (date, meal_type) fails here
                    session.flush()
                    count += 1
        except (SQLAlchemyError, KeyError, TypeError, ValueError) as e:
            logger.exception("Meal plan save rolled back after %d rows", count)
            raise SaveError(f"Failed to save meal plan: {e}") from e
        logger.info("Saved %d meals (range %s..%s)", count, start, end)
        return count

    def set_skipped(self, meal_id: int, skipped: bool) -> None:
        """Update the skipped flag. Unknown ids are a no-op."""
        try:
            with self._Session() as session, session.begin():
                session.execute(
                    update(MealPlanRow).where(MealPlanRow.id == meal_id).values(skipped=bool(skipped))
                )
        except SQLAlchemyError as e:
            logger.exception("Failed to update skipped flag of meal %s", meal_id)
            raise StorageError("Failed to update meal") from e

    def delete(self, meal_id: int) -> None:
        """Delete one meal by id. Unknown ids are a no-op."""
        try:
            with self._Session() as session, session.begin():
                session.execute(delete(MealPlanRow).where(MealPlanRow.id == meal_id))
        except SQLAlchemyError as e:
            logger.exception("Failed to delete meal %s", meal_id)
            raise StorageError("Failed to delete meal") from e


__all__ = ["MealRepository", "StorageError", "SaveError"]
