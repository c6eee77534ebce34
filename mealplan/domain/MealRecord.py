"""MealRecord domain entity: one planned meal for a date and meal-type slot."""
import json
from typing import Any, Dict, List, Optional


def _decode_steps(raw: Any) -> List[str]:
    """Decode a JSON text blob (or an already decoded list) into a list of strings."""
    if raw is None:
        return []
    if isinstance(raw, list):
        return [str(x) for x in raw]
    decoded = json.loads(raw)
    if not isinstance(decoded, list):
        raise ValueError("Expected a JSON array")
    return [str(x) for x in decoded]


class MealRecord:
    def __init__(self, date: str, meal_type: str, recipe_name: str,
                 ingredients: str = "[]", instructions: str = "[]",
                 calories: Optional[int] = None, skipped: bool = False, id: Optional[int] = None):
        self.id = id
        self.date = date
        self.meal_type = meal_type
        self.recipe_name = recipe_name
        # Stored verbatim as JSON text blobs
        self.ingredients = ingredients
        self.instructions = instructions
        self.calories = calories
        self.skipped = bool(skipped)

    def __str__(self) -> str:
        status = " (skipped)" if self.skipped else ""
        kcal = f" - {self.calories} kcal" if self.calories is not None else ""
        return f"{self.date} {self.meal_type}: {self.recipe_name}{kcal}{status}"

    __repr__ = __str__

    def ingredients_list(self) -> List[str]:
        return _decode_steps(self.ingredients)

    def instructions_list(self) -> List[str]:
        return _decode_steps(self.instructions)

    @staticmethod
    def encode_list(values: Any) -> str:
        """Serialize an ordered sequence of strings for storage.

        Raises:
            TypeError: if values is not a list/tuple.
        """
        if not isinstance(values, (list, tuple)):
            raise TypeError(f"Expected a list of strings, got {type(values).__name__}")
        return json.dumps(list(values), ensure_ascii=False)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "MealRecord":
        d = dict(data)
        for key in ("ingredients", "instructions"):
            if isinstance(d.get(key), (list, tuple)):
                d[key] = MealRecord.encode_list(d[key])
        return MealRecord(
            id=d.get("id"),
            date=d["date"],
            meal_type=d["meal_type"],
            recipe_name=d["recipe_name"],
            ingredients=d.get("ingredients", "[]"),
            instructions=d.get("instructions", "[]"),
            calories=d.get("calories"),
            skipped=d.get("skipped", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "meal_type": self.meal_type,
            "recipe_name": self.recipe_name,
            "ingredients": self.ingredients,
            "instructions": self.instructions,
            "calories": self.calories,
            "skipped": self.skipped,
        }
