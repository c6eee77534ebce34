"""ShoppingListCategory: ephemeral grouping of consolidated shopping items (never persisted)."""
from typing import Any, Dict, List, Optional


class ShoppingListCategory:
    def __init__(self, category: str, items: Optional[List[str]] = None):
        self.category = category
        self.items = items[:] if items else []

    def __str__(self) -> str:
        return f"{self.category}: {', '.join(self.items)}"

    __repr__ = __str__

    def __eq__(self, other) -> bool:
        if not isinstance(other, ShoppingListCategory):
            return NotImplemented
        return self.category == other.category and self.items == other.items

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ShoppingListCategory":
        category = data.get("category")
        items = data.get("items")
        if not isinstance(category, str) or not isinstance(items, list):
            raise ValueError("Shopping list category needs a 'category' string and an 'items' list")
        return ShoppingListCategory(category, [str(i) for i in items])

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "items": list(self.items)}
