"""Core business logic layer.

Subpackages:
- shopping: flattening selected meals into an ingredient list
- reporting: calorie summaries for the calendar
"""
__all__ = ["shopping", "reporting"]
