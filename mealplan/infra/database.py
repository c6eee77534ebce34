"""Database engine and table model for stored meal plans."""
import logging
from typing import Optional

from sqlalchemy import Boolean, Column, Integer, String, Text, UniqueConstraint, create_engine, false
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from mealplan.utilities.config import DATABASE_URL, DATA_DIR

logger = logging.getLogger(__name__)

Base = declarative_base()


class MealPlanRow(Base):
    """One planned meal; at most one row per (date, meal_type)."""
    __tablename__ = "meal_plans"
    __table_args__ = (UniqueConstraint("date", "meal_type", name="uq_meal_plans_date_meal_type"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD
    meal_type = Column(String, nullable=False)
    recipe_name = Column(String, nullable=False)
    ingredients = Column(Text, nullable=False)  # JSON array
    instructions = Column(Text, nullable=False)  # JSON array
    calories = Column(Integer, nullable=True)
    skipped = Column(Boolean, nullable=False, default=False, server_default=false())


def make_engine(url: str = DATABASE_URL) -> Engine:
    """Build an engine for the given URL.

    SQLite connections are shared across FastAPI's worker threads; an
    in-memory database keeps a single connection so every session sees
    the same data.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    if url == f"sqlite:///{DATA_DIR / 'meals.db'}":
        DATA_DIR.mkdir(parents=True, exist_ok=True)
    return create_engine(url, connect_args={"check_same_thread": False})


_engine: Optional[Engine] = None


def get_engine() -> Engine:
    """Return the process-wide engine, created lazily from DATABASE_URL."""
    global _engine
    if _engine is None:
        _engine = make_engine()
        logger.info("Database engine created for %s", _engine.url.render_as_string(hide_password=True))
    return _engine


__all__ = ["Base", "MealPlanRow", "make_engine", "get_engine"]
