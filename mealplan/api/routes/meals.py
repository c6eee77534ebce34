import logging
from functools import lru_cache
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from pydantic import ValidationError

from mealplan.infra.Meal_Repository import MealRepository, StorageError
from mealplan.infra.pdf_utils import generate_pdf_for_range
from mealplan.logic.reporting.nutrition import compute_daily_calories
from mealplan.utilities.validators import SkipInput, is_iso_date

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/meals")


@lru_cache(maxsize=1)
def get_repository() -> MealRepository:
    """Shared repository bound to the configured database."""
    return MealRepository()


def _require_range(start_date: Optional[str], end_date: Optional[str]) -> tuple[str, str]:
    if not start_date or not end_date:
        raise HTTPException(status_code=400, detail="startDate and endDate are required")
    for value in (start_date, end_date):
        if not is_iso_date(value):
            raise HTTPException(status_code=400, detail=f"Invalid date '{value}', expected YYYY-MM-DD")
    return start_date, end_date


# -------------------- API: Meals --------------------
@router.get("")
def list_meals(start_date: Optional[str] = Query(default=None, alias="startDate"),
               end_date: Optional[str] = Query(default=None, alias="endDate"),
               repo: MealRepository = Depends(get_repository)):
    start, end = _require_range(start_date, end_date)
    try:
        return [m.to_dict() for m in repo.get_range(start, end)]
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))


def _require_object(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return payload


@router.post("/save")
def save_meal_plan(payload: Any = Body(...), repo: MealRepository = Depends(get_repository)):
    """Replace the meals of [startDate, endDate] with the posted plan in one transaction.

    Request JSON structure:
        { "mealPlan": [ { date, meal_type, recipe_name, ingredients, instructions, calories } ],
          "startDate": "YYYY-MM-DD" (optional), "endDate": "YYYY-MM-DD" (optional) }

    The range is all or nothing: with neither bound nothing is deleted, otherwise
    both must be valid dates with startDate <= endDate.
    """
    payload = _require_object(payload)
    meal_plan = payload.get("mealPlan")
    if not isinstance(meal_plan, list):
        raise HTTPException(status_code=400, detail="Invalid meal plan data")
    start, end = payload.get("startDate"), payload.get("endDate")
    if start is not None or end is not None:
        if not isinstance(start, str) or not isinstance(end, str):
            raise HTTPException(status_code=400, detail="startDate and endDate must be given together")
        start, end = _require_range(start, end)
        if start > end:
            raise HTTPException(status_code=400, detail="startDate must not be after endDate")
    try:
        count = repo.replace_range_and_insert(meal_plan, start, end)
    except StorageError:
        logger.error("Error saving meal plan (%d entries)", len(meal_plan))
        raise HTTPException(status_code=500, detail="Failed to save meal plan")
    return {"success": True, "count": count}


@router.put("/{meal_id}/skip")
def toggle_skip(meal_id: int, payload: Any = Body(...), repo: MealRepository = Depends(get_repository)):
    try:
        body = SkipInput.model_validate(_require_object(payload))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    try:
        repo.set_skipped(meal_id, body.skipped)
    except StorageError:
        raise HTTPException(status_code=500, detail="Failed to skip meal")
    return {"success": True}


@router.delete("/{meal_id}")
def delete_meal(meal_id: int, repo: MealRepository = Depends(get_repository)):
    try:
        repo.delete(meal_id)
    except StorageError:
        raise HTTPException(status_code=500, detail="Failed to delete meal")
    return {"success": True}


# -------------------- API: Reports --------------------
@router.get("/summary")
def meals_summary(start_date: Optional[str] = Query(default=None, alias="startDate"),
                  end_date: Optional[str] = Query(default=None, alias="endDate"),
                  repo: MealRepository = Depends(get_repository)):
    """Per-day calories of non-skipped meals for the range."""
    start, end = _require_range(start_date, end_date)
    try:
        meals = repo.get_range(start, end)
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return compute_daily_calories(meals, start, end)


@router.get("/pdf")
def meals_pdf(start_date: Optional[str] = Query(default=None, alias="startDate"),
              end_date: Optional[str] = Query(default=None, alias="endDate"),
              repo: MealRepository = Depends(get_repository)):
    start, end = _require_range(start_date, end_date)
    try:
        meals = repo.get_range(start, end)
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))
    pdf = generate_pdf_for_range(meals, start, end)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="meal-plan-{start}_{end}.pdf"'},
    )
