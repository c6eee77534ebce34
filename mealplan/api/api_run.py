from datetime import date as _date, datetime
import logging

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from mealplan.api.api_ai import router as ai_router
from mealplan.api.routes import meals
from mealplan.utilities.config import STATIC_DIR, TEMPLATES_DIR
from mealplan.utilities.constants import CALORIES_LEVELS, DATE_FORMAT
from mealplan.utilities.validators import MealPlanRequest

# Logging
logger = logging.getLogger("mealplan")

# Initialize FastAPI app
app = FastAPI(title="AI Meal Planner API")

# Include routers
app.include_router(meals.router)
app.include_router(ai_router)

# Static files
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

# Templates
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


@app.on_event("startup")
def _startup_database():
    """Create the meal table when the app starts."""
    repo = app.dependency_overrides.get(meals.get_repository, meals.get_repository)()
    repo.initialize()
    logger.info("Meal table ready")


def _ts() -> int:
    """Cache-busting timestamp for static assets."""
    return int(datetime.now().timestamp())


# -------------------- UI PAGES --------------------
@app.get("/", response_class=HTMLResponse)
def main_page(request: Request):
    today = _date.today()
    form = MealPlanRequest()
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "today": today.strftime(DATE_FORMAT),
            "form": form.model_dump(mode="json", by_alias=True),
            "calories_levels": CALORIES_LEVELS,
            "time": _ts(),
        }
    )


# -------------------- API: Health --------------------
@app.get("/api/health")
def health():
    return {"status": "ok"}
