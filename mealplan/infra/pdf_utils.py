import io
from xml.sax.saxutils import escape
from collections import defaultdict
from typing import Iterable

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from mealplan.domain.MealRecord import MealRecord


def generate_pdf_for_range(meals: Iterable[MealRecord], start: str, end: str) -> bytes:
    """Generate a PDF table with one row per date and one column per meal type."""
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf, pagesize=landscape(A4),
        rightMargin=20, leftMargin=20, topMargin=20, bottomMargin=20
    )

    styles = getSampleStyleSheet()
    cell = styles["BodyText"]
    elements = [
        Paragraph(f"Meal Plan {start} - {end}", styles["Title"]),
        Spacer(1, 16),
    ]

    by_date = defaultdict(dict)
    meal_types = []
    for meal in meals:
        if meal.meal_type not in meal_types:
            meal_types.append(meal.meal_type)
        label = escape(meal.recipe_name)
        if meal.calories is not None:
            label += f" ({meal.calories} kcal)"
        if meal.skipped:
            label = f"<strike>{label}</strike>"
        by_date[meal.date][meal.meal_type] = label

    data = [["Date"] + meal_types]
    for day in sorted(by_date):
        data.append([day] + [Paragraph(by_date[day].get(t, "-"), cell) for t in meal_types])

    table = Table(data, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0,0), (-1,0), colors.HexColor("#DC2626")),
        ("TEXTCOLOR", (0,0), (-1,0), colors.whitesmoke),
        ("ALIGN", (0,0), (-1,-1), "CENTER"),
        ("VALIGN", (0,0), (-1,-1), "MIDDLE"),
        ("FONTNAME", (0,0), (-1,0), "Helvetica-Bold"),
        ("FONTSIZE", (0,0), (-1,0), 12),
        ("BOTTOMPADDING", (0,0), (-1,0), 10),
        ("GRID", (0,0), (-1,-1), 0.5, colors.grey),
    ]))

    elements.append(table)
    doc.build(elements)
    return buf.getvalue()
