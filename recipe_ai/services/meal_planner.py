"""Default-filling parser for multi-day meal plans."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from recipe_ai.models.meal_plan import DayMeals, MealPlanDay, PlannedMeal
from recipe_ai.utils.json_extraction import extract_json_object

logger = logging.getLogger(__name__)

SLOT_ALIASES = {
    "breakfast": "breakfast",
    "desayuno": "breakfast",
    "lunch": "lunch",
    "almuerzo": "lunch",
    "snack": "snack",
    "merienda": "snack",
    "dinner": "dinner",
    "cena": "dinner",
}


def plan_dates(start_date: date, days: int) -> List[str]:
    return [(start_date + timedelta(days=offset)).isoformat() for offset in range(days)]


def _ingredient_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    names = []
    for item in value:
        name = item.get("name") if isinstance(item, dict) else item
        if isinstance(name, str) and name.strip():
            names.append(name.strip())
    return names


def _planned_meal(day: str, slot: str, value: Any) -> Optional[PlannedMeal]:
    if isinstance(value, str):
        value = {"title": value}
    if not isinstance(value, dict):
        return None

    title = value.get("title")
    if not isinstance(title, str) or not title.strip():
        return None

    recipe_id = str(value.get("recipeId") or "").strip() or f"{day}-{slot}"
    return PlannedMeal(
        recipeId=recipe_id,
        title=title.strip(),
        ingredients=_ingredient_list(value.get("ingredients")),
    )


def _day_meals(day: str, meals: Any) -> DayMeals:
    if not isinstance(meals, dict):
        return DayMeals()
    slots: Dict[str, PlannedMeal] = {}
    for key, value in meals.items():
        slot = SLOT_ALIASES.get(str(key).strip().lower())
        if slot is None or slot in slots:
            continue
        meal = _planned_meal(day, slot, value)
        if meal is not None:
            slots[slot] = meal
    return DayMeals(**slots)


def parse_meal_plan(raw_text: str, days: int, start_date: date) -> List[MealPlanDay]:
    """
    Turn a model completion into exactly ``days`` consecutive plan days.

    Entries are matched by their ``date``; entries with a missing or
    out-of-range date fill the free day at their position. Days the model
    skipped get empty meals, and meals without a title are dropped.
    """
    dates = plan_dates(start_date, days)
    data = extract_json_object(raw_text or "")
    entries = data.get("mealPlan") if data else None

    by_date: Dict[str, DayMeals] = {}
    if isinstance(entries, list):
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                continue
            day = str(entry.get("date") or "")[:10]
            if day not in dates:
                if index >= len(dates):
                    continue
                day = dates[index]
            if day in by_date:
                continue
            by_date[day] = _day_meals(day, entry.get("meals"))
    else:
        logger.warning("Meal plan response had no usable mealPlan list; returning empty days")

    return [MealPlanDay(date=day, meals=by_date.get(day, DayMeals())) for day in dates]
