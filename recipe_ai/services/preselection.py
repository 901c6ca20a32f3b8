"""Meal-type aware preselection of a small working set from the inventory."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from recipe_ai.models.inventory import InventoryIngredient, MealType
from recipe_ai.services.meal_rules import MealRules, get_meal_rules

logger = logging.getLogger(__name__)

MAX_SELECTED = 4
MIN_SELECTED = 3
PREFIX_LENGTH = 4


def keyword_matches(name: str, keywords: Iterable[str]) -> bool:
    """
    Lenient case-insensitive match of an ingredient name against keywords.

    A keyword matches when either string contains the other, or when both
    share the same first four characters ("tomates" / "tomate", "zanahorias").
    """
    name = name.strip().lower()
    if not name:
        return False
    for keyword in keywords:
        if keyword in name or name in keyword:
            return True
        if (
            len(name) >= PREFIX_LENGTH
            and len(keyword) >= PREFIX_LENGTH
            and name[:PREFIX_LENGTH] == keyword[:PREFIX_LENGTH]
        ):
            return True
    return False


def preselect(
    inventory: Sequence[InventoryIngredient],
    meal_type: MealType,
    rules: Optional[MealRules] = None,
    limit: int = MAX_SELECTED,
) -> List[InventoryIngredient]:
    """
    Greedy first-match selection of up to ``limit`` meal-appropriate items.

    Primary keywords are tried first; secondary keywords only when fewer than
    three items were accepted. Anything matching the meal's avoid list is
    never selected. Output keeps the input order and has no duplicate names.
    """
    rules = rules or get_meal_rules()
    table = rules.for_meal(meal_type)

    chosen: dict[int, InventoryIngredient] = {}
    seen: set[str] = set()

    def take(keywords: List[str]) -> None:
        for index, item in enumerate(inventory):
            if len(chosen) >= limit:
                return
            key = item.name.strip().lower()
            if not key or key in seen:
                continue
            if keyword_matches(key, keywords) and not keyword_matches(key, table.avoid):
                chosen[index] = item
                seen.add(key)

    take(table.primary)
    if len(chosen) < MIN_SELECTED:
        take(table.secondary)

    selected = [chosen[i] for i in sorted(chosen)]
    logger.info(
        "Preselected %d of %d inventory items for %s",
        len(selected),
        len(inventory),
        MealType(meal_type).value,
        extra={"selected": [item.name for item in selected]},
    )
    return selected


def prioritize_preferred(
    inventory: Sequence[InventoryIngredient],
    preferred: Sequence[str],
    selected: Sequence[InventoryIngredient],
    limit: int = MAX_SELECTED,
) -> List[InventoryIngredient]:
    """
    Put inventory items the user explicitly asked for ahead of the preselection.

    Preferred names are matched with the same lenient rule; the avoid list is
    not applied to them since the user chose them.
    """
    wanted = [p.strip().lower() for p in preferred if p and p.strip()]
    if not wanted:
        return list(selected)

    result: List[InventoryIngredient] = []
    seen: set[str] = set()
    for item in inventory:
        key = item.name.strip().lower()
        if key not in seen and keyword_matches(key, wanted):
            result.append(item)
            seen.add(key)
    for item in selected:
        key = item.name.strip().lower()
        if key not in seen:
            result.append(item)
            seen.add(key)
    return result[:limit]
