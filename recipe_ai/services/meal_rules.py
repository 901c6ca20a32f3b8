"""Meal-type keyword tables and cooking-method keywords, loaded from JSON."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from recipe_ai.models.inventory import MealType

logger = logging.getLogger(__name__)


def _lowered(values: List[str]) -> List[str]:
    return [v.strip().lower() for v in values if v and v.strip()]


class MealTypeRules(BaseModel):
    """Keyword affinity lists and prompt guidance for one meal type."""

    label: str
    style: str
    primary: List[str] = Field(default_factory=list)
    secondary: List[str] = Field(default_factory=list)
    avoid: List[str] = Field(default_factory=list)

    @field_validator("primary", "secondary", "avoid")
    @classmethod
    def _lower_keywords(cls, v: List[str]) -> List[str]:
        return _lowered(v)


class MealRules(BaseModel):
    """Every lookup table the pipeline uses."""

    mealTypes: Dict[MealType, MealTypeRules]
    cookingMethods: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator("mealTypes")
    @classmethod
    def _all_meal_types(cls, v: Dict[MealType, MealTypeRules]) -> Dict[MealType, MealTypeRules]:
        missing = [m.value for m in MealType if m not in v]
        if missing:
            raise ValueError(f"meal rules missing meal types: {missing}")
        return v

    @field_validator("cookingMethods")
    @classmethod
    def _lower_methods(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        return {label: _lowered(words) for label, words in v.items()}

    def for_meal(self, meal_type: MealType) -> MealTypeRules:
        return self.mealTypes[MealType(meal_type)]


def load_meal_rules(path: Optional[str] = None) -> MealRules:
    """
    Load meal rules from ``path`` or from the bundled ``data/meal_rules.json``.

    Raises:
        ValueError: If the file does not match the expected shape
    """
    if path:
        logger.info("Loading meal rules from %s", path)
        raw = Path(path).read_text(encoding="utf-8")
    else:
        raw = (resources.files("recipe_ai") / "data" / "meal_rules.json").read_text(encoding="utf-8")
    return MealRules.model_validate(json.loads(raw))


@lru_cache(maxsize=4)
def get_meal_rules(path: Optional[str] = None) -> MealRules:
    """Cached variant of ``load_meal_rules``."""
    return load_meal_rules(path)
