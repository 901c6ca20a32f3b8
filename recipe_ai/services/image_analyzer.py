"""
Ingredient detection from a photo.

Only the JSON path of the response parser is used here: a completion that is
not a JSON object degrades to an empty analysis instead of a stand-in recipe.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from recipe_ai.models.inventory import DetectedIngredient, IngredientAnalysis, InventoryIngredient
from recipe_ai.services.model_client import ImageAttachment, ModelClient
from recipe_ai.services.prompt_builder import build_image_analysis_prompt
from recipe_ai.services.recipe_generator import final_error
from recipe_ai.utils.json_extraction import extract_json_object

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 5


def _normalized(name: str) -> str:
    return " ".join(name.strip().lower().split())


def _detected_items(values: Any) -> List[DetectedIngredient]:
    if not isinstance(values, list):
        return []
    items = []
    for value in values:
        if isinstance(value, str):
            value = {"name": value}
        if not isinstance(value, dict):
            continue
        try:
            item = DetectedIngredient.model_validate(value)
        except PydanticValidationError as e:
            logger.warning("Skipping unreadable detected ingredient %r: %s", value, e)
            continue
        if item.name.strip():
            items.append(item)
    return items


def _suggestion_names(values: Any) -> List[str]:
    if not isinstance(values, list):
        return []
    names = []
    for value in values:
        name = value.get("name") if isinstance(value, dict) else value
        if isinstance(name, str) and name.strip():
            names.append(name.strip())
    return names


def build_analysis(data: Optional[Dict[str, Any]], current_inventory: Sequence[InventoryIngredient]) -> IngredientAnalysis:
    """
    Partition the model's findings by the user's inventory.

    The model's own split is not trusted: every detected item is re-checked
    against the inventory names. Duplicates keep their first occurrence and
    suggestions never repeat a detected item.
    """
    if not data:
        return IngredientAnalysis()

    owned = {_normalized(item.name) for item in current_inventory}
    found = _detected_items(data.get("detectedIngredients")) + _detected_items(data.get("missingIngredients"))

    detected: List[DetectedIngredient] = []
    missing: List[DetectedIngredient] = []
    seen: set[str] = set()
    for item in found:
        key = _normalized(item.name)
        if key in seen:
            continue
        seen.add(key)
        (detected if key in owned else missing).append(item)

    suggestions: List[str] = []
    for name in _suggestion_names(data.get("suggestions")):
        key = _normalized(name)
        if key in seen:
            continue
        seen.add(key)
        suggestions.append(name)

    return IngredientAnalysis(
        detectedIngredients=detected,
        missingIngredients=missing,
        suggestions=suggestions[:MAX_SUGGESTIONS],
    )


class ImageAnalyzer:
    """Vision-model analysis of an ingredient photo against the current inventory."""

    def __init__(self, model_client: ModelClient) -> None:
        self.model_client = model_client

    async def analyze(
        self,
        image: bytes,
        current_inventory: Sequence[InventoryIngredient],
        mime_type: str = "image/jpeg",
    ) -> IngredientAnalysis:
        prompt = build_image_analysis_prompt(current_inventory, ImageAttachment(data=image, mime_type=mime_type))
        logger.info(
            "Analyzing ingredient image (mime_type=%s, inventory=%d)",
            mime_type,
            len(current_inventory),
        )

        try:
            raw = await self.model_client.generate_text(prompt)
        except Exception as e:
            logger.error("Image analysis failed: %s", e, exc_info=True)
            raise final_error(e) from e

        data = extract_json_object(raw)
        if data is None:
            logger.warning("Image analysis response was not a JSON object; returning empty analysis")
        analysis = build_analysis(data, current_inventory)
        logger.info(
            "Image analysis: %d detected, %d missing, %d suggestions",
            len(analysis.detectedIngredients),
            len(analysis.missingIngredients),
            len(analysis.suggestions),
        )
        return analysis
