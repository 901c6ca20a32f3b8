"""Ingredient photo analysis endpoint."""

import json
import logging

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from recipe_ai.api.cancellation import run_cancellable
from recipe_ai.api.dependencies import get_image_analyzer
from recipe_ai.config import settings
from recipe_ai.middleware.rate_limit import rate_limit_dependency
from recipe_ai.models.inventory import IngredientAnalysis
from recipe_ai.services.image_analyzer import ImageAnalyzer
from recipe_ai.services.image_service import ImageService
from recipe_ai.services.recipe_store import format_inventory_ingredients
from recipe_ai.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)
router = APIRouter(tags=["ingredients"])


@router.post("/analyze-ingredients", response_model=IngredientAnalysis)
async def analyze_ingredients(
    request: Request,
    image: UploadFile = File(...),
    inventory: str = Form("[]"),
    _: None = Depends(rate_limit_dependency),
    analyzer: ImageAnalyzer = Depends(get_image_analyzer),
) -> IngredientAnalysis:
    """
    Detect food in a photo and split it against the current inventory.

    - **image**: JPEG, PNG or WebP photo
    - **inventory**: JSON-encoded list of inventory rows
    """
    logger.info(
        "Route /analyze-ingredients called",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "route": "/analyze-ingredients",
            "params": {"filename": image.filename, "content_type": image.content_type},
        },
    )

    image_data, mime_type = ImageService.validate_image(await image.read())

    try:
        rows = json.loads(inventory or "[]")
    except json.JSONDecodeError as e:
        raise ValidationError("El inventario debe ser un JSON válido") from e
    if not isinstance(rows, list):
        raise ValidationError("El inventario debe ser una lista")
    current_inventory = format_inventory_ingredients(row for row in rows if isinstance(row, dict))

    optimized, optimized_mime = ImageService.optimize_for_vision(image_data, mime_type)

    async def operation(_cancel_event) -> IngredientAnalysis:
        return await analyzer.analyze(optimized, current_inventory, mime_type=optimized_mime)

    return await run_cancellable(request, operation, settings.image_analysis_timeout_seconds)
