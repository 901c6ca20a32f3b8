"""Shared API dependencies."""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from recipe_ai.services.image_analyzer import ImageAnalyzer
from recipe_ai.services.model_client import ModelClient, create_model_client
from recipe_ai.services.recipe_generator import RecipeGenerator
from recipe_ai.services.recipe_store import InMemoryRecipeStore, RecipeCache


@lru_cache(maxsize=1)
def get_model_client() -> ModelClient:
    """Model client selected by ``MODEL_PROVIDER`` (shared, lazily connected)."""
    return create_model_client()


@lru_cache(maxsize=1)
def get_recipe_store() -> InMemoryRecipeStore:
    return InMemoryRecipeStore()


@lru_cache(maxsize=1)
def get_recipe_cache() -> RecipeCache:
    return RecipeCache()


def get_recipe_generator(
    model_client: ModelClient = Depends(get_model_client),
    store: InMemoryRecipeStore = Depends(get_recipe_store),
) -> RecipeGenerator:
    """Get recipe generator wired to the recipe store as history reader."""
    return RecipeGenerator(model_client, history_reader=store)


def get_image_analyzer(model_client: ModelClient = Depends(get_model_client)) -> ImageAnalyzer:
    return ImageAnalyzer(model_client)


def get_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Caller identity from the ``X-User-Id`` header."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "No autorizado", "detail": "Falta el encabezado X-User-Id"},
        )
    return x_user_id.strip()
