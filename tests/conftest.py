"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from recipe_ai.api.dependencies import (
    get_model_client,
    get_recipe_cache,
    get_recipe_generator,
    get_recipe_store,
)
from recipe_ai.main import app
from recipe_ai.models.inventory import InventoryIngredient
from recipe_ai.services.recipe_generator import RecipeGenerator
from recipe_ai.services.recipe_store import InMemoryRecipeStore, RecipeCache
from recipe_ai.services.retry import RetryPolicy

RECIPE_JSON = """{
  "title": "Tostadas con Huevo",
  "description": "Desayuno rápido con pan tostado y huevos revueltos.",
  "ingredients": [{"name": "Huevos", "quantity": 2, "unit": "PIECE"}, {"name": "Pan", "quantity": 2, "unit": "PIECE"}],
  "instructions": "Tostar el pan.\\n\\nBatir y cocinar los huevos.",
  "cookingTime": 15,
  "difficulty": "Fácil",
  "servings": 2,
  "suggestedIngredients": ["Manteca"]
}"""


class FakeModelClient:
    """Scripted model client: returns (or raises) queued responses in order."""

    model_name = "fake-model"

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts = []

    def queue(self, *responses):
        self.responses.extend(responses)

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def generate_text(self, prompt):
        self.prompts.append(prompt)
        if not self.responses:
            raise AssertionError("FakeModelClient has no queued response")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


class FakeSleep:
    """Records requested delays instead of waiting."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def fake_model():
    return FakeModelClient()


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def retry_policy(fake_sleep):
    return RetryPolicy(max_attempts=3, base_delay=2.0, multiplier=2.0, sleep=fake_sleep)


@pytest.fixture
def store():
    return InMemoryRecipeStore()


@pytest.fixture
def generator(fake_model, store, retry_policy):
    return RecipeGenerator(fake_model, history_reader=store, retry_policy=retry_policy)


@pytest.fixture
def breakfast_inventory():
    return [
        InventoryIngredient(name="Huevos", quantity=6, unit="PIECE", category="DAIRY"),
        InventoryIngredient(name="Pan", quantity=1, unit="PIECE", category="GRAIN"),
        InventoryIngredient(name="Leche", quantity=1, unit="LITER", category="DAIRY"),
    ]


@pytest.fixture
def client(fake_model, store, retry_policy):
    """Test client with the model, store and cache swapped for test doubles."""
    cache = RecipeCache()
    app.dependency_overrides[get_model_client] = lambda: fake_model
    app.dependency_overrides[get_recipe_store] = lambda: store
    app.dependency_overrides[get_recipe_cache] = lambda: cache
    app.dependency_overrides[get_recipe_generator] = lambda: RecipeGenerator(
        fake_model, history_reader=store, retry_policy=retry_policy
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def recipe_json():
    return RECIPE_JSON
