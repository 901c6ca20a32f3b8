"""Tests for the generation pipeline."""

import asyncio
import json
import re
from datetime import date

import pytest

from recipe_ai.models.event import EventParticipant
from recipe_ai.models.inventory import InventoryIngredient, MealType
from recipe_ai.models.recipe import GenerationOptions, RecipePreferences, StoredRecipe, UserPreferences
from recipe_ai.services.recipe_generator import (
    CONNECTION_MESSAGE,
    RATE_LIMIT_MESSAGE,
    final_error,
    merge_participant_preferences,
)
from recipe_ai.utils.exceptions import (
    GenerationCancelled,
    GenerationError,
    ModelConnectionError,
    ModelRateLimitError,
    ModelServiceError,
    ValidationError,
)

BREAKFAST_FORBIDDEN = ["carne", "arroz", "pollo", "pescado", "cerdo", "pasta", "fideos", "lentejas", "papa", "atún"]


def test_breakfast_from_inventory(generator, fake_model, breakfast_inventory, recipe_json):
    fake_model.queue(recipe_json)

    recipe = asyncio.run(
        generator.generate_recipe_with_inventory(breakfast_inventory, MealType.BREAKFAST, servings=2, user_id="u1")
    )

    prompt = fake_model.prompts[0].text.lower()
    assert "huevos" in prompt
    for word in BREAKFAST_FORBIDDEN:
        assert not re.search(rf"\b{word}\b", prompt), word

    assert [i.name for i in recipe.selectedIngredients] == ["Huevos", "Pan", "Leche"]
    assert recipe.mealType == "BREAKFAST"
    assert recipe.title == "Tostadas con Huevo"
    assert recipe.servings == 2
    assert recipe.suggestedIngredients == ["Manteca"]
    assert isinstance(recipe.instructions, str)


def test_only_meal_type_items_reach_the_prompt(generator, fake_model, recipe_json):
    fake_model.queue(recipe_json)
    inventory = [
        InventoryIngredient(name="Carne picada", quantity=500, unit="GRAM", category="MEAT"),
        InventoryIngredient(name="Huevos", quantity=6),
        InventoryIngredient(name="Arroz", quantity=1, unit="KILOGRAM", category="GRAIN"),
        InventoryIngredient(name="Yogur", quantity=2),
    ]

    recipe = asyncio.run(generator.generate_recipe_with_inventory(inventory, MealType.BREAKFAST))

    names = [i.name for i in recipe.selectedIngredients]
    assert "Carne picada" not in names and "Arroz" not in names
    prompt = fake_model.prompts[0].text
    assert "Carne picada" not in prompt and "Arroz" not in prompt


def test_unmatched_inventory_falls_back_to_first_items(generator, fake_model, recipe_json):
    fake_model.queue(recipe_json)
    inventory = [InventoryIngredient(name=f"Cosa {n}") for n in range(6)]
    recipe = asyncio.run(generator.generate_recipe_with_inventory(inventory, MealType.LUNCH))
    assert [i.name for i in recipe.selectedIngredients] == ["Cosa 0", "Cosa 1", "Cosa 2", "Cosa 3"]


def test_fallback_never_selects_avoided_items(generator, fake_model, recipe_json):
    fake_model.queue(recipe_json)
    inventory = [
        InventoryIngredient(name="Carne picada", quantity=500, unit="GRAM", category="MEAT"),
        InventoryIngredient(name="Arroz", quantity=1, unit="KILOGRAM", category="GRAIN"),
    ]

    recipe = asyncio.run(generator.generate_recipe_with_inventory(inventory, MealType.BREAKFAST))

    assert recipe.selectedIngredients == []
    prompt = fake_model.prompts[0].text
    assert "Carne picada" not in prompt and "Arroz" not in prompt


def test_fallback_skips_avoided_items_but_keeps_the_rest(generator):
    inventory = [
        InventoryIngredient(name="Arroz"),
        InventoryIngredient(name="Cosa rara"),
        InventoryIngredient(name="Pollo"),
    ]
    selected = generator.select_ingredients(inventory, MealType.BREAKFAST)
    assert [i.name for i in selected] == ["Cosa rara"]


def test_empty_inventory_is_rejected(generator):
    with pytest.raises(ValidationError):
        asyncio.run(generator.generate_recipe_with_inventory([], MealType.LUNCH))


def test_history_is_added_to_prompt(generator, fake_model, store, breakfast_inventory, recipe_json):
    asyncio.run(
        store.add(
            StoredRecipe(
                userId="u1",
                title="Panqueques de Avena",
                description="d",
                ingredients=json.dumps([{"name": "Avena"}]),
                instructions="Cocinar en la sartén.",
            )
        )
    )
    fake_model.queue(recipe_json)
    asyncio.run(generator.generate_recipe_with_inventory(breakfast_inventory, MealType.BREAKFAST, user_id="u1"))

    prompt = fake_model.prompts[0].text
    assert "HISTORIAL RECIENTE DEL USUARIO" in prompt
    assert "panqueques de avena" in prompt


def test_overload_is_retried_then_succeeds(generator, fake_model, fake_sleep, breakfast_inventory, recipe_json):
    fake_model.queue(ModelServiceError("503 Service Unavailable"), recipe_json)
    recipe = asyncio.run(generator.generate_recipe_with_inventory(breakfast_inventory, MealType.BREAKFAST))
    assert fake_model.calls == 2
    assert fake_sleep.delays == [2.0]
    assert recipe.title == "Tostadas con Huevo"


def test_persistent_overload_surfaces_generation_error(generator, fake_model, fake_sleep, breakfast_inventory):
    fake_model.queue(*[ModelServiceError("503 Service Unavailable")] * 3)
    with pytest.raises(GenerationError, match="Error al generar la receta"):
        asyncio.run(generator.generate_recipe_with_inventory(breakfast_inventory, MealType.BREAKFAST))
    assert fake_model.calls == 3
    assert fake_sleep.delays == [2.0, 4.0]


def test_connection_failure_is_not_retried(generator, fake_model, breakfast_inventory):
    fake_model.queue(ModelConnectionError("network error: connection refused"))
    with pytest.raises(ModelConnectionError) as exc_info:
        asyncio.run(generator.generate_recipe_with_inventory(breakfast_inventory, MealType.DINNER))
    assert fake_model.calls == 1
    assert CONNECTION_MESSAGE in str(exc_info.value)


def test_cancelled_generation_propagates(generator, fake_model, breakfast_inventory):
    async def scenario():
        event = asyncio.Event()
        event.set()
        await generator.generate_recipe_with_inventory(
            breakfast_inventory, MealType.BREAKFAST, cancel_event=event
        )

    with pytest.raises(GenerationCancelled):
        asyncio.run(scenario())
    assert fake_model.calls == 0


def test_final_error_mapping():
    assert isinstance(final_error(ModelConnectionError("down")), ModelConnectionError)
    rate_limited = final_error(ModelServiceError("429 Too Many Requests"))
    assert isinstance(rate_limited, ModelRateLimitError)
    assert str(rate_limited) == RATE_LIMIT_MESSAGE
    other = final_error(ModelServiceError("500 boom"))
    assert type(other) is GenerationError
    assert "500 boom" in str(other)


def test_simple_generation_uses_preference_servings(generator, fake_model):
    fake_model.queue("**Título:** Ensalada Fresca\n\n**Instrucciones:**\n1. Cortar.\n2. Mezclar.")
    recipe = asyncio.run(generator.generate_recipe(["tomate", "lechuga"], RecipePreferences(servings=3)))
    assert recipe.title == "Ensalada Fresca"
    assert recipe.servings == 3
    assert fake_model.calls == 1


def test_simple_generation_is_single_shot(generator, fake_model):
    fake_model.queue(ModelServiceError("503 Service Unavailable"))
    with pytest.raises(GenerationError):
        asyncio.run(generator.generate_recipe(["tomate"]))
    assert fake_model.calls == 1


def test_simple_generation_requires_ingredients(generator):
    with pytest.raises(ValidationError):
        asyncio.run(generator.generate_recipe(["  "]))


def test_custom_title_and_preferences_reach_prompt(generator, fake_model, breakfast_inventory, recipe_json):
    fake_model.queue(recipe_json)
    options = GenerationOptions(
        customTitle="Desayuno Campeón",
        userPreferences=UserPreferences(servings=5, healthConditions=["celiaquía"]),
    )
    recipe = asyncio.run(
        generator.generate_recipe_with_inventory(breakfast_inventory, MealType.BREAKFAST, options=options)
    )
    prompt = fake_model.prompts[0].text
    assert '"Desayuno Campeón"' in prompt
    assert "celiaquía" in prompt
    assert "Porciones: 5" in prompt
    # JSON servings win over the hint
    assert recipe.servings == 2


def test_merge_participant_preferences():
    participants = [
        EventParticipant(
            name="Ana",
            inventory=[],
            preferences=UserPreferences(healthConditions=["diabetes"], personalGoals=["comer sano"], servings=2),
        ),
        EventParticipant(
            name="Luis",
            inventory=[],
            preferences=UserPreferences(
                healthConditions=["diabetes"],
                customHealthConditions=["sin lactosa"],
                cookingSkill="mucho",
                servings=3,
                country="Chile",
            ),
        ),
    ]
    merged = merge_participant_preferences(participants)
    assert merged.healthConditions == ["diabetes", "sin lactosa"]
    assert merged.personalGoals == ["comer sano"]
    assert merged.cookingSkill == "mas_o_menos"
    assert merged.servings == 5
    assert merged.country == "Chile"


def test_merge_without_preferences_defaults_servings():
    merged = merge_participant_preferences([EventParticipant(inventory=[]), EventParticipant(inventory=[])])
    assert merged.servings == 4
    assert merged.healthConditions == []


def test_event_recipe_combines_inventories(generator, fake_model, recipe_json):
    fake_model.queue(recipe_json)
    participants = [
        EventParticipant(name="Ana", inventory=[InventoryIngredient(name="Huevos", quantity=6)]),
        EventParticipant(name="Luis", inventory=[InventoryIngredient(name="Pan", quantity=1, category="GRAIN")]),
    ]
    recipe = asyncio.run(generator.generate_event_recipe(participants, MealType.BREAKFAST, "Brunch"))

    prompt = fake_model.prompts[0].text
    assert '"Receta colaborativa: Brunch"' in prompt
    assert "Huevos" in prompt and "Pan" in prompt
    assert "hasta 3 ingredientes adicionales" in prompt
    assert "Porciones: 4" in prompt
    assert {i.name for i in recipe.selectedIngredients} == {"Huevos", "Pan"}


def test_meal_plan_generation(generator, fake_model):
    fake_model.queue(
        json.dumps(
            {
                "mealPlan": [
                    {"date": "2025-03-10", "meals": {"breakfast": {"recipeId": "r1", "title": "Avena"}}},
                    {"date": "2025-03-11", "meals": {"dinner": {"title": "Sopa", "ingredients": ["Zapallo"]}}},
                ]
            }
        )
    )
    plan = asyncio.run(generator.generate_meal_plan([], 2, date(2025, 3, 10)))
    assert [day.date for day in plan] == ["2025-03-10", "2025-03-11"]
    assert plan[0].meals.breakfast.title == "Avena"
    assert plan[1].meals.dinner.recipeId == "2025-03-11-dinner"
    assert plan[1].meals.dinner.ingredients == ["Zapallo"]


def test_meal_plan_rejects_zero_days(generator):
    with pytest.raises(ValidationError):
        asyncio.run(generator.generate_meal_plan([], 0, date(2025, 3, 10)))
