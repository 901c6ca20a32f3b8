"""Tests for event, ingredient analysis and meal plan endpoints."""

import json

from fastapi.testclient import TestClient

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _headers(user_id):
    return {"X-User-Id": user_id}


def test_event_recipe(client: TestClient, fake_model, recipe_json):
    fake_model.queue(recipe_json)
    response = client.post(
        "/events/generate-recipe",
        json={
            "eventTitle": "Brunch del Club",
            "mealType": "BREAKFAST",
            "participants": [
                {
                    "name": "Ana",
                    "inventory": [{"name": "Huevos", "quantity": 6}],
                    "preferences": {"healthConditions": ["diabetes"], "servings": 2},
                },
                {"name": "Luis", "inventory": [{"name": "Pan", "quantity": 1, "category": "GRAIN"}]},
            ],
        },
        headers=_headers("event-user"),
    )
    assert response.status_code == 200
    recipe = response.json()["recipe"]
    assert recipe["title"] == "Receta colaborativa: Brunch del Club"
    assert recipe["healthConditions"] == ["diabetes"]
    assert {i["name"] for i in json.loads(recipe["ingredients"])} == {"Huevos", "Pan"}


def test_event_requires_participants(client: TestClient):
    response = client.post(
        "/events/generate-recipe",
        json={"eventTitle": "Vacío", "mealType": "LUNCH", "participants": []},
        headers=_headers("event-empty-user"),
    )
    assert response.status_code == 422


def test_analyze_ingredients(client: TestClient, fake_model):
    fake_model.queue(
        json.dumps(
            {
                "detectedIngredients": [{"name": "Huevos", "quantity": 4, "confidence": 0.9}],
                "missingIngredients": [{"name": "Tomate", "quantity": 2, "category": "VEGETABLE"}],
                "suggestions": ["Sal"],
            }
        )
    )
    response = client.post(
        "/analyze-ingredients",
        files={"image": ("foto.png", PNG_BYTES, "image/png")},
        data={"inventory": json.dumps([{"food": {"name": "Huevos"}, "quantity": 2}])},
        headers=_headers("photo-user"),
    )
    assert response.status_code == 200
    data = response.json()
    assert [i["name"] for i in data["detectedIngredients"]] == ["Huevos"]
    assert [i["name"] for i in data["missingIngredients"]] == ["Tomate"]
    assert data["suggestions"] == ["Sal"]
    assert fake_model.prompts[0].image.mime_type == "image/png"


def test_analyze_ingredients_rejects_non_images(client: TestClient, fake_model):
    response = client.post(
        "/analyze-ingredients",
        files={"image": ("notas.txt", b"hola", "text/plain")},
        headers=_headers("photo-bad-user"),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Image processing error"
    assert fake_model.calls == 0


def test_analyze_ingredients_rejects_bad_inventory(client: TestClient):
    response = client.post(
        "/analyze-ingredients",
        files={"image": ("foto.png", PNG_BYTES, "image/png")},
        data={"inventory": "{not json"},
        headers=_headers("photo-inv-user"),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Validation error"


def test_generate_meal_plan(client: TestClient, fake_model):
    fake_model.queue(
        json.dumps(
            {
                "mealPlan": [
                    {"date": "2025-03-10", "meals": {"lunch": {"recipeId": "r1", "title": "Guiso de Lentejas"}}}
                ]
            }
        )
    )
    response = client.post(
        "/generate-meal-plan",
        json={"inventory": [{"name": "Lentejas"}], "days": 2, "startDate": "2025-03-10"},
        headers=_headers("plan-user"),
    )
    assert response.status_code == 200
    plan = response.json()["mealPlan"]
    assert [d["date"] for d in plan] == ["2025-03-10", "2025-03-11"]
    assert plan[0]["meals"]["lunch"]["title"] == "Guiso de Lentejas"
    assert plan[1]["meals"]["lunch"] is None
    assert "Lentejas" in fake_model.prompts[0].text


def test_meal_plan_day_bounds(client: TestClient):
    response = client.post(
        "/generate-meal-plan",
        json={"days": 0, "startDate": "2025-03-10"},
        headers=_headers("plan-bad-user"),
    )
    assert response.status_code == 422
