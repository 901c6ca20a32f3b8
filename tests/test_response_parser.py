"""Tests for the recipe response parser."""

from recipe_ai.services.response_parser import (
    DefaultFallback,
    JsonParsed,
    MarkdownParsed,
    extract_ingredients,
    extract_title,
    parse_recipe,
    parse_response,
)


def test_instructions_array_is_joined_with_blank_lines():
    recipe = parse_recipe('{"title": "Avena", "instructions": ["Hervir la leche", "Agregar la avena"]}')
    assert recipe.instructions == "Hervir la leche\n\nAgregar la avena"


def test_instructions_string_is_kept_unchanged():
    text = "Paso 1: mezclar.\nPaso 2: cocinar."
    recipe = parse_recipe('{"title": "Avena", "instructions": "Paso 1: mezclar.\\nPaso 2: cocinar."}')
    assert recipe.instructions == text


def test_json_inside_code_fence_and_prose_wins():
    raw = (
        "¡Claro! Aquí tienes tu receta:\n"
        "```json\n"
        '{"title": "Tostadas Dulces", "description": "Con miel", "instructions": "Tostar y untar",'
        ' "cookingTime": 10, "difficulty": "Fácil", "servings": 2, "suggestedIngredients": ["Canela"]}\n'
        "```\n"
        "**Título:** Otra Cosa"
    )
    parsed = parse_response(raw)
    assert isinstance(parsed, JsonParsed)

    recipe = parse_recipe(raw)
    assert recipe.title == "Tostadas Dulces"
    assert recipe.description == "Con miel"
    assert recipe.cookingTime == 10
    assert recipe.servings == 2
    assert recipe.suggestedIngredients == ["Canela"]


def test_json_wrapped_in_recipe_key_is_unwrapped():
    recipe = parse_recipe('{"recipe": {"title": "Licuado", "instructions": "Licuar"}}')
    assert recipe.title == "Licuado"


def test_json_trailing_commas_are_tolerated():
    recipe = parse_recipe('{"title": "Panqueques", "servings": 3,}')
    assert recipe.title == "Panqueques"
    assert recipe.servings == 3


def test_json_numbers_as_text_are_coerced():
    recipe = parse_recipe('{"title": "Omelette", "cookingTime": "20 minutos", "servings": "4 porciones"}')
    assert recipe.cookingTime == 20
    assert recipe.servings == 4


def test_json_ingredient_quantities_are_kept():
    recipe = parse_recipe(
        '{"title": "Omelette", "ingredients": [{"name": "Huevos", "quantity": 3, "unit": "piece"},'
        ' {"name": "Queso", "quantity": -1}]}'
    )
    assert [(i.name, i.quantity, i.unit) for i in recipe.ingredients] == [
        ("Huevos", 3, "PIECE"),
        ("Queso", 1, "PIECE"),
    ]


def test_markdown_fallback_title_and_instructions():
    raw = "**Título:** Pasta al Pesto\n**Instrucciones:** 1. Hervir agua\n\n2. Mezclar"
    parsed = parse_response(raw)
    assert isinstance(parsed, MarkdownParsed)

    recipe = parse_recipe(raw)
    assert recipe.title == "Pasta al Pesto"
    assert "1. Hervir agua" in recipe.instructions
    assert "2. Mezclar" in recipe.instructions
    assert "*" not in recipe.instructions


def test_markdown_full_recipe():
    raw = """**Título:** Huevos Revueltos

**Descripción:** Un desayuno clásico y rápido.

**Ingredientes:**
* Huevos: 3 unidades
* Leche: un chorrito
• Sal

**Tiempo de Cocción Estimado:** 10 minutos
**Nivel de Dificultad:** Fácil
**Número de Porciones:** 2

**Instrucciones:**
1. Batir los **huevos** con la leche.
2. Cocinar a fuego bajo.
"""
    recipe = parse_recipe(raw)
    assert recipe.title == "Huevos Revueltos"
    assert recipe.description == "Un desayuno clásico y rápido."
    assert [i.name for i in recipe.ingredients] == ["Huevos", "Leche", "Sal"]
    assert all(i.quantity == 1 and i.unit == "PIECE" for i in recipe.ingredients)
    assert recipe.cookingTime == 10
    assert recipe.difficulty == "Fácil"
    assert recipe.servings == 2
    assert "Batir los huevos con la leche." in recipe.instructions
    assert "Cocinar a fuego bajo." in recipe.instructions


def test_title_chain_order():
    assert extract_title("**Título:**\nPanqueques de Avena\n") == "Panqueques de Avena"
    assert extract_title("## Licuado de Banana\nTexto") == "Licuado de Banana"
    assert extract_title("Intro\n**Ensalada Fresca**\n**Ingredientes:**") == "Ensalada Fresca"
    assert extract_title("Título: Tarta Simple") == "Tarta Simple"
    assert extract_title("Mi receta favorita\notra línea") == "Mi receta favorita"


def test_plain_ingredients_block_with_dash_bullets():
    raw = "Ingredientes:\n- Tomate\n- Queso: 100 g\nInstrucciones: cortar"
    assert [i.name for i in extract_ingredients(raw)] == ["Tomate", "Queso"]


def test_empty_response_gives_default_recipe():
    parsed = parse_response("")
    assert isinstance(parsed, DefaultFallback)

    recipe = parse_recipe("")
    assert recipe.title == "Receta Generada"
    assert recipe.cookingTime == 30
    assert recipe.difficulty == "Fácil"
    assert recipe.servings == 4
    assert recipe.suggestedIngredients == []


def test_garbage_without_markers_gives_default_recipe():
    recipe = parse_recipe("lorem ipsum dolor sit amet 42")
    assert recipe.title == "Receta Generada"
    assert recipe.cookingTime == 30
    assert recipe.difficulty == "Fácil"
    assert recipe.servings == 4


def test_missing_numbers_fall_back_to_defaults_and_servings_hint():
    recipe = parse_recipe('{"title": "Sopa", "cookingTime": 0}', servings=6)
    assert recipe.cookingTime == 30
    assert recipe.difficulty == "Fácil"
    assert recipe.servings == 6


def test_raw_newlines_inside_json_strings_are_kept():
    raw = '{"title": "Tostadas", "description": "Rápidas", "instructions": "1. Tostar\n2. Servir", "servings": 2}'
    assert isinstance(parse_response(raw), JsonParsed)
    recipe = parse_recipe(raw)
    assert recipe.title == "Tostadas"
    assert recipe.instructions == "1. Tostar\n2. Servir"
    assert recipe.servings == 2


def test_typographic_quotes_are_normalized():
    recipe = parse_recipe("{“title”: “Licuado de Banana”, “cookingTime”: 5}")
    assert recipe.title == "Licuado de Banana"
    assert recipe.cookingTime == 5


def test_typographic_quotes_inside_values_survive_valid_json():
    recipe = parse_recipe('{"title": "Pan “casero”", "instructions": "Hornear."}')
    assert recipe.title == "Pan “casero”"
