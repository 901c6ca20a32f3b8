"""
Prompt templates.

Every builder is a pure function returning a ``Prompt``. The inventory prompt
pins the production constraints (difficulty "Fácil", at most 4 steps,
15-25 minutes, titles of at most 4 words, 3-4 ingredients, Spanish output)
and always asks for ``instructions`` as a string.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence

from recipe_ai.models.inventory import Category, InventoryIngredient, MealType, Unit
from recipe_ai.models.recipe import DEFAULT_SERVINGS, GenerationOptions, RecipePreferences, UserPreferences
from recipe_ai.services.meal_rules import MealRules, get_meal_rules
from recipe_ai.services.model_client import ImageAttachment, ImagePrompt, Prompt, TextPrompt

FIXED_DIFFICULTY = "Fácil"
MAX_STEPS = 4
MIN_COOKING_MINUTES = 15
MAX_COOKING_MINUTES = 25
MAX_TITLE_WORDS = 4
MAX_SUGGESTED_INGREDIENTS = 3

COOKING_SKILL_HINTS = {
    "mucho": "Le encanta cocinar; puede seguir técnicas algo más elaboradas.",
    "mas_o_menos": "Cocina ocasionalmente; mantén técnicas conocidas.",
    "poco": "Prefiere comidas simples; usa técnicas muy básicas.",
}
COOKING_TIME_HINTS = {
    "mucho": "Tiene tiempo para cocinar.",
    "mas_o_menos": "Dispone de un tiempo moderado.",
    "poco": "Necesita comidas rápidas.",
}

_RECIPE_JSON_TEMPLATE = """{
  "title": "Título corto",
  "description": "Descripción breve de 1 o 2 oraciones",
  "ingredients": [{"name": "Ingrediente", "quantity": 1, "unit": "PIECE"}],
  "instructions": "Paso 1...\\n\\nPaso 2...",
  "cookingTime": 20,
  "difficulty": "Fácil",
  "servings": %(servings)d,
  "suggestedIngredients": []
}"""

_INSTRUCTIONS_AS_STRING = (
    'IMPORTANTE: el campo "instructions" debe ser un STRING (texto), NO un array. '
    "Separa cada paso con \\n\\n."
)


def _render_user_preferences(prefs: UserPreferences) -> List[str]:
    lines: List[str] = []
    conditions = [*prefs.healthConditions, *prefs.customHealthConditions]
    goals = [*prefs.personalGoals, *prefs.customPersonalGoals]
    if conditions:
        lines.append(f"- Condiciones de salud a respetar: {', '.join(conditions)}.")
    if goals:
        lines.append(f"- Objetivos personales: {', '.join(goals)}.")
    lines.append(f"- Habilidad en la cocina: {COOKING_SKILL_HINTS[prefs.cookingSkill]}")
    lines.append(f"- Tiempo disponible: {COOKING_TIME_HINTS[prefs.cookingTime]}")
    if prefs.country:
        lines.append(f"- Si es posible, usa un estilo de cocina típico de {prefs.country}.")
    return lines


def build_inventory_prompt(
    ingredients: Sequence[InventoryIngredient],
    meal_type: MealType,
    exclusion_context: str = "",
    servings: Optional[int] = None,
    suggest_ingredients: bool = False,
    options: Optional[GenerationOptions] = None,
    image: Optional[ImageAttachment] = None,
    rules: Optional[MealRules] = None,
) -> Prompt:
    """Instruction text for one meal-type recipe built from preselected inventory."""
    rules = rules or get_meal_rules()
    table = rules.for_meal(meal_type)
    options = options or GenerationOptions()
    target_servings = servings or DEFAULT_SERVINGS

    ingredient_lines = "\n".join(f"- {item.describe()}" for item in ingredients)

    if len(ingredients) >= 3:
        count_rule = "- Usa entre 3 y 4 ingredientes de la lista."
    else:
        count_rule = "- La lista es corta: usa todos los ingredientes disponibles."

    rules_lines = [
        count_rule,
        "- Usa EXCLUSIVAMENTE los ingredientes de la lista. No inventes ingredientes; "
        "solo se permiten sal, agua y aceite como básicos.",
        f'- Dificultad: "{FIXED_DIFFICULTY}".',
        f"- Máximo {MAX_STEPS} pasos en las instrucciones.",
        f"- Tiempo de cocción entre {MIN_COOKING_MINUTES} y {MAX_COOKING_MINUTES} minutos.",
        f"- Título de máximo {MAX_TITLE_WORDS} palabras.",
        f"- Porciones: {target_servings}.",
        "- Responde siempre en español.",
    ]
    if options.customTitle:
        rules_lines.append(f'- El título de la receta debe ser: "{options.customTitle}".')
    if options.customDescription:
        rules_lines.append(f'- Usa esta descripción como base: "{options.customDescription}".')
    if suggest_ingredients:
        rules_lines.append(
            f"- Puedes sugerir hasta {MAX_SUGGESTED_INGREDIENTS} ingredientes adicionales que "
            'mejorarían la receta en "suggestedIngredients"; no los uses en las instrucciones.'
        )
    else:
        rules_lines.append('- Deja "suggestedIngredients" como una lista vacía.')
    if image is not None:
        rules_lines.append("- Usa la imagen adjunta solo como inspiración visual del plato.")

    sections = [
        "Eres un chef que crea recetas caseras y sencillas.",
        f"Crea UNA receta de {table.label} con estos ingredientes del inventario:\n{ingredient_lines}",
        f"ESTILO PARA {table.label.upper()}:\n{table.style}",
        "REGLAS OBLIGATORIAS:\n" + "\n".join(rules_lines),
    ]
    if options.userPreferences is not None:
        sections.append(
            "CONSIDERACIONES DEL USUARIO:\n" + "\n".join(_render_user_preferences(options.userPreferences))
        )
    if exclusion_context:
        sections.append(exclusion_context)
    sections.append(
        "Responde SOLO con un objeto JSON con esta estructura:\n"
        + _RECIPE_JSON_TEMPLATE % {"servings": target_servings}
    )
    sections.append(_INSTRUCTIONS_AS_STRING)

    text = "\n\n".join(sections)
    if image is not None:
        return ImagePrompt(text=text, image=image)
    return TextPrompt(text=text)


def build_simple_prompt(ingredient_names: Sequence[str], preferences: Optional[RecipePreferences] = None) -> TextPrompt:
    """Free-form recipe from a plain ingredient list (no meal type, no history)."""
    lines = [
        f"Necesito que me crees una receta utilizando estos ingredientes: {', '.join(ingredient_names)}.",
        "",
        "Genera UNA receta completa que incluya: título atractivo, descripción breve (2-3 líneas), "
        "instrucciones paso a paso, tiempo de cocción estimado en minutos, nivel de dificultad "
        "(Fácil, Medio, Difícil) y número de porciones.",
        "",
        "Requisitos:",
        "- Usa principalmente los ingredientes proporcionados",
        "- Puedes sugerir ingredientes básicos adicionales (sal, aceite, especias comunes)",
        "- Las instrucciones deben ser claras y fáciles de seguir",
        "- El tiempo de cocción debe ser realista",
        "- Responde en español",
    ]
    servings = DEFAULT_SERVINGS
    if preferences is not None:
        if preferences.cookingTime:
            lines.append(f"- Tiempo de cocción preferido: máximo {preferences.cookingTime} minutos")
        if preferences.difficulty:
            lines.append(f"- Nivel de dificultad preferido: {preferences.difficulty}")
        if preferences.servings:
            servings = preferences.servings
            lines.append(f"- Número de porciones: {preferences.servings}")
        if preferences.dietaryRestrictions:
            lines.append(f"- Restricciones dietéticas: {', '.join(preferences.dietaryRestrictions)}")

    lines += [
        "",
        "Responde en formato JSON con la siguiente estructura:",
        _RECIPE_JSON_TEMPLATE % {"servings": servings},
        "",
        _INSTRUCTIONS_AS_STRING,
    ]
    return TextPrompt(text="\n".join(lines))


def build_image_analysis_prompt(
    current_inventory: Sequence[InventoryIngredient],
    image: ImageAttachment,
) -> ImagePrompt:
    """Vision prompt: detect food, split known vs new, suggest missing staples."""
    inventory_names = ", ".join(item.name for item in current_inventory) or "vacío"
    text = f"""Analiza la imagen y detecta TODOS los alimentos visibles.

Inventario actual del usuario: {inventory_names}

Reglas:
- Estima una cantidad realista para cada alimento según lo que se ve. No uses cantidades genéricas ni inventes alimentos que no estén en la imagen.
- Unidades permitidas: {", ".join(u.value for u in Unit)}.
- Categorías permitidas: {", ".join(c.value for c in Category)}.
- "confidence" es un número entre 0 y 1.
- En "detectedIngredients" van los alimentos que YA están en el inventario (mismo nombre).
- En "missingIngredients" van los alimentos visibles que NO están en el inventario.
- En "suggestions" propone hasta 5 ingredientes básicos que suelen hacer falta y no se ven en la imagen.
- Usa nombres en español.

Responde SOLO con un objeto JSON:
{{
  "detectedIngredients": [{{"name": "Tomate", "quantity": 3, "unit": "PIECE", "category": "VEGETABLE", "confidence": 0.9}}],
  "missingIngredients": [],
  "suggestions": ["Sal"]
}}"""
    return ImagePrompt(text=text, image=image)


def build_meal_plan_prompt(
    inventory: Sequence[InventoryIngredient],
    days: int,
    start_date: date,
) -> TextPrompt:
    """Multi-day plan using the inventory, one entry per day and meal slot."""
    ingredient_lines = "\n".join(f"- {item.describe()}" for item in inventory) or "- (inventario vacío)"
    slots = ", ".join(f"{m.value.lower()}" for m in MealType)
    text = f"""Crea un plan de comidas de {days} días empezando el {start_date.isoformat()}.

Ingredientes disponibles:
{ingredient_lines}

Reglas:
- Usa principalmente los ingredientes disponibles.
- Para cada día propone comidas para: {slots}.
- No repitas el mismo plato en días seguidos.
- Fechas en formato YYYY-MM-DD, consecutivas.
- Títulos en español.

Responde SOLO con un objeto JSON:
{{
  "mealPlan": [
    {{
      "date": "{start_date.isoformat()}",
      "meals": {{
        "breakfast": {{"recipeId": "id-corto", "title": "Título", "ingredients": ["Ingrediente"]}},
        "lunch": {{"recipeId": "id-corto", "title": "Título", "ingredients": ["Ingrediente"]}},
        "snack": {{"recipeId": "id-corto", "title": "Título", "ingredients": ["Ingrediente"]}},
        "dinner": {{"recipeId": "id-corto", "title": "Título", "ingredients": ["Ingrediente"]}}
      }}
    }}
  ]
}}"""
    return TextPrompt(text=text)
