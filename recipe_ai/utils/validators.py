"""Input validation utilities."""

from recipe_ai.utils.exceptions import ValidationError

MAX_INGREDIENTS = 50
MAX_INGREDIENT_LENGTH = 200


def validate_ingredients_list(ingredients: list) -> list:
    """
    Validate ingredients list.

    Args:
        ingredients: List of ingredient strings

    Returns:
        Validated list of ingredients

    Raises:
        ValidationError: If ingredients list is invalid
    """
    if not isinstance(ingredients, list):
        raise ValidationError("Los ingredientes deben ser una lista")

    if not ingredients:
        raise ValidationError("La lista de ingredientes no puede estar vacía")

    if len(ingredients) > MAX_INGREDIENTS:
        raise ValidationError(f"La lista de ingredientes no puede superar {MAX_INGREDIENTS} elementos")

    validated = []
    for ingredient in ingredients:
        if not isinstance(ingredient, str):
            raise ValidationError("Todos los ingredientes deben ser texto")
        ingredient = ingredient.strip()
        if not ingredient:
            continue
        if len(ingredient) > MAX_INGREDIENT_LENGTH:
            raise ValidationError(
                f"Cada ingrediente puede tener como máximo {MAX_INGREDIENT_LENGTH} caracteres"
            )
        validated.append(ingredient)

    if not validated:
        raise ValidationError("Se requiere al menos un ingrediente válido")

    return validated
