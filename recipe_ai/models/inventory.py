"""Inventory and image-analysis Pydantic models."""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field, field_validator


class Unit(str, Enum):
    """Measurement unit of an inventory ingredient."""

    PIECE = "PIECE"
    GRAM = "GRAM"
    KILOGRAM = "KILOGRAM"
    LITER = "LITER"
    MILLILITER = "MILLILITER"
    CUP = "CUP"
    TABLESPOON = "TABLESPOON"
    TEASPOON = "TEASPOON"
    POUND = "POUND"
    OUNCE = "OUNCE"


class Category(str, Enum):
    """Food category of an inventory ingredient."""

    VEGETABLE = "VEGETABLE"
    FRUIT = "FRUIT"
    MEAT = "MEAT"
    DAIRY = "DAIRY"
    GRAIN = "GRAIN"
    LIQUID = "LIQUID"
    SPICE = "SPICE"
    OTHER = "OTHER"


class MealType(str, Enum):
    """Meal slot a recipe is generated for."""

    BREAKFAST = "BREAKFAST"
    LUNCH = "LUNCH"
    SNACK = "SNACK"
    DINNER = "DINNER"


UNIT_LABELS = {
    Unit.PIECE: "unidades",
    Unit.GRAM: "gramos",
    Unit.KILOGRAM: "kilogramos",
    Unit.LITER: "litros",
    Unit.MILLILITER: "mililitros",
    Unit.CUP: "tazas",
    Unit.TABLESPOON: "cucharadas",
    Unit.TEASPOON: "cucharaditas",
    Unit.POUND: "libras",
    Unit.OUNCE: "onzas",
}


def _coerce_enum(enum_cls, value, default):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().upper())
        except ValueError:
            return default
    return default


def _positive_quantity(value):
    """Numeric quantity above zero, 1 for anything unreadable ("dos", None, -3)."""
    try:
        qty = float(value)
    except (TypeError, ValueError):
        return 1
    return qty if qty > 0 else 1


class InventoryIngredient(BaseModel):
    """One ingredient a user currently holds."""

    name: str = Field(..., min_length=1, description="Ingredient name")
    quantity: float = Field(1, description="Available amount")
    unit: Unit = Field(Unit.PIECE, description="Unit of measurement")
    category: Category = Field(Category.OTHER, description="Food category")

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        return v.strip()

    @field_validator("quantity", mode="before")
    @classmethod
    def _lenient_quantity(cls, v):
        return _positive_quantity(v)

    @field_validator("unit", mode="before")
    @classmethod
    def _lenient_unit(cls, v):
        return _coerce_enum(Unit, v, Unit.PIECE)

    @field_validator("category", mode="before")
    @classmethod
    def _lenient_category(cls, v):
        return _coerce_enum(Category, v, Category.OTHER)

    def describe(self) -> str:
        """Human readable line used inside prompts, e.g. ``Huevos (6 unidades)``."""
        qty = int(self.quantity) if float(self.quantity).is_integer() else self.quantity
        return f"{self.name} ({qty} {UNIT_LABELS[self.unit]})"


class DetectedIngredient(BaseModel):
    """Ingredient recognised in an image."""

    name: str
    quantity: float = 1
    unit: Unit = Unit.PIECE
    category: Category = Category.OTHER
    confidence: float = Field(0.5, ge=0.0, le=1.0)

    @field_validator("unit", mode="before")
    @classmethod
    def _lenient_unit(cls, v):
        return _coerce_enum(Unit, v, Unit.PIECE)

    @field_validator("category", mode="before")
    @classmethod
    def _lenient_category(cls, v):
        return _coerce_enum(Category, v, Category.OTHER)

    @field_validator("quantity", mode="before")
    @classmethod
    def _lenient_quantity(cls, v):
        return _positive_quantity(v)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, v):
        try:
            conf = float(v)
        except (TypeError, ValueError):
            return 0.5
        return min(1.0, max(0.0, conf))


class IngredientAnalysis(BaseModel):
    """Result of analysing a photo against the current inventory."""

    detectedIngredients: List[DetectedIngredient] = Field(
        default_factory=list, description="Items that are already in the inventory"
    )
    missingIngredients: List[DetectedIngredient] = Field(
        default_factory=list, description="Items seen in the photo that are not in the inventory"
    )
    suggestions: List[str] = Field(
        default_factory=list, description="Staples worth buying that were not visible"
    )
