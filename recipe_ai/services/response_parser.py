"""
Tolerant parser for recipe completions.

Key design:
- JSON first: strip code fences, take the greedy ``{...}`` span and decode it.
- Markdown fallback: smaller local models often ignore the JSON instruction and
  answer with ``**Título:** ...`` style sections, so every field has its own
  chain of extractors, first match wins.
- Nothing recognisable (or the extractors blow up) -> a fixed default recipe.
  Parsing never raises to the caller.

Parsing and default-filling are separate steps: ``parse_response`` returns a
``ParsedRecipe`` variant, ``normalize_recipe`` turns it into a ``GeneratedRecipe``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from recipe_ai.models.inventory import Unit
from recipe_ai.models.recipe import (
    DEFAULT_COOKING_TIME,
    DEFAULT_DESCRIPTION,
    DEFAULT_DIFFICULTY,
    DEFAULT_INSTRUCTIONS,
    DEFAULT_SERVINGS,
    DEFAULT_TITLE,
    GeneratedRecipe,
    RecipeIngredient,
)
from recipe_ai.utils.json_extraction import extract_json_object

logger = logging.getLogger(__name__)

_INT = re.compile(r"\d+")


def _first_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(round(value))
    if isinstance(value, str):
        m = _INT.search(value)
        return int(m.group(0)) if m else None
    return None


def _ingredient_name(item: Any) -> Optional[str]:
    if isinstance(item, str):
        return item.strip() or None
    if isinstance(item, dict):
        name = item.get("name") or item.get("nombre")
        return str(name).strip() or None if name is not None else None
    return None


class RecipeFields(BaseModel):
    """Schema every parsed response is validated against. All fields optional."""

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    description: Optional[str] = None
    instructions: Optional[str] = None
    cookingTime: Optional[int] = None
    difficulty: Optional[str] = None
    servings: Optional[int] = None
    suggestedIngredients: List[str] = Field(default_factory=list)
    ingredients: List[RecipeIngredient] = Field(default_factory=list)

    @field_validator("title", "description", "difficulty", mode="before")
    @classmethod
    def _text(cls, v):
        if v is None:
            return None
        text = v if isinstance(v, str) else str(v)
        return text if text.strip() else None

    @field_validator("instructions", mode="before")
    @classmethod
    def _flatten_steps(cls, v):
        if v is None:
            return None
        if isinstance(v, (list, tuple)):
            return "\n\n".join(str(step) for step in v)
        text = v if isinstance(v, str) else str(v)
        return text if text.strip() else None

    @field_validator("cookingTime", "servings", mode="before")
    @classmethod
    def _number(cls, v):
        return _first_int(v)

    @field_validator("suggestedIngredients", mode="before")
    @classmethod
    def _suggestions(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        if not isinstance(v, (list, tuple)):
            return []
        return [name for name in (_ingredient_name(item) for item in v) if name]

    @field_validator("ingredients", mode="before")
    @classmethod
    def _ingredients(cls, v):
        if not isinstance(v, (list, tuple)):
            return []
        items = []
        for item in v:
            name = _ingredient_name(item)
            if not name:
                continue
            quantity: Any = 1
            unit = Unit.PIECE.value
            if isinstance(item, dict):
                try:
                    quantity = float(item.get("quantity", 1))
                except (TypeError, ValueError):
                    quantity = 1
                if quantity <= 0:
                    quantity = 1
                if item.get("unit"):
                    unit = str(item["unit"]).strip().upper()
            items.append({"name": name, "quantity": quantity, "unit": unit})
        return items


# ---------------------------------------------------------------------------
# Parse result variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JsonParsed:
    fields: RecipeFields
    source: str = "json"


@dataclass(frozen=True)
class MarkdownParsed:
    fields: RecipeFields
    source: str = "markdown"


@dataclass(frozen=True)
class DefaultFallback:
    reason: str
    source: str = "default"


ParsedRecipe = Union[JsonParsed, MarkdownParsed, DefaultFallback]


# ---------------------------------------------------------------------------
# Markdown extraction
# ---------------------------------------------------------------------------

_FLAGS = re.IGNORECASE


def _label(word: str) -> str:
    # **Título:**  **Título**:  **Título**
    return rf"\*\*[ \t]*{word}[ \t]*:?[ \t]*\*\*[ \t]*:?"


_TITLE_WORD = r"T[íi]tulo(?: de la receta)?"
_SECTION_WORDS = (
    r"T[íi]tulo|Descripci[óo]n|Ingredientes|Instrucciones|Preparaci[óo]n|Pasos|"
    r"Tiempo|Nivel|Dificultad|N[úu]mero|Porciones|Notas|Consejos|Sugerencias"
)
# A block section ends at the next line that starts with a bold section label.
_NEXT_SECTION = rf"(?=\n[ \t]*\*\*\s*(?:{_SECTION_WORDS})[^*\n]*\*\*|\Z)"

_MARKERS = re.compile(
    rf"\*\*[^*\n]+\*\*|^\s*#{{1,6}}\s|{_TITLE_WORD}|Descripci[óo]n|Ingredientes|Instrucciones",
    re.IGNORECASE | re.MULTILINE,
)

_TITLE_PATTERNS = [
    re.compile(rf"{_label(_TITLE_WORD)}[ \t]*([^\n]*\S)", _FLAGS),
    re.compile(rf"{_label(_TITLE_WORD)}[ \t]*\n\s*([^\n]*\S)", _FLAGS),
    re.compile(r"^[ \t]*#{1,6}[ \t]+([^\n]*\S)", re.MULTILINE),
]
_BOLD_SPAN = re.compile(r"\*\*([^*\n]+?)\*\*")
_TITLE_PLAIN = [
    re.compile(rf"{_TITLE_WORD}\s*:[ \t]*([^\n]*\S)", _FLAGS),
    re.compile(rf"^[^\n]*{_TITLE_WORD}[^\n]*?:[ \t]*([^\n]*\S)", _FLAGS | re.MULTILINE),
]
_TITLE_PREFIX = re.compile(rf"^\s*{_TITLE_WORD}\s*:\s*", _FLAGS)

_DESCRIPTION_PATTERNS = [
    re.compile(rf"{_label('Descripci[óo]n')}\s*(.*?)(?=\*\*|\Z)", _FLAGS | re.DOTALL),
    re.compile(r"Descripci[óo]n\s*:\s*(.*?)(?=Tiempo|Ingredientes|\Z)", _FLAGS | re.DOTALL),
]
_INGREDIENT_BLOCK_PATTERNS = [
    re.compile(rf"{_label('Ingredientes')}\s*(.*?){_NEXT_SECTION}", _FLAGS | re.DOTALL),
    re.compile(
        r"(?<![\w*])Ingredientes\s*:\s*(.*?)(?=\n\s*(?:\*\*|Instrucciones|Preparaci[óo]n|Tiempo)|\Z)",
        _FLAGS | re.DOTALL,
    ),
]
_SUGGESTION_BLOCK = re.compile(
    rf"{_label('Ingredientes (?:sugeridos|adicionales)')}\s*(.*?){_NEXT_SECTION}",
    _FLAGS | re.DOTALL,
)
_BULLET_LINE = re.compile(r"^[ \t]*[*•\-][ \t]+(.+)$", re.MULTILINE)
_COOKING_TIME_PATTERNS = [
    re.compile(rf"{_label('Tiempo de cocci[óo]n(?: estimado)?')}[ \t]*([^\n]*)", _FLAGS),
    re.compile(r"Tiempo de cocci[óo]n[^:\n]*:[ \t]*([^\n]*)", _FLAGS),
]
_DIFFICULTY_PATTERNS = [
    re.compile(rf"{_label('(?:Nivel de )?dificultad')}[ \t]*([^\n*]*)", _FLAGS),
    re.compile(r"(?:Nivel de )?dificultad\s*:[ \t]*([^\n*]*)", _FLAGS),
]
_SERVINGS_PATTERNS = [
    re.compile(rf"{_label('(?:N[úu]mero de )?porciones')}[ \t]*([^\n]*)", _FLAGS),
    re.compile(r"(?:N[úu]mero de )?porciones\s*:[ \t]*([^\n]*)", _FLAGS),
]
_INSTRUCTION_PATTERNS = [
    re.compile(rf"{_label('(?:Instrucciones|Preparaci[óo]n|Pasos)')}\s*(.*?){_NEXT_SECTION}", _FLAGS | re.DOTALL),
    re.compile(rf"(?:Instrucciones|Preparaci[óo]n)\s*:\s*(.*?){_NEXT_SECTION}", _FLAGS | re.DOTALL),
    re.compile(rf"(^[ \t]*\d+\.[ \t]+.*?){_NEXT_SECTION}", re.MULTILINE | re.DOTALL),
]


def _first_group(patterns: Sequence[re.Pattern], text: str) -> Optional[str]:
    for pattern in patterns:
        m = pattern.search(text)
        if m and m.group(1).strip():
            return m.group(1)
    return None


def _clean_inline(value: str) -> str:
    value = value.replace("*", "").strip()
    return value.strip("#").strip().strip("\"'").strip()


def _is_label(span: str) -> bool:
    span = span.strip()
    return span.endswith(":") or re.match(rf"^(?:{_SECTION_WORDS})\b", span, _FLAGS) is not None


def extract_title(text: str) -> Optional[str]:
    raw = _first_group(_TITLE_PATTERNS, text)
    if raw is None:
        for m in _BOLD_SPAN.finditer(text):
            if not _is_label(m.group(1)):
                raw = m.group(1)
                break
    if raw is None:
        raw = _first_group(_TITLE_PLAIN, text)
    if raw is None:
        raw = next((line for line in text.splitlines() if line.strip()), None)
    if raw is None:
        return None
    title = _clean_inline(_TITLE_PREFIX.sub("", _clean_inline(raw)))
    return title or None


def extract_description(text: str) -> Optional[str]:
    raw = _first_group(_DESCRIPTION_PATTERNS, text)
    return _clean_inline(raw) or None if raw else None


def _bullet_names(block: str) -> List[str]:
    names = []
    for m in _BULLET_LINE.finditer(block):
        line = m.group(1).replace("*", "").strip()
        name = line.split(":", 1)[0].strip()
        if name:
            names.append(name)
    return names


def extract_ingredients(text: str) -> List[RecipeIngredient]:
    block = _first_group(_INGREDIENT_BLOCK_PATTERNS, text)
    if not block:
        return []
    # Quantities in prose are not reliable enough to parse; JSON answers carry real ones.
    return [RecipeIngredient(name=name) for name in _bullet_names(block)]


def extract_suggestions(text: str) -> List[str]:
    m = _SUGGESTION_BLOCK.search(text)
    return _bullet_names(m.group(1)) if m else []


def extract_cooking_time(text: str) -> Optional[int]:
    return _first_int(_first_group(_COOKING_TIME_PATTERNS, text))


def extract_difficulty(text: str) -> Optional[str]:
    raw = _first_group(_DIFFICULTY_PATTERNS, text)
    return raw.strip() or None if raw else None


def extract_servings(text: str) -> Optional[int]:
    return _first_int(_first_group(_SERVINGS_PATTERNS, text))


def extract_instructions(text: str) -> Optional[str]:
    raw = _first_group(_INSTRUCTION_PATTERNS, text)
    if raw is None:
        return None
    return raw.replace("*", "").strip() or None


def has_markdown_markers(text: str) -> bool:
    return _MARKERS.search(text) is not None


def extract_markdown_fields(text: str) -> RecipeFields:
    """Run every field extractor over a Markdown/prose answer."""
    extractors: dict[str, Callable[[str], Any]] = {
        "title": extract_title,
        "description": extract_description,
        "ingredients": extract_ingredients,
        "suggestedIngredients": extract_suggestions,
        "cookingTime": extract_cooking_time,
        "difficulty": extract_difficulty,
        "servings": extract_servings,
        "instructions": extract_instructions,
    }
    values = {field: extract(text) for field, extract in extractors.items()}
    values["ingredients"] = [i.model_dump() for i in values["ingredients"]]
    return RecipeFields.model_validate(values)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _unwrap(data: dict) -> dict:
    # {"recipe": {...}} / {"receta": {...}}
    if len(data) == 1:
        key, inner = next(iter(data.items()))
        if isinstance(inner, dict) and ("recipe" in key.lower() or "receta" in key.lower()):
            return inner
    return data


def parse_response(raw_text: str) -> ParsedRecipe:
    """Classify and parse a raw completion. Never raises."""
    text = raw_text or ""
    if not text.strip():
        return DefaultFallback(reason="empty response")

    data = extract_json_object(text)
    if data is not None:
        try:
            return JsonParsed(fields=RecipeFields.model_validate(_unwrap(data)))
        except PydanticValidationError as e:
            logger.warning("JSON recipe did not validate, trying Markdown: %s", e)

    if not has_markdown_markers(text):
        logger.warning("Model response has no recognisable recipe structure")
        return DefaultFallback(reason="no recognisable structure")

    try:
        return MarkdownParsed(fields=extract_markdown_fields(text))
    except Exception as e:
        logger.error("Markdown extraction failed: %s", e, exc_info=True)
        return DefaultFallback(reason=f"markdown extraction failed: {e}")


def normalize_recipe(parsed: ParsedRecipe, servings: Optional[int] = None) -> GeneratedRecipe:
    """
    Fill defaults for anything the model left out.

    ``servings`` is the caller's target, used only when the model gave none.
    """
    fallback_servings = servings if servings and servings > 0 else DEFAULT_SERVINGS

    if isinstance(parsed, DefaultFallback):
        return GeneratedRecipe(servings=fallback_servings)

    f = parsed.fields
    return GeneratedRecipe(
        title=f.title or DEFAULT_TITLE,
        description=f.description or DEFAULT_DESCRIPTION,
        instructions=f.instructions or DEFAULT_INSTRUCTIONS,
        cookingTime=f.cookingTime if f.cookingTime and f.cookingTime > 0 else DEFAULT_COOKING_TIME,
        difficulty=f.difficulty or DEFAULT_DIFFICULTY,
        servings=f.servings if f.servings and f.servings > 0 else fallback_servings,
        suggestedIngredients=list(f.suggestedIngredients),
        ingredients=list(f.ingredients),
    )


def parse_recipe(raw_text: str, servings: Optional[int] = None) -> GeneratedRecipe:
    """Parse + normalize in one call."""
    parsed = parse_response(raw_text)
    logger.info("Parsed model response via %s path", parsed.source)
    return normalize_recipe(parsed, servings=servings)
