"""Recipe model, validation, calorie calculation and the recipe book service."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .auth import AuthContext, require_user
from .store import DocumentNotFound, DocumentStore

logger = logging.getLogger(__name__)


class RecipeValidationError(ValueError):
    """Exception raised when recipe data breaks a constraint."""

    pass


class RecipeNotFound(Exception):
    """Exception raised when a recipe id does not exist."""

    pass


class PermissionDenied(Exception):
    """Exception raised when a user changes a recipe they do not own."""

    pass


class Difficulty(str, Enum):
    FACILE = "facile"
    MOYEN = "moyen"
    DIFFICILE = "difficile"


@dataclass
class IngredientLine:
    """An ingredient as used in a recipe, with nutrition values per 100g."""

    name: str
    quantity_per_serving: float
    unit: str
    calories: float = 0.0
    proteins: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    ingredient_id: str | None = None  # catalogue identity, e.g. "local-tomates"

    @property
    def identity(self) -> str:
        """Key identifying the ingredient across recipes."""
        if self.ingredient_id:
            return self.ingredient_id
        return self.name.strip().lower()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "quantity_per_serving": self.quantity_per_serving,
            "unit": self.unit,
            "calories": self.calories,
            "proteins": self.proteins,
            "carbs": self.carbs,
            "fat": self.fat,
            "fiber": self.fiber,
            "ingredient_id": self.ingredient_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IngredientLine:
        return cls(
            name=data["name"],
            quantity_per_serving=float(data["quantity_per_serving"]),
            unit=data.get("unit") or "",
            calories=float(data.get("calories") or 0),
            proteins=float(data.get("proteins") or 0),
            carbs=float(data.get("carbs") or 0),
            fat=float(data.get("fat") or 0),
            fiber=float(data.get("fiber") or 0),
            ingredient_id=data.get("ingredient_id"),
        )


@dataclass
class Recipe:
    """A shared recipe."""

    name: str
    difficulty: Difficulty
    prep_time: int
    cook_time: int
    servings: int
    ingredients: list[IngredientLine] = field(default_factory=list)
    steps: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    creator: str = ""
    description: str = ""
    image: str | None = None
    calories: int = 0
    id: str | None = None
    user_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def total_time(self) -> int:
        return self.prep_time + self.cook_time

    def to_dict(self) -> dict[str, Any]:
        """Convert recipe to dictionary for storage."""
        data: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "difficulty": self.difficulty.value,
            "prep_time": self.prep_time,
            "cook_time": self.cook_time,
            "servings": self.servings,
            "ingredients": [ing.to_dict() for ing in self.ingredients],
            "steps": list(self.steps),
            "tags": list(self.tags),
            "creator": self.creator,
            "image": self.image,
            "calories": self.calories,
            "user_id": self.user_id,
        }
        if self.id:
            data["id"] = self.id
        if self.created_at:
            data["created_at"] = self.created_at
        if self.updated_at:
            data["updated_at"] = self.updated_at
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Recipe:
        """
        Create recipe from dictionary.

        Raises:
            RecipeValidationError: If a required field is missing or malformed
        """
        try:
            return cls(
                name=data["name"],
                description=data.get("description") or "",
                difficulty=parse_difficulty(data.get("difficulty", Difficulty.MOYEN.value)),
                prep_time=int(data.get("prep_time") or 0),
                cook_time=int(data.get("cook_time") or 0),
                servings=data.get("servings", 1),
                ingredients=[IngredientLine.from_dict(i) for i in data.get("ingredients", [])],
                steps=list(data.get("steps") or []),
                tags=list(data.get("tags") or []),
                creator=data.get("creator") or "",
                image=data.get("image"),
                calories=int(data.get("calories") or 0),
                id=data.get("id"),
                user_id=data.get("user_id"),
                created_at=data.get("created_at"),
                updated_at=data.get("updated_at"),
            )
        except RecipeValidationError:
            raise
        except KeyError as e:
            raise RecipeValidationError(f"Champ requis manquant : {e.args[0]}") from e
        except (TypeError, ValueError) as e:
            raise RecipeValidationError(f"Données de recette invalides : {e}") from e


def parse_difficulty(value: str | Difficulty) -> Difficulty:
    """
    Parse a difficulty value.

    Raises:
        RecipeValidationError: If the value is not facile, moyen or difficile
    """
    if isinstance(value, Difficulty):
        return value
    try:
        return Difficulty(str(value).strip().lower())
    except ValueError as e:
        choices = ", ".join(d.value for d in Difficulty)
        raise RecipeValidationError(
            f"Difficulté invalide : '{value}' (attendu : {choices})"
        ) from e


def calculate_total_calories(ingredients: list[IngredientLine]) -> int:
    """Total calories of a recipe: sum of calories per 100g scaled by quantity."""
    total = sum(ing.calories * ing.quantity_per_serving / 100 for ing in ingredients)
    return round(total)


def clean_steps(steps: list[str]) -> list[str]:
    """Drop blank steps and strip surrounding whitespace."""
    return [step.strip() for step in steps if step and step.strip()]


def clean_tags(tags: list[str]) -> list[str]:
    """Strip tags and drop blanks and case-insensitive duplicates, keeping order."""
    seen: set[str] = set()
    result = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag.lower() not in seen:
            seen.add(tag.lower())
            result.append(tag)
    return result


def validate_recipe(recipe: Recipe) -> None:
    """
    Check a recipe against the data constraints.

    Raises:
        RecipeValidationError: On the first violated constraint
    """
    if not recipe.name.strip():
        raise RecipeValidationError("Le nom de la recette est requis")

    if not recipe.creator.strip():
        raise RecipeValidationError("Le créateur est requis")

    if not isinstance(recipe.difficulty, Difficulty):
        parse_difficulty(recipe.difficulty)

    if recipe.prep_time < 0:
        raise RecipeValidationError("Le temps de préparation ne peut pas être négatif")

    if recipe.cook_time < 0:
        raise RecipeValidationError("Le temps de cuisson ne peut pas être négatif")

    if recipe.prep_time == 0 and recipe.cook_time == 0:
        raise RecipeValidationError(
            "Le temps de préparation ou de cuisson doit être supérieur à 0"
        )

    if (
        isinstance(recipe.servings, bool)
        or not isinstance(recipe.servings, int)
        or recipe.servings <= 0
    ):
        raise RecipeValidationError("Le nombre de portions doit être un entier supérieur à 0")

    if not recipe.ingredients:
        raise RecipeValidationError("Au moins un ingrédient est requis")

    if not clean_steps(recipe.steps):
        raise RecipeValidationError("Au moins une étape est requise")

    for index, ingredient in enumerate(recipe.ingredients, 1):
        if not ingredient.name.strip():
            raise RecipeValidationError(f"L'ingrédient {index} doit avoir un nom")
        if ingredient.quantity_per_serving <= 0:
            raise RecipeValidationError(
                f"L'ingrédient {index} doit avoir une quantité supérieure à 0"
            )
        if ingredient.calories < 0:
            raise RecipeValidationError(
                f"L'ingrédient {index} ne peut pas avoir de calories négatives"
            )
        if min(ingredient.proteins, ingredient.carbs, ingredient.fat, ingredient.fiber) < 0:
            raise RecipeValidationError(
                f"L'ingrédient {index} ne peut pas avoir de valeurs nutritionnelles négatives"
            )


def prepare_recipe(recipe: Recipe) -> Recipe:
    """Validate a recipe and return a copy with cleaned lists and derived calories."""
    validate_recipe(recipe)
    return replace(
        recipe,
        name=recipe.name.strip(),
        steps=clean_steps(recipe.steps),
        tags=clean_tags(recipe.tags),
        calories=calculate_total_calories(recipe.ingredients),
    )


@dataclass
class RecipeFilters:
    """Filters for browsing recipes."""

    search: str | None = None
    tags: list[str] = field(default_factory=list)
    difficulty: Difficulty | None = None
    max_prep_time: int | None = None
    max_cook_time: int | None = None
    max_calories: int | None = None
    user_id: str | None = None
    page: int = 1
    limit: int = 12


@dataclass
class RecipePage:
    """A page of recipes with pagination info."""

    recipes: list[Recipe]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_more(self) -> bool:
        return self.total > self.page * self.limit


class RecipeBook:
    """Create, browse, edit and delete recipes."""

    def __init__(self, store: DocumentStore, auth: AuthContext) -> None:
        self.store = store
        self.auth = auth

    def create(self, recipe: Recipe) -> Recipe:
        """
        Validate and store a new recipe owned by the current user.

        Raises:
            AuthError: If no user is signed in
            RecipeValidationError: If the recipe is invalid
        """
        user_id = require_user(self.auth)
        prepared = prepare_recipe(replace(recipe, id=None, user_id=user_id))

        doc = self.store.create(prepared.to_dict())
        logger.info("Created recipe %s (%s)", doc["id"], prepared.name)
        return Recipe.from_dict(doc)

    def get(self, recipe_id: str) -> Recipe:
        """
        Get a recipe by id.

        Raises:
            RecipeNotFound: If the recipe does not exist
        """
        try:
            return Recipe.from_dict(self.store.get(recipe_id))
        except DocumentNotFound as e:
            raise RecipeNotFound(f"Recette '{recipe_id}' non trouvée") from e

    def _get_owned(self, recipe_id: str, action: str) -> dict[str, Any]:
        require_user(self.auth)
        try:
            doc = self.store.get(recipe_id)
        except DocumentNotFound as e:
            raise RecipeNotFound(f"Recette '{recipe_id}' non trouvée") from e

        if not self.auth.owns(doc):
            raise PermissionDenied(f"Vous n'êtes pas autorisé à {action} cette recette")
        return doc

    def update(self, recipe_id: str, changes: dict[str, Any]) -> Recipe:
        """
        Apply partial changes to a recipe owned by the current user.

        Calories are recomputed from the resulting ingredients.

        Raises:
            AuthError: If no user is signed in
            RecipeNotFound: If the recipe does not exist
            PermissionDenied: If the user does not own the recipe
            RecipeValidationError: If the updated recipe is invalid
        """
        doc = self._get_owned(recipe_id, "modifier")

        protected = {"id", "user_id", "calories", "created_at", "updated_at"}
        merged = dict(doc)
        merged.update({k: v for k, v in changes.items() if k not in protected})

        prepared = prepare_recipe(Recipe.from_dict(merged))
        stored = prepared.to_dict()
        for key in ("id", "created_at", "updated_at"):
            stored.pop(key, None)

        updated = self.store.update(recipe_id, stored)
        logger.info("Updated recipe %s", recipe_id)
        return Recipe.from_dict(updated)

    def delete(self, recipe_id: str) -> None:
        """
        Delete a recipe owned by the current user.

        Raises:
            AuthError: If no user is signed in
            RecipeNotFound: If the recipe does not exist
            PermissionDenied: If the user does not own the recipe
        """
        self._get_owned(recipe_id, "supprimer")
        self.store.delete(recipe_id)
        logger.info("Deleted recipe %s", recipe_id)

    def list(self, filters: RecipeFilters | None = None) -> RecipePage:
        """Browse recipes, newest first, with filters and pagination."""
        filters = filters or RecipeFilters()

        equality: dict[str, Any] = {}
        if filters.difficulty is not None:
            equality["difficulty"] = parse_difficulty(filters.difficulty).value
        if filters.user_id:
            equality["user_id"] = filters.user_id

        max_values: dict[str, float] = {}
        if filters.max_prep_time is not None:
            max_values["prep_time"] = filters.max_prep_time
        if filters.max_cook_time is not None:
            max_values["cook_time"] = filters.max_cook_time
        if filters.max_calories is not None:
            max_values["calories"] = filters.max_calories

        page = self.store.list(
            equality or None,
            search=filters.search,
            search_fields=("name", "description"),
            contains={"tags": filters.tags} if filters.tags else None,
            max_values=max_values or None,
            page=filters.page,
            limit=filters.limit,
        )

        return RecipePage(
            recipes=[Recipe.from_dict(doc) for doc in page.items],
            total=page.total,
            page=filters.page,
            limit=filters.limit,
        )

    def list_for_user(self, page: int = 1, limit: int = 12) -> RecipePage:
        """List the signed-in user's own recipes."""
        user_id = require_user(self.auth)
        return self.list(RecipeFilters(user_id=user_id, page=page, limit=limit))

    def search_by_tags(self, tags: list[str]) -> list[Recipe]:
        """Find recipes carrying any of the given tags."""
        if not tags:
            return []
        page = self.store.list(overlaps={"tags": tags})
        return [Recipe.from_dict(doc) for doc in page.items]

    def all_tags(self) -> list[str]:
        """All distinct tags used by stored recipes, sorted case-insensitively."""
        seen: dict[str, str] = {}
        for doc in self.store.list().items:
            for tag in doc.get("tags") or []:
                seen.setdefault(tag.lower(), tag)
        return sorted(seen.values(), key=str.lower)
