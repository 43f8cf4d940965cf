"""Per-user shopping list aggregated from recipes."""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from .auth import AuthContext, require_user
from .recipes import Recipe, RecipeBook
from .store import DocumentStore

logger = logging.getLogger(__name__)

DEFAULT_LIST_NAME = "Ma liste de courses"

# Remainders below this are float noise from repeated add/remove
QUANTITY_EPSILON = 1e-9


class ShoppingListError(Exception):
    """Exception raised for invalid shopping list operations."""

    pass


class ItemNotFound(ShoppingListError):
    """Exception raised when a list item id does not exist."""

    pass


@dataclass
class ShoppingListItem:
    """A line of the shopping list."""

    name: str
    quantity: float
    unit: str
    ingredient_id: str | None = None
    checked: bool = False
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __str__(self) -> str:
        parts = [format_quantity(self.quantity)]
        if self.unit:
            parts.append(self.unit)
        parts.append(self.name)
        return " ".join(parts)

    def matches(self, ingredient_id: str | None, unit: str) -> bool:
        """Check if this item is the line for an (ingredient, unit) pair."""
        if not self.ingredient_id:
            return False
        return self.ingredient_id == ingredient_id and self.unit == unit

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "ingredient_id": self.ingredient_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "checked": self.checked,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ShoppingListItem":
        return cls(
            id=data.get("id") or uuid.uuid4().hex,
            ingredient_id=data.get("ingredient_id"),
            name=data["name"],
            quantity=float(data["quantity"]),
            unit=data.get("unit") or "",
            checked=bool(data.get("checked", False)),
        )


@dataclass
class ShoppingList:
    """A user's shopping list and the recipes that contributed to it."""

    user_id: str
    name: str = DEFAULT_LIST_NAME
    items: list[ShoppingListItem] = field(default_factory=list)
    recipes: list[str] = field(default_factory=list)
    id: str | None = None

    @property
    def item_count(self) -> int:
        return len(self.items)

    def find_item(self, ingredient_id: str | None, unit: str) -> ShoppingListItem | None:
        for item in self.items:
            if item.matches(ingredient_id, unit):
                return item
        return None

    def get_item(self, item_id: str) -> ShoppingListItem:
        """
        Get an item by id.

        Raises:
            ItemNotFound: If the list has no such item
        """
        for item in self.items:
            if item.id == item_id:
                return item
        raise ItemNotFound(f"Élément '{item_id}' non trouvé dans la liste")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "user_id": self.user_id,
            "name": self.name,
            "items": [item.to_dict() for item in self.items],
            "recipes": list(self.recipes),
        }
        if self.id:
            data["id"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ShoppingList":
        return cls(
            id=data.get("id"),
            user_id=data["user_id"],
            name=data.get("name") or DEFAULT_LIST_NAME,
            items=[ShoppingListItem.from_dict(i) for i in data.get("items", [])],
            recipes=list(data.get("recipes") or []),
        )


def format_quantity(quantity: float) -> str:
    """Format a quantity without trailing zeros."""
    if quantity == int(quantity):
        return str(int(quantity))
    return f"{quantity:.2f}".rstrip("0").rstrip(".")


def add_recipe(
    shopping_list: ShoppingList, recipe: Recipe, servings_multiplier: float = 1
) -> ShoppingList:
    """
    Add a recipe's ingredients to the list.

    Each ingredient's per-serving quantity is multiplied by ``servings_multiplier``
    and merged into the item with the same ingredient and unit, or appended as a
    new unchecked item. Adding the same recipe twice adds the quantities twice.

    Raises:
        ShoppingListError: If the multiplier is not positive
    """
    if servings_multiplier <= 0:
        raise ShoppingListError("Le nombre de portions doit être supérieur à 0")

    for ingredient in recipe.ingredients:
        adjusted = ingredient.quantity_per_serving * servings_multiplier
        existing = shopping_list.find_item(ingredient.identity, ingredient.unit)

        if existing is not None:
            existing.quantity += adjusted
        else:
            shopping_list.items.append(
                ShoppingListItem(
                    ingredient_id=ingredient.identity,
                    name=ingredient.name,
                    quantity=adjusted,
                    unit=ingredient.unit,
                )
            )

    if recipe.id and recipe.id not in shopping_list.recipes:
        shopping_list.recipes.append(recipe.id)

    return shopping_list


def remove_recipe(shopping_list: ShoppingList, recipe: Recipe) -> ShoppingList:
    """
    Take a recipe's ingredients back out of the list.

    Each matching item is decreased by the ingredient's unscaled per-serving
    quantity, whatever multiplier was used when the recipe was added. Items
    reaching zero or less are removed. The recipe reference is always dropped.
    """
    for ingredient in recipe.ingredients:
        existing = shopping_list.find_item(ingredient.identity, ingredient.unit)
        if existing is None:
            continue

        existing.quantity -= ingredient.quantity_per_serving
        if existing.quantity <= QUANTITY_EPSILON:
            shopping_list.items.remove(existing)

    shopping_list.recipes = [r for r in shopping_list.recipes if r != recipe.id]
    return shopping_list


def add_item(
    shopping_list: ShoppingList,
    name: str,
    quantity: float,
    unit: str,
    ingredient_id: str | None = None,
) -> ShoppingListItem:
    """
    Add a single item to the list, merging with an existing line of the same ingredient and unit.

    Raises:
        ShoppingListError: If the name is empty or the quantity is not positive
    """
    if not name.strip():
        raise ShoppingListError("Le nom de l'article est requis")
    if quantity <= 0:
        raise ShoppingListError("La quantité doit être supérieure à 0")

    existing = shopping_list.find_item(ingredient_id, unit)
    if existing is not None:
        existing.quantity += quantity
        return existing

    item = ShoppingListItem(
        ingredient_id=ingredient_id, name=name.strip(), quantity=quantity, unit=unit
    )
    shopping_list.items.append(item)
    return item


def update_item(
    shopping_list: ShoppingList,
    item_id: str,
    checked: bool | None = None,
    quantity: float | None = None,
) -> ShoppingListItem | None:
    """
    Update the checked flag and/or quantity of an item.

    A quantity of zero or less removes the item, in which case None is returned.

    Raises:
        ItemNotFound: If the list has no such item
    """
    item = shopping_list.get_item(item_id)

    if checked is not None:
        item.checked = checked

    if quantity is not None:
        if quantity <= 0:
            shopping_list.items.remove(item)
            return None
        item.quantity = quantity

    return item


def set_checked(
    shopping_list: ShoppingList, item_id: str, checked: bool = True
) -> ShoppingListItem:
    """Mark an item as bought, or not bought."""
    item = shopping_list.get_item(item_id)
    item.checked = checked
    return item


def remove_item(shopping_list: ShoppingList, item_id: str) -> None:
    """
    Remove an item from the list.

    Raises:
        ItemNotFound: If the list has no such item
    """
    shopping_list.items.remove(shopping_list.get_item(item_id))


def clear(shopping_list: ShoppingList) -> ShoppingList:
    """Empty the list of items and recipes."""
    shopping_list.items = []
    shopping_list.recipes = []
    return shopping_list


def unchecked_items(shopping_list: ShoppingList) -> list[ShoppingListItem]:
    return [item for item in shopping_list.items if not item.checked]


def checked_items(shopping_list: ShoppingList) -> list[ShoppingListItem]:
    return [item for item in shopping_list.items if item.checked]


class ShoppingListService:
    """Load, change and save the signed-in user's shopping list."""

    def __init__(self, store: DocumentStore, recipe_book: RecipeBook, auth: AuthContext) -> None:
        self.store = store
        self.recipe_book = recipe_book
        self.auth = auth

    def get_or_create(self) -> ShoppingList:
        """
        Get the user's list, creating an empty one on first access.

        Raises:
            AuthError: If no user is signed in
        """
        user_id = require_user(self.auth)
        doc = self.store.find_one({"user_id": user_id})
        if doc is None:
            doc = self.store.create(ShoppingList(user_id=user_id).to_dict())
            logger.info("Created shopping list for user %s", user_id)
        return ShoppingList.from_dict(doc)

    def _save(self, shopping_list: ShoppingList) -> ShoppingList:
        if shopping_list.id is None:
            raise ShoppingListError("La liste de courses n'a pas encore été enregistrée")
        doc = self.store.update(shopping_list.id, shopping_list.to_dict())
        return ShoppingList.from_dict(doc)

    def add_recipe(self, recipe_id: str, servings: float = 1) -> ShoppingList:
        """
        Add a stored recipe to the list, scaled by a number of servings.

        Raises:
            RecipeNotFound: If the recipe does not exist
            ShoppingListError: If servings is not positive
        """
        recipe = self.recipe_book.get(recipe_id)
        shopping_list = add_recipe(self.get_or_create(), recipe, servings)
        logger.info("Added recipe %s (x%s) to shopping list", recipe_id, servings)
        return self._save(shopping_list)

    def remove_recipe(self, recipe_id: str) -> ShoppingList:
        """
        Remove a stored recipe from the list.

        Raises:
            RecipeNotFound: If the recipe does not exist
        """
        recipe = self.recipe_book.get(recipe_id)
        shopping_list = remove_recipe(self.get_or_create(), recipe)
        logger.info("Removed recipe %s from shopping list", recipe_id)
        return self._save(shopping_list)

    def add_item(
        self, name: str, quantity: float, unit: str, ingredient_id: str | None = None
    ) -> ShoppingListItem:
        shopping_list = self.get_or_create()
        item = add_item(shopping_list, name, quantity, unit, ingredient_id)
        self._save(shopping_list)
        return item

    def update_item(
        self, item_id: str, checked: bool | None = None, quantity: float | None = None
    ) -> ShoppingListItem | None:
        shopping_list = self.get_or_create()
        item = update_item(shopping_list, item_id, checked=checked, quantity=quantity)
        self._save(shopping_list)
        return item

    def set_checked(self, item_id: str, checked: bool = True) -> ShoppingListItem:
        shopping_list = self.get_or_create()
        item = set_checked(shopping_list, item_id, checked)
        self._save(shopping_list)
        return item

    def remove_item(self, item_id: str) -> None:
        shopping_list = self.get_or_create()
        remove_item(shopping_list, item_id)
        self._save(shopping_list)

    def clear(self) -> ShoppingList:
        shopping_list = clear(self.get_or_create())
        logger.info("Cleared shopping list %s", shopping_list.id)
        return self._save(shopping_list)

    def recipe_titles(self, shopping_list: ShoppingList) -> list[str]:
        """Names of the recipes referenced by the list; deleted recipes are skipped."""
        titles = []
        for recipe_id in shopping_list.recipes:
            if self.recipe_book.store.exists(recipe_id):
                titles.append(self.recipe_book.get(recipe_id).name)
        return titles
