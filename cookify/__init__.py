"""Cookify - Recipe sharing with nutrition and shopping list tools."""

__version__ = "1.0.0"

from .auth import AuthContext, AuthError
from .food_api import FoodAPIError, OpenFoodFactsClient, USDAClient
from .recipes import Difficulty, IngredientLine, Recipe, RecipeBook, RecipeValidationError
from .search import SearchResult, search_ingredients
from .shopping_list import ShoppingList, ShoppingListItem, add_recipe, remove_recipe
from .store import DocumentStore

__all__ = [
    "AuthContext",
    "AuthError",
    "DocumentStore",
    "Recipe",
    "RecipeBook",
    "RecipeValidationError",
    "IngredientLine",
    "Difficulty",
    "search_ingredients",
    "SearchResult",
    "OpenFoodFactsClient",
    "USDAClient",
    "FoodAPIError",
    "ShoppingList",
    "ShoppingListItem",
    "add_recipe",
    "remove_recipe",
]
