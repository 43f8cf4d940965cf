"""Shared fixtures for cookify tests."""

import pytest
import respx

from cookify.auth import AuthContext
from cookify.recipes import Difficulty, IngredientLine, Recipe, RecipeBook
from cookify.store import DocumentStore


@pytest.fixture
def mock_httpx():
    """Activate respx mock for HTTP requests."""
    with respx.mock(assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
def temp_config_dir(tmp_path, monkeypatch):
    """Point all cookify data files at a temporary directory."""
    config_dir = tmp_path / ".cookify"
    config_dir.mkdir(parents=True, exist_ok=True)

    monkeypatch.setattr("cookify.config.CONFIG_DIR", config_dir)
    monkeypatch.setattr("cookify.config.RECIPES_FILE", config_dir / "recipes.json")
    monkeypatch.setattr("cookify.config.SHOPPING_LISTS_FILE", config_dir / "shopping_lists.json")
    monkeypatch.setattr("cookify.config.SESSION_FILE", config_dir / "session.json")
    monkeypatch.setattr("cookify.cli.RECIPES_FILE", config_dir / "recipes.json")
    monkeypatch.setattr("cookify.cli.SHOPPING_LISTS_FILE", config_dir / "shopping_lists.json")

    monkeypatch.delenv("COOKIFY_USER", raising=False)
    monkeypatch.delenv("COOKIFY_USER_NAME", raising=False)

    return config_dir


@pytest.fixture
def recipes_store(tmp_path):
    return DocumentStore(tmp_path / "recipes.json")


@pytest.fixture
def lists_store(tmp_path):
    return DocumentStore(tmp_path / "shopping_lists.json")


@pytest.fixture
def alice():
    return AuthContext(user_id="alice", display_name="Alice")


@pytest.fixture
def bob():
    return AuthContext(user_id="bob", display_name="Bob")


@pytest.fixture
def book(recipes_store, alice):
    """Recipe book acting as Alice."""
    return RecipeBook(recipes_store, alice)


@pytest.fixture
def make_recipe():
    """Factory for valid recipes; keyword arguments override defaults."""

    def _make(**overrides) -> Recipe:
        data = {
            "name": "Salade de tomates",
            "difficulty": Difficulty.FACILE,
            "prep_time": 10,
            "cook_time": 0,
            "servings": 2,
            "ingredients": [
                IngredientLine(
                    name="Tomates",
                    quantity_per_serving=150,
                    unit="g",
                    calories=18,
                    proteins=0.9,
                    carbs=3.9,
                    fat=0.2,
                    fiber=1.2,
                    ingredient_id="local-tomates",
                ),
                IngredientLine(
                    name="Huile d'olive",
                    quantity_per_serving=10,
                    unit="ml",
                    calories=884,
                    fat=100,
                    ingredient_id="local-huile-dolive",
                ),
            ],
            "steps": ["Couper les tomates", "Arroser d'huile"],
            "tags": ["Végétarien", "Rapide"],
            "creator": "Alice",
        }
        data.update(overrides)
        return Recipe(**data)

    return _make


@pytest.fixture
def sample_recipe(make_recipe):
    return make_recipe()


@pytest.fixture
def off_products():
    """OpenFoodFacts search payload with two usable products and one without kcal."""
    return {
        "count": 3,
        "products": [
            {
                "code": "3017620422003",
                "product_name_fr": "Tomates cerises",
                "categories": "Légumes, Tomates",
                "brands": "Bio Village, Leclerc",
                "nutriments": {
                    "energy-kcal_100g": 20.4,
                    "proteins_100g": 0.84,
                    "carbohydrates_100g": 3.1,
                    "fat_100g": 0.3,
                    "fiber_100g": 1.5,
                    "sugars_100g": 2.9,
                    "salt_100g": 0.0126,
                },
            },
            {
                "code": "123",
                "product_name": "Sauce tomate",
                "nutriments": {"proteins_100g": 1.5},
            },
            {
                "code": "456",
                "product_name": "Coulis de tomates",
                "categories": "Sauces",
                "nutriments": {"energy-kcal_100g": 35, "carbohydrates_100g": 5.5},
            },
        ],
    }
