"""Clients for external food databases (OpenFoodFacts and USDA FoodData Central)."""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from .config import (
    OPENFOODFACTS_SEARCH_URL,
    USDA_API_URL,
    USER_AGENT,
    get_food_provider,
    get_http_timeout,
    get_usda_api_key,
)
from .ingredients import IngredientSuggestion, common_units_for

logger = logging.getLogger(__name__)


class FoodAPIError(Exception):
    """Exception raised for external food database errors."""

    pass


class FoodDatabaseClient(ABC):
    """Common interface for external ingredient lookups."""

    source: str = ""

    def __init__(self, timeout: float | None = None, client: httpx.Client | None = None):
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=timeout if timeout is not None else get_http_timeout(),
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        )

    @abstractmethod
    def search(self, query: str, limit: int = 10) -> list[IngredientSuggestion]:
        """
        Search the database for ingredients.

        Raises:
            FoodAPIError: On network, HTTP or payload errors
        """
        ...

    def _get_json(self, url: str, params: dict[str, Any]) -> Any:
        try:
            response = self.client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise FoodAPIError(f"{self.source} request failed: {e}") from e
        except ValueError as e:
            raise FoodAPIError(f"{self.source} returned invalid JSON: {e}") from e

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _round_or_zero(value: Any, digits: int = 1) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value:
        return round(float(value), digits)
    return 0.0


def _round_or_none(value: Any, digits: int = 1) -> float | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value:
        return round(float(value), digits)
    return None


def _first_label(value: str | None) -> str | None:
    if not value:
        return None
    first = value.split(",")[0].strip()
    return first or None


class OpenFoodFactsClient(FoodDatabaseClient):
    """Client for the OpenFoodFacts product search."""

    source = "openfoodfacts"

    FIELDS = "code,product_name,product_name_fr,nutriments,categories,brands,image_url"

    def __init__(
        self,
        base_url: str = OPENFOODFACTS_SEARCH_URL,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ):
        super().__init__(timeout=timeout, client=client)
        self.base_url = base_url

    def search(self, query: str, limit: int = 10) -> list[IngredientSuggestion]:
        """
        Search OpenFoodFacts for products with nutrition data.

        Args:
            query: Search terms
            limit: Maximum number of suggestions

        Returns:
            Suggestions with calories and macros per 100g
        """
        if len(query.strip()) < 2 or limit <= 0:
            return []

        params = {
            "search_terms": query,
            "search_simple": 1,
            "action": "process",
            "json": 1,
            "page_size": max(limit, 20),
            "fields": self.FIELDS,
        }
        data = self._get_json(self.base_url, params)

        if not isinstance(data, dict):
            raise FoodAPIError("openfoodfacts returned an unexpected payload")

        products = data.get("products")
        if not isinstance(products, list):
            return []

        suggestions = []
        for product in products:
            suggestion = self._parse_product(product)
            if suggestion is not None:
                suggestions.append(suggestion)
            if len(suggestions) >= limit:
                break
        return suggestions

    @staticmethod
    def _parse_product(product: Any) -> IngredientSuggestion | None:
        """Convert a product into a suggestion; products without kcal or name are skipped."""
        if not isinstance(product, dict):
            return None

        nutriments = product.get("nutriments")
        if not isinstance(nutriments, dict):
            return None

        calories = nutriments.get("energy-kcal_100g")
        if not isinstance(calories, (int, float)) or isinstance(calories, bool):
            return None

        name = product.get("product_name_fr") or product.get("product_name") or ""
        if not name.strip():
            return None

        categories = product.get("categories") or ""
        return IngredientSuggestion(
            id=f"off-{product.get('code', '')}",
            name=name.lower(),
            calories=round(calories),
            proteins=_round_or_zero(nutriments.get("proteins_100g")),
            carbs=_round_or_zero(nutriments.get("carbohydrates_100g")),
            fat=_round_or_zero(nutriments.get("fat_100g")),
            fiber=_round_or_zero(nutriments.get("fiber_100g")),
            sugars=_round_or_none(nutriments.get("sugars_100g")),
            salt=_round_or_none(nutriments.get("salt_100g"), 3),
            common_units=common_units_for(categories),
            category=_first_label(categories),
            brand=_first_label(product.get("brands")),
            source="openfoodfacts",
        )


# FoodData Central nutrient ids
USDA_ENERGY_KCAL = 1008
USDA_PROTEIN = 1003
USDA_FAT = 1004
USDA_CARBS = 1005
USDA_FIBER = 1079


class USDAClient(FoodDatabaseClient):
    """Client for USDA FoodData Central food search."""

    source = "usda"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = USDA_API_URL,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ):
        super().__init__(timeout=timeout, client=client)
        self.api_key = api_key if api_key is not None else get_usda_api_key()
        self.base_url = base_url.rstrip("/")

    def search(self, query: str, limit: int = 10) -> list[IngredientSuggestion]:
        """Search FoodData Central; without an API key nothing is requested."""
        if not self.api_key:
            logger.debug("USDA API key not configured, skipping search for '%s'", query)
            return []
        if len(query.strip()) < 2 or limit <= 0:
            return []

        params = {"query": query, "api_key": self.api_key, "pageSize": limit}
        data = self._get_json(f"{self.base_url}/foods/search", params)

        if not isinstance(data, dict):
            raise FoodAPIError("usda returned an unexpected payload")

        foods = data.get("foods")
        if not isinstance(foods, list):
            return []

        suggestions = []
        for food in foods[:limit]:
            if not isinstance(food, dict) or not food.get("description"):
                continue
            nutrients = {
                n.get("nutrientId"): n.get("value")
                for n in food.get("foodNutrients") or []
                if isinstance(n, dict)
            }
            suggestions.append(
                IngredientSuggestion(
                    id=f"usda-{food.get('fdcId', '')}",
                    name=food["description"],
                    calories=round(nutrients.get(USDA_ENERGY_KCAL) or 0),
                    proteins=_round_or_zero(nutrients.get(USDA_PROTEIN)),
                    carbs=_round_or_zero(nutrients.get(USDA_CARBS)),
                    fat=_round_or_zero(nutrients.get(USDA_FAT)),
                    fiber=_round_or_zero(nutrients.get(USDA_FIBER)),
                    common_units=["g", "portion"],
                    category=food.get("foodCategory"),
                    brand=food.get("brandOwner"),
                    source="usda",
                )
            )
        return suggestions


def get_food_client(provider: str | None = None) -> FoodDatabaseClient:
    """Create the client for the configured external food database."""
    provider = provider or get_food_provider()
    if provider == "usda":
        return USDAClient()
    return OpenFoodFactsClient()
