"""Local ingredient table, ingredient suggestions and manual entry."""

from dataclasses import dataclass, field
from typing import Any

from .recipes import IngredientLine
from .tags import generate_slug

DEFAULT_UNITS = [
    "g",
    "kg",
    "ml",
    "cl",
    "l",
    "cuillère à café",
    "cuillère à soupe",
    "tasse",
    "pièce",
]


@dataclass
class IngredientSuggestion:
    """A candidate ingredient with nutrition values per 100g."""

    id: str
    name: str
    calories: float = 0.0
    proteins: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    common_units: list[str] = field(default_factory=lambda: list(DEFAULT_UNITS))
    source: str = "local"  # local, openfoodfacts, usda or manual
    category: str | None = None
    brand: str | None = None
    sugars: float | None = None
    salt: float | None = None

    def to_ingredient_line(self, quantity: float, unit: str | None = None) -> IngredientLine:
        """Use this suggestion as an ingredient line of a recipe."""
        if unit is None:
            unit = self.common_units[0] if self.common_units else "g"
        return IngredientLine(
            name=self.name,
            quantity_per_serving=quantity,
            unit=unit,
            calories=self.calories,
            proteins=self.proteins,
            carbs=self.carbs,
            fat=self.fat,
            fiber=self.fiber,
            ingredient_id=self.id,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "calories": self.calories,
            "proteins": self.proteins,
            "carbs": self.carbs,
            "fat": self.fat,
            "fiber": self.fiber,
            "common_units": list(self.common_units),
            "source": self.source,
            "category": self.category,
            "brand": self.brand,
            "sugars": self.sugars,
            "salt": self.salt,
        }


# (name, kcal, proteins, carbs, fat, fiber, common units) per 100g
_LOCAL_TABLE: list[tuple[str, float, float, float, float, float, list[str]]] = [
    ("Farine de blé", 364, 10.3, 76.3, 1.0, 2.7, ["g", "tasse"]),
    ("Sucre blanc", 387, 0.0, 100.0, 0.0, 0.0, ["g", "cuillère à soupe"]),
    ("Beurre", 717, 0.9, 0.1, 81.1, 0.0, ["g", "cuillère à soupe"]),
    ("Œufs", 155, 12.6, 1.1, 10.6, 0.0, ["pièce", "g"]),
    ("Lait entier", 61, 3.2, 4.8, 3.3, 0.0, ["ml", "tasse"]),
    ("Huile d'olive", 884, 0.0, 0.0, 100.0, 0.0, ["ml", "cuillère à soupe"]),
    ("Tomates", 18, 0.9, 3.9, 0.2, 1.2, ["g", "pièce"]),
    ("Oignons", 40, 1.1, 9.3, 0.1, 1.7, ["g", "pièce"]),
    ("Ail", 149, 6.4, 33.1, 0.5, 2.1, ["g", "gousse"]),
    ("Pommes de terre", 77, 2.0, 17.5, 0.1, 2.2, ["g", "pièce"]),
    ("Carottes", 41, 0.9, 9.6, 0.2, 2.8, ["g", "pièce"]),
    ("Courgettes", 17, 1.2, 3.1, 0.3, 1.0, ["g", "pièce"]),
    ("Poivrons", 31, 1.0, 6.0, 0.3, 2.1, ["g", "pièce"]),
    ("Basilic frais", 22, 3.2, 2.7, 0.6, 1.6, ["g", "feuille"]),
    ("Persil", 36, 3.0, 6.3, 0.8, 3.3, ["g", "cuillère à soupe"]),
    ("Sel", 0, 0.0, 0.0, 0.0, 0.0, ["g", "cuillère à café"]),
    ("Poivre noir", 251, 10.4, 64.0, 3.3, 25.3, ["g", "cuillère à café"]),
    ("Parmesan râpé", 431, 38.5, 4.1, 28.6, 0.0, ["g", "cuillère à soupe"]),
    ("Mozzarella", 280, 22.0, 2.2, 22.0, 0.0, ["g", "tranche"]),
    ("Pâtes", 131, 5.0, 25.0, 1.1, 1.8, ["g", "portion"]),
    ("Riz", 130, 2.7, 28.2, 0.3, 0.4, ["g", "tasse"]),
    ("Pain", 265, 9.0, 49.0, 3.2, 2.7, ["g", "tranche"]),
    ("Pommes", 52, 0.3, 13.8, 0.2, 2.4, ["g", "pièce"]),
    ("Bananes", 89, 1.1, 22.8, 0.3, 2.6, ["g", "pièce"]),
    ("Citrons", 29, 1.1, 9.3, 0.3, 2.8, ["g", "pièce"]),
    ("Oranges", 47, 0.9, 11.8, 0.1, 2.4, ["g", "pièce"]),
    ("Poulet", 239, 27.3, 0.0, 13.6, 0.0, ["g", "portion"]),
    ("Bœuf haché", 254, 17.2, 0.0, 20.0, 0.0, ["g", "portion"]),
    ("Saumon", 208, 20.4, 0.0, 13.4, 0.0, ["g", "filet"]),
    ("Thon", 144, 23.3, 0.0, 4.9, 0.0, ["g", "boîte"]),
]

LOCAL_INGREDIENTS: list[IngredientSuggestion] = [
    IngredientSuggestion(
        id=f"local-{generate_slug(name)}",
        name=name,
        calories=kcal,
        proteins=proteins,
        carbs=carbs,
        fat=fat,
        fiber=fiber,
        common_units=units,
        source="local",
    )
    for name, kcal, proteins, carbs, fat, fiber, units in _LOCAL_TABLE
]


def search_local(query: str, limit: int = 10) -> list[IngredientSuggestion]:
    """
    Search the local ingredient table.

    Args:
        query: Text to find anywhere in the ingredient name (case-insensitive)
        limit: Maximum number of results

    Returns:
        Matching ingredients in table order
    """
    needle = query.lower().strip()
    if not needle or limit <= 0:
        return []

    matches = [ing for ing in LOCAL_INGREDIENTS if needle in ing.name.lower()]
    return matches[:limit]


def find_local(name: str, exact: bool = False) -> IngredientSuggestion | None:
    """
    Find the local ingredient matching a typed name.

    An exact (case-insensitive) name wins. Otherwise the shortest local name
    containing the text is used, then the longest local name found inside it.
    With ``exact=True`` only the exact match is returned.
    """
    needle = name.lower().strip()
    if not needle:
        return None

    for ing in LOCAL_INGREDIENTS:
        if ing.name.lower() == needle:
            return ing
    if exact:
        return None

    wider = [ing for ing in LOCAL_INGREDIENTS if needle in ing.name.lower()]
    if wider:
        return min(wider, key=lambda ing: len(ing.name))

    narrower = [ing for ing in LOCAL_INGREDIENTS if ing.name.lower() in needle]
    if narrower:
        return max(narrower, key=lambda ing: len(ing.name))
    return None


def common_units_for(categories: str | None) -> list[str]:
    """Pick the usual units for an ingredient from its category labels."""
    lowered = (categories or "").lower()

    if "liquide" in lowered or "boisson" in lowered:
        return ["ml", "cl", "l", "cuillère à café", "cuillère à soupe", "tasse"]

    if "épice" in lowered or "aromate" in lowered:
        return ["g", "cuillère à café", "cuillère à soupe", "pincée"]

    if "fruit" in lowered or "légume" in lowered:
        return ["g", "kg", "pièce", "tranche"]

    return list(DEFAULT_UNITS)


def create_manual_ingredient(name: str) -> IngredientSuggestion:
    """Fallback suggestion for an ingredient typed in by the user; nutrition to be filled in."""
    clean = name.lower().strip()
    return IngredientSuggestion(
        id=f"manual-{generate_slug(clean) or 'ingredient'}",
        name=clean,
        source="manual",
    )


def capitalize_first(text: str) -> str:
    """Upper-case the first letter and lower-case the rest."""
    if not text:
        return ""
    return text[0].upper() + text[1:].lower()
