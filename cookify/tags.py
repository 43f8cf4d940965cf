"""Tag vocabulary: slugs, categories and the predefined tag set."""

import re
import unicodedata
from dataclasses import dataclass
from typing import Literal

TagCategory = Literal["cuisine", "regime", "difficulte", "temps", "occasion"]

TAG_CATEGORIES: dict[str, str] = {
    "cuisine": "Cuisine",
    "regime": "Régime",
    "difficulte": "Difficulté",
    "temps": "Temps",
    "occasion": "Occasion",
}

TAG_COLORS = ("blue", "green", "red", "yellow", "purple", "pink", "orange")


@dataclass(frozen=True)
class Tag:
    """A labelled tag belonging to a category."""

    name: str
    slug: str
    color: str
    category: TagCategory


def generate_slug(name: str) -> str:
    """
    Generate a URL-friendly slug from a tag name.

    Accents are folded to ASCII and whitespace becomes dashes.
    """
    text = name.lower().replace("œ", "oe").replace("æ", "ae")
    text = unicodedata.normalize("NFD", text)
    text = "".join(c for c in text if not unicodedata.combining(c))
    text = re.sub(r"[^a-z0-9\s-]", "", text)
    return re.sub(r"\s+", "-", text.strip())


PREDEFINED_TAGS: list[Tag] = [
    # Cuisine
    Tag("Italien", "italien", "green", "cuisine"),
    Tag("Français", "francais", "blue", "cuisine"),
    Tag("Asiatique", "asiatique", "red", "cuisine"),
    Tag("Méditerranéen", "mediterraneen", "orange", "cuisine"),
    # Régime
    Tag("Végétarien", "vegetarien", "green", "regime"),
    Tag("Végan", "vegan", "green", "regime"),
    Tag("Sans gluten", "sans-gluten", "yellow", "regime"),
    Tag("Faible en calories", "faible-calories", "blue", "regime"),
    # Temps
    Tag("Rapide (< 30min)", "rapide", "red", "temps"),
    Tag("Express (< 15min)", "express", "red", "temps"),
    # Occasion
    Tag("Apéritif", "aperitif", "purple", "occasion"),
    Tag("Dessert", "dessert", "pink", "occasion"),
    Tag("Petit-déjeuner", "petit-dejeuner", "yellow", "occasion"),
    Tag("Plat principal", "plat-principal", "orange", "occasion"),
]


def get_predefined_tag(slug: str) -> Tag | None:
    """Look up a predefined tag by slug."""
    for tag in PREDEFINED_TAGS:
        if tag.slug == slug:
            return tag
    return None


def group_by_category(tags: list[Tag]) -> dict[str, list[Tag]]:
    """Group tags by category, in category order, each sorted by name."""
    groups: dict[str, list[Tag]] = {}
    for category in TAG_CATEGORIES:
        members = sorted((t for t in tags if t.category == category), key=lambda t: t.name.lower())
        if members:
            groups[category] = members
    return groups
