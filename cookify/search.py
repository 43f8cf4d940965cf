"""Hybrid ingredient search: local table first, external food database as fallback."""

import logging
import math
from dataclasses import dataclass, field, replace

from .food_api import FoodAPIError, FoodDatabaseClient
from .ingredients import IngredientSuggestion, capitalize_first, search_local

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
LOCAL_SHARE = 0.7
EXTERNAL_SHARE = 0.3


@dataclass
class SearchResult:
    """Outcome of an ingredient search."""

    suggestions: list[IngredientSuggestion] = field(default_factory=list)
    total: int = 0
    local_count: int = 0
    external_count: int = 0

    @property
    def needs_manual_entry(self) -> bool:
        """True when nothing was found and the user should type the ingredient in."""
        return not self.suggestions


def deduplicate(suggestions: list[IngredientSuggestion]) -> list[IngredientSuggestion]:
    """
    Drop suggestions whose trimmed, lower-cased name was already seen.

    The first occurrence wins and display names are capitalised.
    """
    seen: set[str] = set()
    cleaned = []
    for suggestion in suggestions:
        key = suggestion.name.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        cleaned.append(replace(suggestion, name=capitalize_first(suggestion.name.strip())))
    return cleaned


def _search_external(
    client: FoodDatabaseClient, query: str, limit: int
) -> list[IngredientSuggestion]:
    try:
        return client.search(query, limit)
    except FoodAPIError as e:
        logger.warning("External ingredient search failed for '%s': %s", query, e)
    except (TypeError, ValueError, AttributeError, KeyError) as e:
        logger.warning("Unexpected external search payload for '%s': %r", query, e)
    return []


def search_ingredients(
    query: str,
    limit: int = 10,
    client: FoodDatabaseClient | None = None,
) -> SearchResult:
    """
    Search ingredients in the local table, completed by an external database.

    Args:
        query: Text typed by the user (at least 2 characters)
        limit: Maximum number of suggestions
        client: External database client; None disables the external step

    Returns:
        SearchResult; empty when the query is too short or nothing matched
    """
    query = (query or "").strip()
    if len(query) < MIN_QUERY_LENGTH or limit <= 0:
        return SearchResult()

    local_results = search_local(query, math.ceil(limit * LOCAL_SHARE))

    external_results: list[IngredientSuggestion] = []
    if client is not None and len(local_results) < limit:
        external_results = _search_external(client, query, math.ceil(limit * EXTERNAL_SHARE))

    cleaned = deduplicate(local_results + external_results)
    logger.debug(
        "Ingredient search '%s': %d local, %d external, %d unique",
        query,
        len(local_results),
        len(external_results),
        len(cleaned),
    )

    return SearchResult(
        suggestions=cleaned[:limit],
        total=len(cleaned),
        local_count=len(local_results),
        external_count=len(external_results),
    )
