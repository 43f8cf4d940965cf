"""Tests for the local ingredient table and manual entry."""

from cookify.ingredients import (
    DEFAULT_UNITS,
    LOCAL_INGREDIENTS,
    capitalize_first,
    common_units_for,
    create_manual_ingredient,
    find_local,
    search_local,
)


class TestSearchLocal:
    """Tests for search_local function."""

    def test_substring_case_insensitive(self):
        names = [s.name for s in search_local("POMME")]
        assert names == ["Pommes de terre", "Pommes"]

    def test_limit(self):
        assert len(search_local("e", 3)) == 3

    def test_no_match(self):
        assert search_local("inexistant123") == []

    def test_blank_query(self):
        assert search_local("   ") == []

    def test_results_are_local(self):
        tomates = search_local("tomate")[0]
        assert tomates.source == "local"
        assert tomates.id == "local-tomates"
        assert tomates.calories == 18


class TestLocalTable:
    def test_ids_are_unique(self):
        ids = [ing.id for ing in LOCAL_INGREDIENTS]
        assert len(ids) == len(set(ids))

    def test_accented_ids(self):
        assert find_local("Œufs").id == "local-oeufs"


class TestFindLocal:
    def test_plural_or_singular(self):
        assert find_local("tomate").name == "Tomates"
        assert find_local("Tomates bien mûres").name == "Tomates"

    def test_contained_name(self):
        assert find_local("beurre doux").name == "Beurre"

    def test_exact_name_wins_over_longer_name(self):
        apples = find_local(" pommes ")

        assert apples.id == "local-pommes"
        assert apples.calories == 52
        assert find_local("Pommes de terre").id == "local-pommes-de-terre"

    def test_closest_containing_name(self):
        assert find_local("pomme").name == "Pommes"
        assert find_local("pommes de terre nouvelles").name == "Pommes de terre"

    def test_exact_only(self):
        assert find_local("beurre doux", exact=True) is None
        assert find_local("BEURRE", exact=True).id == "local-beurre"

    def test_unknown(self):
        assert find_local("mascarpone") is None
        assert find_local("") is None


class TestIngredientLine:
    def test_to_ingredient_line_uses_first_unit(self):
        line = find_local("Riz").to_ingredient_line(80)

        assert line.unit == "g"
        assert line.quantity_per_serving == 80
        assert line.calories == 130
        assert line.ingredient_id == "local-riz"

    def test_explicit_unit(self):
        assert find_local("Œufs").to_ingredient_line(1, "pièce").unit == "pièce"


class TestManualEntry:
    def test_manual_ingredient_defaults(self):
        manual = create_manual_ingredient("  Épice Mystère ")

        assert manual.name == "épice mystère"
        assert manual.id == "manual-epice-mystere"
        assert manual.source == "manual"
        assert (manual.calories, manual.proteins, manual.carbs, manual.fat, manual.fiber) == (
            0,
            0,
            0,
            0,
            0,
        )
        assert manual.common_units == DEFAULT_UNITS


class TestCommonUnits:
    def test_liquids(self):
        assert common_units_for("Boissons, Jus")[0] == "ml"

    def test_spices(self):
        assert "pincée" in common_units_for("Épices")

    def test_vegetables(self):
        assert common_units_for("Légumes frais") == ["g", "kg", "pièce", "tranche"]

    def test_unknown(self):
        assert common_units_for(None) == DEFAULT_UNITS


class TestCapitalizeFirst:
    def test_capitalizes(self):
        assert capitalize_first("tomates cerises") == "Tomates cerises"

    def test_lowercases_rest(self):
        assert capitalize_first("TOMATES") == "Tomates"

    def test_empty(self):
        assert capitalize_first("") == ""
