"""Tests for shopping list aggregation and the shopping list service."""

import pytest

from cookify.auth import AuthContext, AuthError
from cookify.recipes import IngredientLine, RecipeBook, RecipeNotFound
from cookify.shopping_list import (
    DEFAULT_LIST_NAME,
    ItemNotFound,
    ShoppingList,
    ShoppingListError,
    ShoppingListItem,
    ShoppingListService,
    add_item,
    add_recipe,
    clear,
    format_quantity,
    remove_item,
    remove_recipe,
    set_checked,
    unchecked_items,
    update_item,
)


@pytest.fixture
def empty_list():
    return ShoppingList(user_id="alice", id="list-1")


def quantities(shopping_list: ShoppingList) -> dict[tuple[str | None, str], float]:
    return {(item.ingredient_id, item.unit): item.quantity for item in shopping_list.items}


# ============================================================================
# Adding recipes
# ============================================================================


class TestAddRecipe:
    """Tests for add_recipe function."""

    def test_adds_scaled_items(self, empty_list, make_recipe):
        recipe = make_recipe(id="r1")

        add_recipe(empty_list, recipe, servings_multiplier=4)

        assert quantities(empty_list) == {
            ("local-tomates", "g"): 600,
            ("local-huile-dolive", "ml"): 40,
        }
        assert all(not item.checked for item in empty_list.items)
        assert empty_list.recipes == ["r1"]

    def test_adding_twice_doubles(self, empty_list, make_recipe):
        recipe = make_recipe(id="r1")

        add_recipe(empty_list, recipe)
        add_recipe(empty_list, recipe)

        assert quantities(empty_list)[("local-tomates", "g")] == 300
        assert empty_list.recipes == ["r1"]

    def test_shared_ingredient_merges(self, empty_list, make_recipe):
        salad = make_recipe(id="r1")
        sauce = make_recipe(
            id="r2",
            name="Sauce tomate",
            ingredients=[
                IngredientLine("Tomates", 400, "g", calories=18, ingredient_id="local-tomates"),
                IngredientLine("Ail", 5, "g", calories=149, ingredient_id="local-ail"),
            ],
        )

        add_recipe(empty_list, salad)
        add_recipe(empty_list, sauce)

        tomatoes = [i for i in empty_list.items if i.ingredient_id == "local-tomates"]
        assert len(tomatoes) == 1
        assert tomatoes[0].quantity == 550
        assert empty_list.item_count == 3
        assert empty_list.recipes == ["r1", "r2"]

    def test_different_units_stay_separate(self, empty_list, make_recipe):
        recipe = make_recipe(
            id="r1",
            ingredients=[
                IngredientLine("Tomates", 200, "g", ingredient_id="local-tomates"),
                IngredientLine("Tomates", 2, "pièce", ingredient_id="local-tomates"),
            ],
        )

        add_recipe(empty_list, recipe)

        assert quantities(empty_list) == {
            ("local-tomates", "g"): 200,
            ("local-tomates", "pièce"): 2,
        }

    def test_manual_ingredients_merge_by_name(self, empty_list, make_recipe):
        one = make_recipe(id="r1", ingredients=[IngredientLine("Sel de Guérande", 2, "g")])
        two = make_recipe(id="r2", ingredients=[IngredientLine("sel de guérande ", 3, "g")])

        add_recipe(empty_list, one)
        add_recipe(empty_list, two)

        assert quantities(empty_list) == {("sel de guérande", "g"): 5}

    def test_keeps_item_order(self, empty_list, make_recipe):
        add_recipe(empty_list, make_recipe(id="r1"))
        assert [i.name for i in empty_list.items] == ["Tomates", "Huile d'olive"]

    @pytest.mark.parametrize("multiplier", [0, -1])
    def test_rejects_non_positive_multiplier(self, empty_list, make_recipe, multiplier):
        with pytest.raises(ShoppingListError):
            add_recipe(empty_list, make_recipe(id="r1"), multiplier)
        assert empty_list.items == []


# ============================================================================
# Removing recipes
# ============================================================================


class TestRemoveRecipe:
    """Tests for remove_recipe function."""

    def test_add_then_remove_restores_quantities(self, empty_list, make_recipe):
        add_item(empty_list, "Tomates", 100, "g", ingredient_id="local-tomates")
        before = quantities(empty_list)
        recipe = make_recipe(id="r1")

        add_recipe(empty_list, recipe)
        remove_recipe(empty_list, recipe)

        assert quantities(empty_list) == pytest.approx(before)
        assert empty_list.recipes == []

    def test_removes_items_reaching_zero(self, empty_list, make_recipe):
        recipe = make_recipe(id="r1")

        add_recipe(empty_list, recipe)
        remove_recipe(empty_list, recipe)

        assert empty_list.items == []

    def test_float_residue_is_removed(self, empty_list, make_recipe):
        recipe = make_recipe(
            id="r1", ingredients=[IngredientLine("Sucre", 0.1, "kg", ingredient_id="sucre")]
        )
        other = make_recipe(
            id="r2", ingredients=[IngredientLine("Sucre", 0.2, "kg", ingredient_id="sucre")]
        )

        add_recipe(empty_list, recipe)
        add_recipe(empty_list, other)
        remove_recipe(empty_list, other)
        remove_recipe(empty_list, recipe)

        assert empty_list.items == []

    def test_ignores_servings_multiplier(self, empty_list, make_recipe):
        recipe = make_recipe(id="r1")

        add_recipe(empty_list, recipe, servings_multiplier=3)
        remove_recipe(empty_list, recipe)

        assert quantities(empty_list) == {
            ("local-tomates", "g"): 300,
            ("local-huile-dolive", "ml"): 20,
        }
        assert empty_list.recipes == []

    def test_shared_item_keeps_other_contribution(self, empty_list, make_recipe):
        salad = make_recipe(id="r1")
        sauce = make_recipe(
            id="r2",
            ingredients=[IngredientLine("Tomates", 400, "g", ingredient_id="local-tomates")],
        )
        add_recipe(empty_list, salad)
        add_recipe(empty_list, sauce)

        remove_recipe(empty_list, salad)

        assert quantities(empty_list) == {("local-tomates", "g"): 400}
        assert empty_list.recipes == ["r2"]

    def test_recipe_reference_dropped_without_matches(self, empty_list, make_recipe):
        empty_list.recipes = ["r1"]
        remove_recipe(empty_list, make_recipe(id="r1"))
        assert empty_list.recipes == []


# ============================================================================
# Single items
# ============================================================================


class TestItems:
    def test_add_item_merges_same_ingredient_and_unit(self, empty_list):
        first = add_item(empty_list, "Lait", 1, "l", ingredient_id="local-lait-entier")
        second = add_item(empty_list, "Lait entier", 0.5, "l", ingredient_id="local-lait-entier")

        assert first is second
        assert first.quantity == 1.5
        assert empty_list.item_count == 1

    def test_free_items_without_identity_never_merge(self, empty_list):
        add_item(empty_list, "Sacs poubelle", 1, "pièce")
        add_item(empty_list, "Sacs poubelle", 1, "pièce")
        assert empty_list.item_count == 2

    def test_add_item_validation(self, empty_list):
        with pytest.raises(ShoppingListError):
            add_item(empty_list, "  ", 1, "g")
        with pytest.raises(ShoppingListError):
            add_item(empty_list, "Pain", 0, "pièce")

    def test_check_and_uncheck(self, empty_list):
        item = add_item(empty_list, "Pain", 1, "pièce")

        update_item(empty_list, item.id, checked=True)
        assert unchecked_items(empty_list) == []

        update_item(empty_list, item.id, checked=False)
        assert unchecked_items(empty_list) == [item]

    def test_set_checked_returns_item(self, empty_list):
        item = add_item(empty_list, "Pain", 1, "pièce")

        assert set_checked(empty_list, item.id) is item
        assert item.checked
        assert not set_checked(empty_list, item.id, checked=False).checked

        with pytest.raises(ItemNotFound):
            set_checked(empty_list, "missing")

    def test_set_quantity(self, empty_list):
        item = add_item(empty_list, "Pain", 1, "pièce")
        assert update_item(empty_list, item.id, quantity=3).quantity == 3

    def test_zero_quantity_removes(self, empty_list):
        item = add_item(empty_list, "Pain", 1, "pièce")
        assert update_item(empty_list, item.id, quantity=0) is None
        assert empty_list.items == []

    def test_unknown_item(self, empty_list):
        with pytest.raises(ItemNotFound):
            update_item(empty_list, "missing", checked=True)
        with pytest.raises(ItemNotFound):
            remove_item(empty_list, "missing")

    def test_remove_item(self, empty_list):
        item = add_item(empty_list, "Pain", 1, "pièce")
        remove_item(empty_list, item.id)
        assert empty_list.items == []

    def test_clear(self, empty_list, make_recipe):
        add_recipe(empty_list, make_recipe(id="r1"))
        clear(empty_list)
        assert empty_list.items == []
        assert empty_list.recipes == []


class TestSerialization:
    def test_item_str(self):
        assert str(ShoppingListItem("Farine", 250.0, "g")) == "250 g Farine"
        assert str(ShoppingListItem("Œufs", 3, "")) == "3 Œufs"

    def test_list_round_trip(self, empty_list, make_recipe):
        add_recipe(empty_list, make_recipe(id="r1"))
        empty_list.items[0].checked = True

        restored = ShoppingList.from_dict(empty_list.to_dict())

        assert restored == empty_list

    def test_default_name(self):
        assert ShoppingList.from_dict({"user_id": "u"}).name == DEFAULT_LIST_NAME

    @pytest.mark.parametrize(
        "quantity, expected", [(2.0, "2"), (1.5, "1.5"), (0.333333, "0.33"), (1.999, "2")]
    )
    def test_format_quantity(self, quantity, expected):
        assert format_quantity(quantity) == expected


# ============================================================================
# Service
# ============================================================================


@pytest.fixture
def service(lists_store, book, alice):
    return ShoppingListService(lists_store, book, alice)


class TestShoppingListService:
    """Tests for ShoppingListService."""

    def test_list_created_lazily(self, service, lists_store):
        assert lists_store.list().total == 0

        shopping_list = service.get_or_create()

        assert shopping_list.id
        assert shopping_list.user_id == "alice"
        assert shopping_list.name == DEFAULT_LIST_NAME
        assert shopping_list.items == []
        assert service.get_or_create().id == shopping_list.id
        assert lists_store.list().total == 1

    def test_one_list_per_user(self, service, lists_store, book, bob):
        service.get_or_create()
        ShoppingListService(lists_store, book, bob).get_or_create()

        assert lists_store.list().total == 2

    def test_add_recipe_creates_list_and_persists(self, service, book, sample_recipe):
        recipe = book.create(sample_recipe)

        service.add_recipe(recipe.id, servings=2)

        stored = service.get_or_create()
        assert quantities(stored) == {
            ("local-tomates", "g"): 300,
            ("local-huile-dolive", "ml"): 20,
        }
        assert stored.recipes == [recipe.id]
        assert service.recipe_titles(stored) == ["Salade de tomates"]

    def test_remove_recipe(self, service, book, sample_recipe):
        recipe = book.create(sample_recipe)
        service.add_recipe(recipe.id)

        result = service.remove_recipe(recipe.id)

        assert result.items == []
        assert result.recipes == []

    def test_unknown_recipe(self, service):
        with pytest.raises(RecipeNotFound):
            service.add_recipe("missing")

    def test_other_users_recipe_can_be_added(self, service, recipes_store, bob, make_recipe):
        recipe = RecipeBook(recipes_store, bob).create(make_recipe(creator="Bob"))
        assert service.add_recipe(recipe.id).recipes == [recipe.id]

    def test_requires_user(self, lists_store, recipes_store):
        anonymous = AuthContext.anonymous()
        service = ShoppingListService(
            lists_store, RecipeBook(recipes_store, anonymous), anonymous
        )
        with pytest.raises(AuthError):
            service.get_or_create()

    def test_item_operations_persist(self, service):
        item = service.add_item("Pain", 1, "pièce")
        service.update_item(item.id, checked=True)

        assert service.get_or_create().get_item(item.id).checked

        service.update_item(item.id, quantity=2)
        assert service.get_or_create().get_item(item.id).quantity == 2

        service.remove_item(item.id)
        assert service.get_or_create().items == []

    def test_set_checked_persists(self, service):
        item = service.add_item("Pain", 1, "pièce")

        assert service.set_checked(item.id).checked
        assert service.get_or_create().get_item(item.id).checked

    def test_unsaved_list_is_rejected(self, service):
        with pytest.raises(ShoppingListError, match="pas encore été enregistrée"):
            service._save(ShoppingList(user_id="alice"))

    def test_clear(self, service, book, sample_recipe):
        recipe = book.create(sample_recipe)
        service.add_recipe(recipe.id)

        cleared = service.clear()

        assert cleared.items == []
        assert service.get_or_create().recipes == []

    def test_titles_skip_deleted_recipes(self, service, book, sample_recipe):
        recipe = book.create(sample_recipe)
        service.add_recipe(recipe.id)
        book.delete(recipe.id)

        assert service.recipe_titles(service.get_or_create()) == []
