"""CLI entry point for Cookify."""

import json
import logging
from typing import NoReturn

import click

from . import __version__
from .auth import AuthContext, AuthError, require_user
from .config import (
    RECIPES_FILE,
    SHOPPING_LISTS_FILE,
    clear_current_user,
    get_log_level,
    save_current_user,
)
from .export import EXPORT_FORMATS, export_shopping_list
from .food_api import FoodDatabaseClient, get_food_client
from .ingredients import create_manual_ingredient, find_local
from .nutrition import per_serving, recipe_nutrition
from .recipes import (
    Difficulty,
    IngredientLine,
    PermissionDenied,
    Recipe,
    RecipeBook,
    RecipeFilters,
    RecipeNotFound,
    RecipeValidationError,
)
from .search import search_ingredients
from .shopping_list import ShoppingList, ShoppingListError, ShoppingListService, format_quantity
from .store import DocumentStore, StoreError
from .tags import PREDEFINED_TAGS, TAG_CATEGORIES, group_by_category

# Errors reported to the user as "✗ message" with exit code 1
DOMAIN_ERRORS = (
    AuthError,
    PermissionDenied,
    RecipeNotFound,
    RecipeValidationError,
    ShoppingListError,
    StoreError,
)


def get_auth() -> AuthContext:
    """Build the auth context for this invocation from the saved session."""
    return AuthContext.from_config()


def get_recipe_book(auth: AuthContext | None = None) -> RecipeBook:
    return RecipeBook(DocumentStore(RECIPES_FILE), auth or get_auth())


def get_shopping_service(auth: AuthContext | None = None) -> ShoppingListService:
    auth = auth or get_auth()
    return ShoppingListService(DocumentStore(SHOPPING_LISTS_FILE), get_recipe_book(auth), auth)


def get_ingredient_client() -> FoodDatabaseClient:
    return get_food_client()


def fail(message: str) -> NoReturn:
    click.echo(f"✗ {message}", err=True)
    raise SystemExit(1)


def parse_ingredient_option(text: str) -> IngredientLine:
    """
    Parse an ingredient given as ``name:quantity[:unit]``.

    Nutrition values come from the local ingredient table when the name is known.
    """
    parts = [p.strip() for p in text.split(":")]
    if len(parts) < 2 or not parts[0]:
        raise click.BadParameter(f"'{text}' (expected name:quantity[:unit])")

    try:
        quantity = float(parts[1].replace(",", "."))
    except ValueError:
        raise click.BadParameter(f"'{text}' has an invalid quantity") from None

    name = parts[0]
    unit = parts[2] if len(parts) > 2 and parts[2] else "g"

    known = find_local(name)
    if known is None:
        return IngredientLine(name=name, quantity_per_serving=quantity, unit=unit)

    line = known.to_ingredient_line(quantity, unit)
    line.name = name
    # A loose match only lends nutrition; identity stays name-based
    if find_local(name, exact=True) is None:
        line.ingredient_id = None
    return line


def load_json_file(path: str) -> dict:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise click.BadParameter(f"Could not read {path}: {e}") from None
    if not isinstance(data, dict):
        raise click.BadParameter(f"{path} must contain a JSON object")
    return data


def display_recipe(recipe: Recipe) -> None:
    """Display a recipe in full."""
    click.echo()
    click.echo("=" * 60)
    click.echo(f"RECIPE: {recipe.name}")
    click.echo("=" * 60)
    click.echo(f"ID: {recipe.id}")
    if recipe.description:
        click.echo(recipe.description)
    click.echo(
        f"Difficulty: {recipe.difficulty.value} | Prep: {recipe.prep_time} min"
        f" | Cook: {recipe.cook_time} min | Servings: {recipe.servings}"
    )
    click.echo(f"Calories: {recipe.calories} kcal")
    if recipe.creator:
        click.echo(f"By: {recipe.creator}")
    if recipe.tags:
        click.echo(f"Tags: {', '.join(recipe.tags)}")

    click.echo("\nIngredients (per serving):")
    for i, ing in enumerate(recipe.ingredients, 1):
        unit = f" {ing.unit}" if ing.unit else ""
        click.echo(f"  {i}. {format_quantity(ing.quantity_per_serving)}{unit} {ing.name}")

    click.echo("\nSteps:")
    for i, step in enumerate(recipe.steps, 1):
        click.echo(f"  {i}. {step}")
    click.echo()


def display_shopping_list(shopping_list: ShoppingList, recipe_titles: list[str]) -> None:
    click.echo()
    click.echo(shopping_list.name.upper())
    click.echo("=" * 60)

    if recipe_titles:
        click.echo(f"Recipes: {', '.join(recipe_titles)}")
        click.echo()

    if not shopping_list.items:
        click.echo("Your shopping list is empty.")
        click.echo("\nUse 'cookify shopping add-recipe <id>' to add ingredients.")
        return

    for item in shopping_list.items:
        mark = "✓" if item.checked else " "
        click.echo(f"  [{mark}] {item}  ({item.id})")

    remaining = sum(1 for item in shopping_list.items if not item.checked)
    click.echo("-" * 60)
    click.echo(f"Items: {shopping_list.item_count} | Remaining: {remaining}")


# ============================================================================
# Main CLI Group
# ============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="cookify")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose: bool):
    """Cookify - share recipes and build your shopping list.

    Create and browse recipes, compute their nutrition, look up ingredients
    and aggregate recipes into a shopping list.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else get_log_level(),
        format="%(levelname)s %(name)s: %(message)s",
    )


# ============================================================================
# Session Commands
# ============================================================================


@cli.command()
@click.option("--user", "-u", "user_id", prompt="User id", help="User id to act as")
@click.option("--name", "-n", "display_name", help="Display name (defaults to the user id)")
def login(user_id: str, display_name: str | None):
    """Sign in as a user."""
    if not user_id.strip():
        fail("User id cannot be empty.")
    save_current_user(user_id.strip(), display_name)
    click.echo(f"✓ Signed in as {display_name or user_id.strip()}")


@cli.command()
def logout():
    """Forget the signed-in user."""
    clear_current_user()
    click.echo("✓ Signed out")


@cli.command()
def whoami():
    """Show the signed-in user."""
    auth = get_auth()
    if not auth.is_authenticated:
        click.echo("Not signed in. Use: cookify login --user <id>")
        return
    click.echo(f"{auth.display_name} ({auth.user_id})")


# ============================================================================
# Recipe Commands
# ============================================================================


@cli.group()
def recipes():
    """Create, browse and edit recipes."""
    pass


@recipes.command("list")
@click.option("--search", "-q", help="Text to find in name or description")
@click.option("--tag", "-t", "tags", multiple=True, help="Required tag (repeatable)")
@click.option(
    "--difficulty", "-d", type=click.Choice([d.value for d in Difficulty]), help="Difficulty"
)
@click.option("--max-prep", type=int, help="Maximum preparation time (minutes)")
@click.option("--max-cook", type=int, help="Maximum cooking time (minutes)")
@click.option("--max-calories", type=int, help="Maximum calories")
@click.option("--page", "-p", default=1, type=click.IntRange(min=1), help="Page number")
@click.option("--limit", "-l", default=12, type=click.IntRange(min=1), help="Recipes per page")
@click.option("--mine", is_flag=True, help="Only my recipes")
def recipes_list(
    search: str | None,
    tags: tuple[str, ...],
    difficulty: str | None,
    max_prep: int | None,
    max_cook: int | None,
    max_calories: int | None,
    page: int,
    limit: int,
    mine: bool,
):
    """List recipes, newest first."""
    book = get_recipe_book()

    try:
        filters = RecipeFilters(
            search=search,
            tags=list(tags),
            difficulty=Difficulty(difficulty) if difficulty else None,
            max_prep_time=max_prep,
            max_cook_time=max_cook,
            max_calories=max_calories,
            page=page,
            limit=limit,
        )
        if mine:
            filters.user_id = require_user(book.auth)
        result = book.list(filters)
    except DOMAIN_ERRORS as e:
        fail(str(e))

    if not result.recipes:
        click.echo("No recipes found.")
        return

    pages = max(result.total_pages, 1)
    click.echo(f"\nRecipes (page {result.page}/{pages}, {result.total} total):\n")
    for recipe in result.recipes:
        click.echo(f"• {recipe.name}  [{recipe.id}]")
        click.echo(
            f"  {recipe.difficulty.value} | {recipe.total_time} min | {recipe.calories} kcal"
            + (f" | {', '.join(recipe.tags)}" if recipe.tags else "")
        )

    if result.has_more:
        click.echo(f"\nMore results: cookify recipes list --page {result.page + 1}")


@recipes.command("show")
@click.argument("recipe_id")
def recipes_show(recipe_id: str):
    """Show a recipe."""
    try:
        recipe = get_recipe_book().get(recipe_id)
    except DOMAIN_ERRORS as e:
        fail(str(e))
    display_recipe(recipe)


@recipes.command("create")
@click.option("--file", "-f", "file_path", type=click.Path(exists=True), help="Recipe JSON file")
@click.option("--name", help="Recipe name")
@click.option("--description", default="", help="Short description")
@click.option(
    "--difficulty",
    type=click.Choice([d.value for d in Difficulty]),
    default=Difficulty.MOYEN.value,
    help="Difficulty",
)
@click.option("--prep", "prep_time", type=int, default=0, help="Preparation time (minutes)")
@click.option("--cook", "cook_time", type=int, default=0, help="Cooking time (minutes)")
@click.option("--servings", type=int, default=1, help="Number of servings")
@click.option(
    "--ingredient", "-i", "ingredients", multiple=True, help="name:quantity[:unit], per serving"
)
@click.option("--step", "-s", "steps", multiple=True, help="Preparation step (repeatable)")
@click.option("--tag", "-t", "tags", multiple=True, help="Tag (repeatable)")
@click.option("--image", help="Image URL")
def recipes_create(
    file_path: str | None,
    name: str | None,
    description: str,
    difficulty: str,
    prep_time: int,
    cook_time: int,
    servings: int,
    ingredients: tuple[str, ...],
    steps: tuple[str, ...],
    tags: tuple[str, ...],
    image: str | None,
):
    """Create a recipe from a JSON file or from options.

    Examples:

    \b
        cookify recipes create --file tarte.json
        cookify recipes create --name "Salade" --prep 10 --servings 2 \\
            -i "Tomates:150:g" -i "Huile d'olive:10:ml" -s "Couper" -s "Mélanger"
    """
    auth = get_auth()
    book = get_recipe_book(auth)

    try:
        if file_path:
            data = load_json_file(file_path)
            data.setdefault("creator", auth.display_name or "")
            recipe = Recipe.from_dict(data)
        else:
            if not name:
                fail("Provide --file or at least --name.")
            recipe = Recipe(
                name=name,
                description=description,
                difficulty=Difficulty(difficulty),
                prep_time=prep_time,
                cook_time=cook_time,
                servings=servings,
                ingredients=[parse_ingredient_option(i) for i in ingredients],
                steps=list(steps),
                tags=list(tags),
                creator=auth.display_name or "",
                image=image,
            )
        created = book.create(recipe)
    except DOMAIN_ERRORS as e:
        fail(str(e))

    click.echo(f"✓ Created recipe '{created.name}' ({created.id}) - {created.calories} kcal")


@recipes.command("edit")
@click.argument("recipe_id")
@click.option("--file", "-f", "file_path", type=click.Path(exists=True), help="JSON changes")
@click.option("--name", help="New name")
@click.option("--description", help="New description")
@click.option("--difficulty", type=click.Choice([d.value for d in Difficulty]), help="Difficulty")
@click.option("--prep", "prep_time", type=int, help="Preparation time (minutes)")
@click.option("--cook", "cook_time", type=int, help="Cooking time (minutes)")
@click.option("--servings", type=int, help="Number of servings")
@click.option("--ingredient", "-i", "ingredients", multiple=True, help="Replace ingredients")
@click.option("--step", "-s", "steps", multiple=True, help="Replace steps")
@click.option("--tag", "-t", "tags", multiple=True, help="Replace tags")
@click.option("--image", help="Image URL")
def recipes_edit(
    recipe_id: str,
    file_path: str | None,
    name: str | None,
    description: str | None,
    difficulty: str | None,
    prep_time: int | None,
    cook_time: int | None,
    servings: int | None,
    ingredients: tuple[str, ...],
    steps: tuple[str, ...],
    tags: tuple[str, ...],
    image: str | None,
):
    """Edit one of your recipes."""
    changes: dict = load_json_file(file_path) if file_path else {}

    options = {
        "name": name,
        "description": description,
        "difficulty": difficulty,
        "prep_time": prep_time,
        "cook_time": cook_time,
        "servings": servings,
        "image": image,
    }
    changes.update({k: v for k, v in options.items() if v is not None})
    if ingredients:
        changes["ingredients"] = [parse_ingredient_option(i).to_dict() for i in ingredients]
    if steps:
        changes["steps"] = list(steps)
    if tags:
        changes["tags"] = list(tags)

    if not changes:
        fail("Nothing to change.")

    try:
        updated = get_recipe_book().update(recipe_id, changes)
    except DOMAIN_ERRORS as e:
        fail(str(e))

    click.echo(f"✓ Updated recipe '{updated.name}' - {updated.calories} kcal")


@recipes.command("delete")
@click.argument("recipe_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def recipes_delete(recipe_id: str, yes: bool):
    """Delete one of your recipes."""
    if not yes:
        if not click.confirm(f"Delete recipe {recipe_id}?"):
            click.echo("Cancelled.")
            return

    try:
        get_recipe_book().delete(recipe_id)
    except DOMAIN_ERRORS as e:
        fail(str(e))
    click.echo("✓ Recipe deleted")


@recipes.command("nutrition")
@click.argument("recipe_id")
@click.option("--per-serving", "per_serving_flag", is_flag=True, help="Divide by the servings")
def recipes_nutrition(recipe_id: str, per_serving_flag: bool):
    """Show nutrition facts of a recipe."""
    try:
        recipe = get_recipe_book().get(recipe_id)
    except DOMAIN_ERRORS as e:
        fail(str(e))

    facts = recipe_nutrition(recipe)
    label = "total"
    if per_serving_flag:
        facts = per_serving(facts, recipe.servings)
        label = f"per serving (of {recipe.servings})"

    facts = facts.rounded()
    click.echo()
    click.echo(f"NUTRITION: {recipe.name} ({label})")
    click.echo("=" * 40)
    click.echo(f"  Calories: {facts.calories} kcal")
    click.echo(f"  Proteins: {facts.proteins} g")
    click.echo(f"  Carbs:    {facts.carbs} g")
    click.echo(f"  Fat:      {facts.fat} g")
    click.echo(f"  Fiber:    {facts.fiber} g")
    click.echo()
    click.echo("* Approximate values computed from ingredient data.")


@recipes.command("tags")
def recipes_tags():
    """List tags in use and the predefined tag vocabulary."""
    try:
        used = get_recipe_book().all_tags()
    except DOMAIN_ERRORS as e:
        fail(str(e))

    click.echo()
    click.echo("TAGS IN USE")
    click.echo("=" * 40)
    click.echo(f"  {', '.join(used)}" if used else "  (none)")

    click.echo()
    click.echo("SUGGESTED TAGS")
    click.echo("=" * 40)
    for category, tags in group_by_category(PREDEFINED_TAGS).items():
        click.echo(f"  {TAG_CATEGORIES[category]}: {', '.join(t.name for t in tags)}")
    click.echo()


# ============================================================================
# Ingredient Commands
# ============================================================================


@cli.group()
def ingredients():
    """Look up ingredients and their nutrition values."""
    pass


@ingredients.command("search")
@click.argument("query")
@click.option("--limit", "-l", default=10, type=click.IntRange(min=1), help="Maximum results")
@click.option("--local-only", is_flag=True, help="Do not query the external food database")
def ingredients_search(query: str, limit: int, local_only: bool):
    """Search ingredients (local table, then external food database)."""
    if len(query.strip()) < 2:
        click.echo("Query too short (minimum 2 characters).")
        return

    if local_only:
        result = search_ingredients(query, limit)
    else:
        with get_ingredient_client() as client:
            result = search_ingredients(query, limit, client=client)

    if result.needs_manual_entry:
        manual = create_manual_ingredient(query)
        click.echo(f"No ingredients found for '{query}'.")
        click.echo(
            f"Add it manually as '{manual.name}' and fill in its nutrition values "
            "(calories, proteins, carbs, fat, fiber per 100g)."
        )
        return

    click.echo(
        f"\nFound {len(result.suggestions)} ingredients "
        f"({result.local_count} local, {result.external_count} external):\n"
    )
    for i, suggestion in enumerate(result.suggestions, 1):
        click.echo(f"{i}. {suggestion.name}  [{suggestion.source}]")
        click.echo(
            f"   {format_quantity(suggestion.calories)} kcal | P {suggestion.proteins} g"
            f" | C {suggestion.carbs} g | F {suggestion.fat} g | Fib {suggestion.fiber} g"
            " (per 100g)"
        )
        click.echo(f"   Units: {', '.join(suggestion.common_units)}")


# ============================================================================
# Shopping List Commands
# ============================================================================


@cli.group()
def shopping():
    """Manage your shopping list."""
    pass


@shopping.command("show")
def shopping_show():
    """Show your shopping list."""
    service = get_shopping_service()
    try:
        shopping_list = service.get_or_create()
        titles = service.recipe_titles(shopping_list)
    except DOMAIN_ERRORS as e:
        fail(str(e))
    display_shopping_list(shopping_list, titles)


@shopping.command("add-recipe")
@click.argument("recipe_id")
@click.option("--servings", "-S", type=float, default=1, help="Servings to shop for")
def shopping_add_recipe(recipe_id: str, servings: float):
    """Add a recipe's ingredients to your shopping list."""
    try:
        shopping_list = get_shopping_service().add_recipe(recipe_id, servings)
    except DOMAIN_ERRORS as e:
        fail(str(e))
    click.echo(f"✓ Recipe added to the shopping list ({shopping_list.item_count} items)")


@shopping.command("remove-recipe")
@click.argument("recipe_id")
def shopping_remove_recipe(recipe_id: str):
    """Remove a recipe's ingredients from your shopping list."""
    try:
        shopping_list = get_shopping_service().remove_recipe(recipe_id)
    except DOMAIN_ERRORS as e:
        fail(str(e))
    click.echo(f"✓ Recipe removed from the shopping list ({shopping_list.item_count} items)")


@shopping.command("add-item")
@click.argument("name")
@click.option("--quantity", "-q", type=float, default=1, help="Quantity")
@click.option("--unit", "-u", default="pièce", help="Unit")
def shopping_add_item(name: str, quantity: float, unit: str):
    """Add a single item to your shopping list."""
    known = find_local(name, exact=True)
    try:
        item = get_shopping_service().add_item(
            name, quantity, unit, ingredient_id=known.id if known else None
        )
    except DOMAIN_ERRORS as e:
        fail(str(e))
    click.echo(f"✓ {item}")


@shopping.command("check")
@click.argument("item_id")
@click.option("--uncheck", is_flag=True, help="Mark as not bought")
def shopping_check(item_id: str, uncheck: bool):
    """Mark an item as bought."""
    try:
        item = get_shopping_service().set_checked(item_id, not uncheck)
    except DOMAIN_ERRORS as e:
        fail(str(e))
    click.echo(f"✓ {'Unchecked' if uncheck else 'Checked'}: {item.name}")


@shopping.command("set-quantity")
@click.argument("item_id")
@click.argument("quantity", type=float)
def shopping_set_quantity(item_id: str, quantity: float):
    """Change an item's quantity (0 removes it)."""
    try:
        item = get_shopping_service().update_item(item_id, quantity=quantity)
    except DOMAIN_ERRORS as e:
        fail(str(e))
    if item is None:
        click.echo("✓ Item removed")
    else:
        click.echo(f"✓ {item}")


@shopping.command("remove-item")
@click.argument("item_id")
def shopping_remove_item(item_id: str):
    """Remove an item from your shopping list."""
    try:
        get_shopping_service().remove_item(item_id)
    except DOMAIN_ERRORS as e:
        fail(str(e))
    click.echo("✓ Item removed")


@shopping.command("clear")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def shopping_clear(yes: bool):
    """Empty your shopping list."""
    if not yes:
        if not click.confirm("Clear the shopping list?"):
            click.echo("Cancelled.")
            return

    try:
        get_shopping_service().clear()
    except DOMAIN_ERRORS as e:
        fail(str(e))
    click.echo("✓ Shopping list cleared")


@shopping.command("export")
@click.argument("output", type=click.Path())
@click.option("--format", "-f", "fmt", type=click.Choice(EXPORT_FORMATS), help="Output format")
def shopping_export(output: str, fmt: str | None):
    """Export your shopping list to a file (json, markdown or txt)."""
    service = get_shopping_service()
    try:
        shopping_list = service.get_or_create()
        titles = service.recipe_titles(shopping_list)
        path = export_shopping_list(shopping_list, output, fmt, recipe_titles=titles)
    except DOMAIN_ERRORS as e:
        fail(str(e))
    except OSError as e:
        fail(f"Export failed: {e}")
    click.echo(f"✓ Exported to {path}")


# ============================================================================
# Entry Point
# ============================================================================


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
