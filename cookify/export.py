"""Shopping list export in various formats."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from .shopping_list import ShoppingList, checked_items, format_quantity

EXPORT_FORMATS = ("json", "markdown", "txt")


def export_to_json(
    shopping_list: ShoppingList,
    filepath: str | Path,
    *,
    recipe_titles: list[str] | None = None,
) -> None:
    """
    Export shopping list to JSON format.

    Args:
        shopping_list: The list to export
        filepath: Output file path
        recipe_titles: Optional names of the recipes behind the list
    """
    data: dict[str, Any] = {
        "exported_at": datetime.now().isoformat(),
        "name": shopping_list.name,
        "recipes": recipe_titles or [],
        "items": [
            {
                "name": item.name,
                "quantity": item.quantity,
                "unit": item.unit,
                "checked": item.checked,
            }
            for item in shopping_list.items
        ],
        "summary": {
            "total_items": shopping_list.item_count,
            "checked": len(checked_items(shopping_list)),
            "remaining": shopping_list.item_count - len(checked_items(shopping_list)),
        },
    }

    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def export_to_markdown(
    shopping_list: ShoppingList,
    filepath: str | Path,
    *,
    recipe_titles: list[str] | None = None,
) -> None:
    """
    Export shopping list to Markdown format, as a checkbox list.

    Args:
        shopping_list: The list to export
        filepath: Output file path
        recipe_titles: Optional names of the recipes behind the list
    """
    lines: list[str] = []

    # Header
    lines.append(f"# {shopping_list.name}")
    lines.append("")
    lines.append(f"*Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}*")
    lines.append("")

    if recipe_titles:
        lines.append("## Recipes")
        lines.append("")
        for title in recipe_titles:
            lines.append(f"- {title}")
        lines.append("")

    lines.append("## Items")
    lines.append("")

    if not shopping_list.items:
        lines.append("*The list is empty.*")

    for item in shopping_list.items:
        box = "x" if item.checked else " "
        unit = f" {item.unit}" if item.unit else ""
        lines.append(f"- [{box}] **{item.name}** - {format_quantity(item.quantity)}{unit}")

    lines.append("")

    with open(filepath, "w", encoding="utf-8") as f:
        f.write("\n".join(lines))


def export_to_text(
    shopping_list: ShoppingList,
    filepath: str | Path,
    *,
    recipe_titles: list[str] | None = None,
) -> None:
    """
    Export shopping list to plain text format.

    Args:
        shopping_list: The list to export
        filepath: Output file path
        recipe_titles: Optional names of the recipes behind the list
    """
    lines: list[str] = []

    lines.append("=" * 50)
    lines.append(shopping_list.name.upper())
    lines.append("=" * 50)
    lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}")
    lines.append("")

    if recipe_titles:
        lines.append("Recipes:")
        for title in recipe_titles:
            lines.append(f"  * {title}")
        lines.append("")

    for item in shopping_list.items:
        mark = "[x]" if item.checked else "[ ]"
        lines.append(f"{mark} {item}")

    lines.append("")
    lines.append("-" * 50)
    lines.append(f"Items: {shopping_list.item_count}")
    lines.append("=" * 50)

    with open(filepath, "w", encoding="utf-8") as f:
        f.write("\n".join(lines))


def export_shopping_list(
    shopping_list: ShoppingList,
    filepath: str | Path,
    format: str | None = None,
    *,
    recipe_titles: list[str] | None = None,
) -> Path:
    """
    Export shopping list to the specified format.

    Args:
        shopping_list: The list to export
        filepath: Output file path
        format: Export format (json, markdown, txt); inferred from extension if None
        recipe_titles: Optional names of the recipes behind the list

    Returns:
        Path to the exported file

    Raises:
        ValueError: If format is not supported
    """
    filepath = Path(filepath)

    if format is None:
        ext = filepath.suffix.lower()
        format_map = {".json": "json", ".md": "markdown", ".markdown": "markdown", ".txt": "txt"}
        format = format_map.get(ext, "txt")

    format = format.lower()

    if format == "json":
        export_to_json(shopping_list, filepath, recipe_titles=recipe_titles)
    elif format in ("markdown", "md"):
        export_to_markdown(shopping_list, filepath, recipe_titles=recipe_titles)
    elif format in ("txt", "text"):
        export_to_text(shopping_list, filepath, recipe_titles=recipe_titles)
    else:
        raise ValueError(f"Unsupported format: {format}. Use json, markdown, or txt.")

    return filepath
