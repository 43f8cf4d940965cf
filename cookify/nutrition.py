"""Derived nutrition facts for recipes."""

from dataclasses import dataclass

from .recipes import IngredientLine, Recipe, calculate_total_calories


@dataclass
class NutritionFacts:
    """Nutrition totals: kcal and grams of each macronutrient."""

    calories: float
    proteins: float
    carbs: float
    fat: float
    fiber: float

    def rounded(self) -> "NutritionFacts":
        """Round for display: whole calories, one decimal for grams."""
        return NutritionFacts(
            calories=round(self.calories),
            proteins=round(self.proteins, 1),
            carbs=round(self.carbs, 1),
            fat=round(self.fat, 1),
            fiber=round(self.fiber, 1),
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "calories": self.calories,
            "proteins": self.proteins,
            "carbs": self.carbs,
            "fat": self.fat,
            "fiber": self.fiber,
        }


def ingredients_nutrition(ingredients: list[IngredientLine]) -> NutritionFacts:
    """Sum nutrition of ingredient lines, each value per 100g scaled by quantity."""
    proteins = carbs = fat = fiber = 0.0
    for ing in ingredients:
        factor = ing.quantity_per_serving / 100
        proteins += ing.proteins * factor
        carbs += ing.carbs * factor
        fat += ing.fat * factor
        fiber += ing.fiber * factor

    return NutritionFacts(
        calories=calculate_total_calories(ingredients),
        proteins=proteins,
        carbs=carbs,
        fat=fat,
        fiber=fiber,
    )


def recipe_nutrition(recipe: Recipe) -> NutritionFacts:
    """Nutrition facts for a recipe; calories match the stored recipe total."""
    return ingredients_nutrition(recipe.ingredients)


def scale(facts: NutritionFacts, factor: float) -> NutritionFacts:
    return NutritionFacts(
        calories=facts.calories * factor,
        proteins=facts.proteins * factor,
        carbs=facts.carbs * factor,
        fat=facts.fat * factor,
        fiber=facts.fiber * factor,
    )


def per_serving(facts: NutritionFacts, servings: int) -> NutritionFacts:
    """
    Divide nutrition facts over a number of servings.

    Raises:
        ValueError: If servings is not positive
    """
    if servings <= 0:
        raise ValueError("servings must be greater than 0")
    return scale(facts, 1 / servings)
