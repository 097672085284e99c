"""
PrepFlow - Recipe Costing
==========================

Food cost per recipe, with recipe quantities converted into the unit the
ingredient is purchased and priced in.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .models import IngredientDefinition, RecipeDefinition, RecipeLine
from .units import ConversionFailure, UnitConverter, normalize_unit
from .utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class LineCost:
    """Cost of one recipe line"""
    ingredient_id: int
    ingredient_name: str
    quantity: float
    unit: str
    storage_unit: Optional[str]
    converted_quantity: Optional[float]
    cost: Optional[float]
    conversion_applied: bool = False
    conversion_factor: Optional[float] = None
    conversion_warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ingredient_id': self.ingredient_id,
            'ingredient_name': self.ingredient_name,
            'quantity': self.quantity,
            'unit': self.unit,
            'storage_unit': self.storage_unit,
            'converted_quantity': self.converted_quantity,
            'cost': self.cost,
            'conversion_applied': self.conversion_applied,
            'conversion_factor': self.conversion_factor,
            'conversion_warning': self.conversion_warning
        }


@dataclass
class RecipeCost:
    """Batch and per-serving cost of a recipe with its margins"""
    recipe_id: int
    recipe_name: str
    total_cost: float
    cost_per_serving: float
    food_cost_percent: float
    margin_percent: float
    lines: List[LineCost] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return any(line.conversion_warning for line in self.lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'recipe_id': self.recipe_id,
            'recipe_name': self.recipe_name,
            'total_cost': self.total_cost,
            'cost_per_serving': self.cost_per_serving,
            'food_cost_percent': self.food_cost_percent,
            'margin_percent': self.margin_percent,
            'lines': [line.to_dict() for line in self.lines]
        }


class RecipeCostCalculator:
    """
    Calculates recipe food cost through the unit conversion layer.

    Usage:
        calculator = RecipeCostCalculator(UnitConverter(overrides))
        cost = calculator.cost_recipe(recipe, ingredients_by_id)
        print(cost.food_cost_percent)
    """

    def __init__(self, converter: Optional[UnitConverter] = None):
        self.converter = converter or UnitConverter()

    def cost_line(self, line: RecipeLine, ingredient: Optional[IngredientDefinition]) -> LineCost:
        """
        Cost one recipe line in the ingredient's storage unit.

        A line whose unit cannot be converted gets ``cost = None`` and a
        ``Missing conversion`` warning instead of a guessed price.
        """
        if ingredient is None:
            return LineCost(
                ingredient_id=line.ingredient_id,
                ingredient_name=f"Ingredient {line.ingredient_id}",
                quantity=line.quantity_per_batch,
                unit=line.unit,
                storage_unit=None,
                converted_quantity=None,
                cost=None,
                conversion_warning=f"Unknown ingredient {line.ingredient_id}"
            )

        same_unit = normalize_unit(line.unit) == normalize_unit(ingredient.storage_unit)
        factor = None
        if not same_unit:
            factor = self.converter.convert(1, line.unit, ingredient.storage_unit, ingredient=ingredient)

        if isinstance(factor, ConversionFailure):
            warning = (f"Missing conversion: {line.unit} -> {ingredient.storage_unit} "
                       f"for {ingredient.name}")
            logger.warning(warning)
            return LineCost(
                ingredient_id=ingredient.id,
                ingredient_name=ingredient.name,
                quantity=line.quantity_per_batch,
                unit=line.unit,
                storage_unit=ingredient.storage_unit,
                converted_quantity=None,
                cost=None,
                conversion_warning=warning
            )

        converted = line.quantity_per_batch if same_unit else line.quantity_per_batch * factor

        return LineCost(
            ingredient_id=ingredient.id,
            ingredient_name=ingredient.name,
            quantity=line.quantity_per_batch,
            unit=line.unit,
            storage_unit=ingredient.storage_unit,
            converted_quantity=converted,
            cost=converted * ingredient.cost_per_storage_unit,
            conversion_applied=not same_unit,
            conversion_factor=factor
        )

    def cost_recipe(
        self,
        recipe: RecipeDefinition,
        ingredients: Mapping[int, IngredientDefinition]
    ) -> RecipeCost:
        """
        Cost a recipe batch and one serving of it.

        Lines without a cost count as zero in the totals; their warnings
        stay on the line.

        Args:
            recipe: Recipe to cost
            ingredients: Ingredient master data by id
        """
        lines = [self.cost_line(line, ingredients.get(line.ingredient_id)) for line in recipe.lines]
        total_cost = sum(line.cost or 0.0 for line in lines)

        servings = recipe.servings if recipe.servings and recipe.servings > 0 else 1
        cost_per_serving = total_cost / servings

        price = recipe.selling_price
        if price and price > 0:
            food_cost_percent = cost_per_serving / price * 100
            margin_percent = (price - cost_per_serving) / price * 100
        else:
            food_cost_percent = 0.0
            margin_percent = 0.0

        return RecipeCost(
            recipe_id=recipe.id,
            recipe_name=recipe.name,
            total_cost=total_cost,
            cost_per_serving=cost_per_serving,
            food_cost_percent=food_cost_percent,
            margin_percent=margin_percent,
            lines=lines
        )
