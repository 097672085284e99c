import pytest

from prepflow.costing import RecipeCostCalculator
from prepflow.models import ConversionOverride, IngredientDefinition, RecipeDefinition, RecipeLine
from prepflow.units import UnitConverter

SALMON = IngredientDefinition(id=1, name="Salmon", storage_unit="oz", cost_per_storage_unit=2.5)
RICE = IngredientDefinition(id=2, name="Sushi Rice", storage_unit="kg", cost_per_storage_unit=3.0)
INGREDIENTS = {SALMON.id: SALMON, RICE.id: RICE}


@pytest.fixture
def calculator():
    return RecipeCostCalculator(UnitConverter([
        ConversionOverride(ingredient_id=1, from_unit="pieces", to_unit="oz", factor=8.0)
    ]))


def test_line_cost_with_override(calculator):
    line = calculator.cost_line(RecipeLine(1, 10.0, "pieces"), SALMON)

    # 10 pieces x 8 oz x $2.50
    assert line.converted_quantity == pytest.approx(80.0)
    assert line.cost == pytest.approx(200.0)
    assert line.conversion_applied is True
    assert line.conversion_factor == pytest.approx(8.0)
    assert line.conversion_warning is None


def test_line_cost_with_standard_conversion(calculator):
    line = calculator.cost_line(RecipeLine(2, 500.0, "g"), RICE)

    assert line.converted_quantity == pytest.approx(0.5)
    assert line.cost == pytest.approx(1.5)
    assert line.conversion_factor == pytest.approx(0.001)


def test_matching_units_apply_no_conversion(calculator):
    line = calculator.cost_line(RecipeLine(1, 4.0, "oz"), SALMON)

    assert line.conversion_applied is False
    assert line.conversion_factor is None
    assert line.cost == pytest.approx(10.0)


def test_missing_conversion_is_flagged(calculator):
    line = calculator.cost_line(RecipeLine(1, 1.0, "cup"), SALMON)

    assert line.cost is None
    assert line.converted_quantity is None
    assert line.conversion_warning == "Missing conversion: cup -> oz for Salmon"


def test_unknown_ingredient(calculator):
    line = calculator.cost_line(RecipeLine(42, 1.0, "oz"), None)

    assert line.ingredient_name == "Ingredient 42"
    assert line.cost is None


def test_recipe_cost_and_margins(calculator):
    recipe = RecipeDefinition(
        id=1, name="Dragon Roll", servings=4, selling_price=25.0,
        lines=[RecipeLine(1, 10.0, "pieces"), RecipeLine(2, 1000.0, "g")]
    )

    cost = calculator.cost_recipe(recipe, INGREDIENTS)

    assert cost.total_cost == pytest.approx(203.0)
    assert cost.cost_per_serving == pytest.approx(50.75)
    assert cost.food_cost_percent == pytest.approx(203.0)
    assert cost.margin_percent == pytest.approx(-103.0)
    assert not cost.has_warnings


def test_recipe_without_price_has_zero_percentages(calculator):
    recipe = RecipeDefinition(id=2, name="Staff Meal", servings=None, selling_price=None,
                              lines=[RecipeLine(1, 4.0, "oz"), RecipeLine(1, 1.0, "cup")])

    cost = calculator.cost_recipe(recipe, INGREDIENTS)

    assert cost.total_cost == pytest.approx(10.0)
    assert cost.food_cost_percent == 0.0
    assert cost.margin_percent == 0.0
    assert cost.has_warnings
    assert cost.to_dict()['lines'][1]['conversion_warning'].startswith("Missing conversion:")


class CountingConverter(UnitConverter):
    def __init__(self, overrides=None):
        super().__init__(overrides)
        self.calls = 0

    def convert(self, value, from_unit, to_unit, ingredient=None):
        self.calls += 1
        return super().convert(value, from_unit, to_unit, ingredient=ingredient)


def test_line_is_converted_once():
    converter = CountingConverter()
    line = RecipeCostCalculator(converter).cost_line(RecipeLine(2, 750.0, "g"), RICE)

    assert converter.calls == 1
    assert line.converted_quantity == pytest.approx(0.75)
    assert line.cost == pytest.approx(2.25)
