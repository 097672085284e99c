import sys
from datetime import timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from prepflow.data_processor import DataProcessor
from prepflow.models import (
    ConversionOverride,
    HistoricalSalesRecord,
    IngredientDefinition,
    RecipeDefinition,
    RecipeLine,
)
from prepflow.prep_planner import PrepPlanningEngine

from tests.helpers import LOCATION, TODAY, WEEKDAY_REVENUE, make_history


@pytest.fixture
def flat_history():
    return make_history([1000.0] * 28)


@pytest.fixture
def weekly_history():
    start = TODAY - timedelta(days=55)
    records = []
    for i in range(56):
        day = start + timedelta(days=i)
        records.append(HistoricalSalesRecord(
            date=day,
            total_sales=WEEKDAY_REVENUE[day.weekday()] + (i % 3) * 50.0
        ))
    return records


@pytest.fixture
def ingredients():
    return [
        IngredientDefinition(id=1, name="Salmon", storage_unit="lb", cost_per_storage_unit=14.0,
                             piece_weight_oz=4.0, category="Seafood"),
        IngredientDefinition(id=2, name="Sushi Rice", storage_unit="kg", cost_per_storage_unit=3.2,
                             category="Dry Goods"),
        IngredientDefinition(id=3, name="Cilantro", storage_unit="bunch", cost_per_storage_unit=1.5,
                             category="Produce"),
    ]


@pytest.fixture
def recipes():
    return [
        RecipeDefinition(
            id=1, name="Salmon Roll", servings=4, selling_price=12.5, category="Rolls",
            lines=[RecipeLine(1, 16.0, "oz"), RecipeLine(2, 400.0, "g")]
        ),
        RecipeDefinition(
            id=2, name="Veggie Bowl", servings=2, selling_price=10.0, category="Bowls",
            lines=[RecipeLine(2, 200.0, "g"), RecipeLine(3, 1.0, "bunch")]
        ),
    ]


@pytest.fixture
def overrides():
    return [ConversionOverride(ingredient_id=3, from_unit="bunch", to_unit="oz", factor=3.0)]


@pytest.fixture
def processor(flat_history, recipes, ingredients, overrides):
    processor = DataProcessor()
    processor.load_sales_history(LOCATION, flat_history)
    processor.load_recipes(recipes)
    processor.load_ingredients(ingredients)
    processor.load_overrides(overrides)
    return processor


@pytest.fixture
def prep_engine(processor):
    return PrepPlanningEngine(processor)
