from datetime import date, timedelta

import pandas as pd
import pytest

from prepflow.data_processor import DataProcessor
from prepflow.exceptions import PrepFlowError
from prepflow.models import RecipeDefinition
from prepflow.utils.validators import validate_recipe, validate_sales_frame
from tests.helpers import LOCATION, TODAY


@pytest.fixture
def sales_frame():
    return pd.DataFrame({
        "date": ["2024-06-10", "2024-06-11", "2024-06-11", "2024-06-12", "2024-06-17"],
        "total_sales": [1000.0, 1200.0, 1250.0, -50.0, 1400.0],
        "total_orders": [40, 48, 50, 0, 56],
    })


def test_load_frame_reports_warnings(sales_frame):
    processor = DataProcessor()

    validation = processor.load_sales_history(LOCATION, sales_frame)

    assert validation.is_valid
    assert any("negative revenue" in w for w in validation.warnings)
    assert any("repeated dates" in w for w in validation.warnings)


def test_duplicate_days_keep_last_entry(sales_frame):
    processor = DataProcessor()
    processor.load_sales_history(LOCATION, sales_frame)

    history = processor.get_sales_history(LOCATION)

    assert [r.date for r in history] == [
        date(2024, 6, 10), date(2024, 6, 11), date(2024, 6, 12), date(2024, 6, 17)
    ]
    assert history[1].total_sales == 1250.0
    assert history[0].day_of_week == 0
    assert history[0].total_orders == 40


def test_missing_columns_raise():
    processor = DataProcessor()

    with pytest.raises(PrepFlowError):
        processor.load_sales_history(LOCATION, pd.DataFrame({"day": ["2024-06-10"], "revenue": [1.0]}))


def test_trailing_history_is_inclusive(flat_history):
    processor = DataProcessor()
    processor.load_sales_history(LOCATION, flat_history)

    history = processor.get_trailing_history(LOCATION, TODAY, window_days=7)

    assert len(history) == 8
    assert history[0].date == TODAY - timedelta(days=7)
    assert history[-1].date == TODAY


def test_sales_summary(sales_frame):
    processor = DataProcessor()
    processor.load_sales_history(LOCATION, sales_frame)

    summary = processor.sales_summary(LOCATION, start="2024-06-11", end="2024-06-12")

    assert summary["record_count"] == 2
    assert summary["total_sales"] == pytest.approx(1200.0)
    assert summary["min_daily_sales"] == pytest.approx(-50.0)
    assert summary["total_orders"] == 50


def test_sales_summary_for_unknown_location():
    summary = DataProcessor().sales_summary(99)

    assert summary["record_count"] == 0
    assert summary["total_sales"] == 0.0


def test_sales_by_day_of_week(sales_frame):
    processor = DataProcessor()
    processor.load_sales_history(LOCATION, sales_frame)

    profile = processor.sales_by_day_of_week(LOCATION)

    assert list(profile["day_name"]) == ["Monday", "Tuesday", "Wednesday"]
    monday = profile.iloc[0]
    assert monday["record_count"] == 2
    assert monday["avg_sales"] == pytest.approx(1200.0)
    assert monday["total_sales"] == pytest.approx(2400.0)


def test_daily_sales_average_order_value(sales_frame):
    processor = DataProcessor()
    processor.load_sales_history(LOCATION, sales_frame)

    daily = processor.daily_sales(LOCATION)

    assert list(daily["day_name"])[:2] == ["Monday", "Tuesday"]
    assert daily.iloc[0]["average_order_value"] == pytest.approx(25.0)
    # zero orders
    assert daily.iloc[2]["average_order_value"] == 0.0


def test_sales_date_range(sales_frame):
    processor = DataProcessor()
    processor.load_sales_history(LOCATION, sales_frame)

    assert processor.sales_date_range(LOCATION) == {
        "min_date": date(2024, 6, 10),
        "max_date": date(2024, 6, 17),
    }
    assert processor.sales_date_range(99) is None


def test_load_recipes_from_long_frame():
    frame = pd.DataFrame({
        "recipe_id": [1, 1, 2],
        "recipe_name": ["Dragon Roll", "Dragon Roll", "Miso Soup"],
        "servings": [4, 4, None],
        "selling_price": [16.0, 16.0, 4.5],
        "ingredient_id": [1, 2, 5],
        "quantity": [10, 400, 2],
        "unit": ["pc", "g", "tbsp"],
        "category": ["Rolls", "Rolls", "Soups"],
    })
    processor = DataProcessor()

    assert processor.load_recipes(frame) == 2

    dragon = processor.get_recipe(1)
    assert dragon.servings == 4
    assert [(l.ingredient_id, l.unit) for l in dragon.lines] == [(1, "pc"), (2, "g")]
    assert processor.get_recipe(2).servings is None


def test_load_ingredients_and_overrides_from_frames():
    processor = DataProcessor()
    processor.load_ingredients(pd.DataFrame({
        "id": [1, 2],
        "name": ["Scallops", "Nori"],
        "storage_unit": ["lb", "sheet"],
        "cost_per_storage_unit": [22.0, 0.15],
        "piece_weight_oz": [1.5, None],
    }))
    processor.load_overrides(pd.DataFrame({
        "ingredient_id": [2],
        "from_unit": ["pack"],
        "to_unit": ["sheet"],
        "factor": [50.0],
    }))

    assert processor.get_ingredient(1).piece_weight_oz == 1.5
    assert processor.get_ingredient(2).piece_weight_oz is None
    assert len(processor.get_ingredients()) == 2
    assert processor.get_overrides(2)[0].factor == 50.0
    assert processor.get_overrides(1) == []


def test_recipe_revenue(recipes):
    processor = DataProcessor()
    processor.load_recipes(recipes)

    revenue = processor.recipe_revenue(pd.DataFrame({
        "recipe_id": [1, 1, 2],
        "quantity": [10, 2, 5],
    }))

    assert revenue == {1: 150.0, 2: 50.0}


def test_validate_sales_frame_flags_unparseable_dates():
    frame = pd.DataFrame({"date": ["2024-06-10", "not a date"], "total_sales": [1.0, 2.0]})

    result = validate_sales_frame(frame)

    assert result.is_valid
    assert any("unparseable" in w for w in result.warnings)


def test_validate_recipe():
    assert not validate_recipe(RecipeDefinition(1, "No Price", servings=2, selling_price=None)).is_valid
    assert not validate_recipe(RecipeDefinition(2, "No Servings", servings=0, selling_price=9.0)).is_valid

    result = validate_recipe(RecipeDefinition(3, "Empty", servings=2, selling_price=9.0))
    assert result.is_valid
    assert result.warnings
