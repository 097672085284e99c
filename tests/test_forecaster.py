from datetime import timedelta

import pandas as pd
import pytest

from prepflow.config import Config, ForecastConfig
from prepflow.data_processor import DataProcessor
from prepflow.exceptions import InsufficientHistoricalData
from prepflow.forecaster import ForecastEngine
from prepflow.utils.constants import DAY_NAMES
from tests.helpers import LOCATION, TODAY, WEEKDAY_REVENUE, make_history


@pytest.fixture
def engine():
    return ForecastEngine()


def test_flat_history_forecasts_flat_revenue(engine, flat_history):
    result = engine.forecast(flat_history, days_ahead=7, today=TODAY)

    assert len(result.forecasts) == 7
    assert result.trend == pytest.approx(0.0)
    for point in result.forecasts:
        assert point.predicted_revenue == pytest.approx(1000.0)
        assert point.interval_width == pytest.approx(0.0)
    assert result.accuracy.mape == pytest.approx(0.0)
    assert result.accuracy.rmse == pytest.approx(0.0)


def test_forecast_dates_step_one_day_from_tomorrow(engine, weekly_history):
    result = engine.forecast(weekly_history, days_ahead=14, today=TODAY)

    dates = [p.date for p in result.forecasts]
    assert dates[0] == TODAY + timedelta(days=1)
    assert all(b - a == timedelta(days=1) for a, b in zip(dates, dates[1:]))
    assert [p.day_of_week for p in result.forecasts] == [DAY_NAMES[d.weekday()] for d in dates]


def test_confidence_band_contains_prediction(engine, weekly_history):
    result = engine.forecast(weekly_history, days_ahead=30, today=TODAY)

    for point in result.forecasts:
        assert 0 <= point.confidence_lower <= point.predicted_revenue <= point.confidence_upper


def test_baseline_is_mean_per_weekday(engine, weekly_history):
    result = engine.forecast(weekly_history, days_ahead=1, today=TODAY)

    saturday = [r.total_sales for r in weekly_history if r.date.weekday() == 5]
    assert result.baseline[5] == pytest.approx(sum(saturday) / len(saturday))
    assert set(result.baseline) == set(range(7))


def test_missing_weekday_has_zero_baseline_and_band(engine):
    history = [r for r in make_history([500.0] * 35) if r.date.weekday() != 2]

    result = engine.forecast(history, days_ahead=7, today=TODAY)

    assert result.baseline[2] == 0.0
    wednesday = next(p for p in result.forecasts if p.date.weekday() == 2)
    assert wednesday.interval_width == 0.0


def test_too_few_records_raises(engine):
    with pytest.raises(InsufficientHistoricalData) as exc:
        engine.forecast(make_history([1000.0] * 13), days_ahead=7, today=TODAY)

    assert exc.value.available == 13
    assert exc.value.required == 14
    assert isinstance(exc.value, ValueError)


def test_records_outside_window_are_ignored(engine):
    old = make_history([1000.0] * 10, end=TODAY - timedelta(days=120))
    recent = make_history([1000.0] * 10)

    with pytest.raises(InsufficientHistoricalData):
        engine.forecast(old + recent, days_ahead=7, today=TODAY)


def test_future_records_are_ignored(engine, flat_history):
    future = make_history([99999.0] * 5, end=TODAY + timedelta(days=5))

    result = engine.forecast(flat_history + future, days_ahead=3, today=TODAY)

    assert result.forecasts[0].predicted_revenue == pytest.approx(1000.0)


def test_days_ahead_must_be_positive(engine, flat_history):
    with pytest.raises(ValueError):
        engine.forecast(flat_history, days_ahead=0, today=TODAY)


def test_upward_trend(engine):
    history = make_history([1000.0 + 20 * i for i in range(30)])

    result = engine.forecast(history, days_ahead=7, today=TODAY)

    assert result.trend == pytest.approx(20.0)
    assert "upward trend" in result.insights[0]
    assert "increase vs. historical average" in result.insights[-1]


def test_downward_trend_never_predicts_negative_revenue(engine):
    history = make_history([1000.0 - 30 * i for i in range(30)])

    result = engine.forecast(history, days_ahead=30, today=TODAY)

    assert result.trend == pytest.approx(-30.0)
    assert "Downward trend" in result.insights[0]
    assert result.forecasts[-1].predicted_revenue == 0.0
    for point in result.forecasts:
        assert point.predicted_revenue >= 0
        assert point.confidence_lower >= 0


def test_trend_uses_recent_window_only(engine):
    values = [5000.0 - 100 * i for i in range(30)] + [1000.0] * 30
    result = engine.forecast(make_history(values), days_ahead=1, today=TODAY)

    assert result.trend == pytest.approx(0.0)


def test_peak_day_insight(engine, weekly_history):
    result = engine.forecast(weekly_history, days_ahead=7, today=TODAY)

    assert any("Saturday is your busiest day" in text for text in result.insights)


def test_stable_insight(engine, flat_history):
    result = engine.forecast(flat_history, days_ahead=7, today=TODAY)

    assert "stable" in result.insights[0]
    assert len(result.insights) == 2


def test_backtest_skips_zero_actuals_in_mape(engine):
    holdout = pd.DataFrame({'total_sales': [0.0, 100.0], 'day_of_week': [0, 1]})
    baseline = {day: 0.0 for day in range(7)}
    baseline.update({0: 10.0, 1: 90.0})

    report = engine.backtest(holdout, baseline, trend=0.0)

    assert report.mape == pytest.approx(10.0)
    assert report.rmse == pytest.approx(10.0)


def test_backtest_applies_trend_by_holdout_position(engine):
    holdout = pd.DataFrame({'total_sales': [100.0, 110.0, 120.0], 'day_of_week': [0, 0, 0]})
    baseline = {day: 100.0 for day in range(7)}

    report = engine.backtest(holdout, baseline, trend=10.0)

    assert report.mape == pytest.approx(0.0)
    assert report.rmse == pytest.approx(0.0)


def test_forecast_location_reads_processor(weekly_history):
    processor = DataProcessor()
    processor.load_sales_history(LOCATION, weekly_history)
    engine = ForecastEngine(processor)

    result = engine.forecast_location(LOCATION, days_ahead=7, today=TODAY)

    assert len(result.forecasts) == 7
    saturday = next(p for p in result.forecasts if p.day_of_week == "Saturday")
    assert saturday.predicted_revenue > WEEKDAY_REVENUE[0]


def test_unknown_location_has_no_history():
    engine = ForecastEngine(DataProcessor())

    with pytest.raises(InsufficientHistoricalData) as exc:
        engine.forecast_location(42, days_ahead=7, today=TODAY)

    assert exc.value.location_id == 42


def test_history_window_is_configurable(flat_history):
    config = Config(forecast=ForecastConfig(history_window_days=7))
    engine = ForecastEngine(config=config)

    with pytest.raises(InsufficientHistoricalData):
        engine.forecast(flat_history, days_ahead=7, today=TODAY)


def test_result_to_dict(engine, flat_history):
    data = engine.forecast(flat_history, days_ahead=2, today=TODAY).to_dict()

    assert data['forecasts'][0]['date'] == (TODAY + timedelta(days=1)).isoformat()
    assert set(data['accuracy']) == {'mape', 'rmse'}
    assert data['baseline']['Monday'] == pytest.approx(1000.0)
