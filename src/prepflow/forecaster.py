"""
PrepFlow - Forecasting Engine
==============================

Daily revenue forecasting from a location's recent sales history.

Model:
- Day-of-week baseline: mean revenue per weekday
- Linear trend: OLS slope over the most recent records
- Prediction: baseline[weekday] + trend * days_ahead, floored at zero
- 95% band: per-weekday population standard deviation * z

Features:
- Trailing-window history extraction
- Holdout backtest (MAPE / RMSE)
- Narrative insights
"""

from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats

from .config import Config, DEFAULT_CONFIG
from .data_processor import DataProcessor
from .exceptions import InsufficientHistoricalData
from .insights import InsightGenerator
from .models import AccuracyReport, ForecastPoint, ForecastResult, HistoricalSalesRecord
from .utils.constants import DAY_NAMES, DAYS_PER_WEEK
from .utils.logger import LogContext, get_logger

logger = get_logger(__name__)


class ForecastEngine:
    """
    Revenue forecasting engine for prep planning.

    Usage:
        engine = ForecastEngine(data_processor)
        result = engine.forecast_location(location_id=1, days_ahead=14)
        tomorrow = result.forecasts[0]
    """

    def __init__(
        self,
        data_processor: Optional[DataProcessor] = None,
        config: Optional[Config] = None,
        insight_generator: Optional[InsightGenerator] = None
    ):
        """
        Initialize the ForecastEngine.

        Args:
            data_processor: DataProcessor instance for data access
            config: Configuration object
            insight_generator: Narrative generator (default built from config)
        """
        self.config = config or DEFAULT_CONFIG
        self.data_processor = data_processor or DataProcessor(self.config)
        self.insight_generator = insight_generator or InsightGenerator(self.config)

    def forecast_location(
        self,
        location_id,
        days_ahead: Optional[int] = None,
        today: Optional[date] = None
    ) -> ForecastResult:
        """
        Forecast revenue for a location from the data processor's history.

        Args:
            location_id: Location identifier
            days_ahead: Forecast horizon in days (default from config)
            today: Reference date (defaults to the current date)

        Returns:
            ForecastResult with one point per day from tomorrow on

        Raises:
            InsufficientHistoricalData: If the trailing window holds too few days
        """
        today = today or date.today()
        history = self.data_processor.get_trailing_history(location_id, today)

        with LogContext(logger, f"Revenue forecast for location {location_id}"):
            return self.forecast(history, days_ahead, today=today, location_id=location_id)

    def forecast(
        self,
        history: Sequence[HistoricalSalesRecord],
        days_ahead: Optional[int] = None,
        today: Optional[date] = None,
        location_id=None
    ) -> ForecastResult:
        """
        Forecast revenue from an explicit sales history.

        Records outside the trailing window ending at ``today`` are ignored.

        Args:
            history: Daily sales records, any order
            days_ahead: Forecast horizon in days, at least 1
            today: Reference date (defaults to the current date)
            location_id: Only used in error messages and logs

        Returns:
            ForecastResult
        """
        cfg = self.config.forecast
        days_ahead = cfg.default_days_ahead if days_ahead is None else days_ahead
        if days_ahead < 1:
            raise ValueError(f"days_ahead must be at least 1 (got {days_ahead})")

        today = today or date.today()
        records = self.window_history(history, today)

        if len(records) < cfg.min_history_records:
            raise InsufficientHistoricalData(len(records), cfg.min_history_records, location_id)

        frame = self._to_frame(records)
        baseline = self.day_of_week_baseline(frame)
        spread = self.day_of_week_spread(frame)
        trend = self.linear_trend(frame['total_sales'].values)

        forecasts = []
        for i in range(1, days_ahead + 1):
            target = today + timedelta(days=i)
            weekday = target.weekday()

            predicted = max(0.0, baseline[weekday] + trend * i)
            margin = spread[weekday] * cfg.confidence_z

            forecasts.append(ForecastPoint(
                date=target,
                predicted_revenue=predicted,
                confidence_lower=max(0.0, predicted - margin),
                confidence_upper=predicted + margin,
                day_of_week=DAY_NAMES[weekday]
            ))

        accuracy = self.backtest(frame.tail(cfg.holdout_size), baseline, trend)
        insights = self.insight_generator.generate(records, baseline, trend, forecasts)

        logger.info(
            f"Forecast {days_ahead} days from {len(records)} records: "
            f"trend {trend:+.2f}/day, MAPE {accuracy.mape:.1f}%"
        )

        return ForecastResult(
            forecasts=forecasts,
            accuracy=accuracy,
            insights=insights,
            trend=trend,
            baseline=baseline
        )

    def window_history(
        self,
        history: Sequence[HistoricalSalesRecord],
        today: date
    ) -> List[HistoricalSalesRecord]:
        """Records from ``today - history_window_days`` through ``today``, oldest first"""
        start = today - timedelta(days=self.config.forecast.history_window_days)
        return sorted(
            (r for r in history if start <= r.date <= today),
            key=lambda r: r.date
        )

    def _to_frame(self, records: Sequence[HistoricalSalesRecord]) -> pd.DataFrame:
        return pd.DataFrame({
            'date': [r.date for r in records],
            'total_sales': [float(r.total_sales) for r in records],
            'day_of_week': [r.date.weekday() for r in records]
        })

    def day_of_week_baseline(self, frame: pd.DataFrame) -> Dict[int, float]:
        """Mean revenue per weekday; 0 for weekdays without samples"""
        means = frame.groupby('day_of_week')['total_sales'].mean()
        means = means.reindex(range(DAYS_PER_WEEK), fill_value=0.0)
        return {int(day): float(value) for day, value in means.items()}

    def day_of_week_spread(self, frame: pd.DataFrame) -> Dict[int, float]:
        """Population standard deviation per weekday; 0 with fewer than 2 samples"""
        grouped = frame.groupby('day_of_week')['total_sales']
        std = grouped.std(ddof=0).where(grouped.count() >= 2, 0.0)
        std = std.reindex(range(DAYS_PER_WEEK), fill_value=0.0).fillna(0.0)
        return {int(day): float(value) for day, value in std.items()}

    def linear_trend(self, values: np.ndarray) -> float:
        """OLS slope of revenue against record index over the trend window"""
        recent = np.asarray(values, dtype=float)[-self.config.forecast.trend_window:]
        if len(recent) < 2:
            return 0.0
        return float(stats.linregress(np.arange(len(recent)), recent).slope)

    def backtest(
        self,
        holdout: pd.DataFrame,
        baseline: Dict[int, float],
        trend: float
    ) -> AccuracyReport:
        """
        Score the model on the most recent records.

        Each holdout record is predicted as ``baseline[weekday] + trend * k``
        where ``k`` is its position within the holdout. Days with zero
        revenue are left out of MAPE but still count towards RMSE.
        """
        if len(holdout) == 0:
            return AccuracyReport(mape=0.0, rmse=0.0)

        actual = holdout['total_sales'].values.astype(float)
        predicted = np.array([
            baseline[int(day)] + trend * k
            for k, day in enumerate(holdout['day_of_week'].values)
        ])

        errors = actual - predicted
        rmse = float(np.sqrt(np.mean(errors ** 2)))

        nonzero = actual != 0
        if nonzero.any():
            mape = float(np.mean(np.abs(errors[nonzero] / actual[nonzero])) * 100)
        else:
            mape = 0.0

        return AccuracyReport(mape=mape, rmse=rmse)
