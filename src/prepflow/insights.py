"""
PrepFlow - Insight Generator
=============================

Turns a forecast into short, plain-English statements a kitchen manager can
act on: where revenue is heading, which day is busiest, and how the coming
days compare with the recent past.
"""

from typing import Dict, List, Optional, Sequence

from .config import Config, DEFAULT_CONFIG
from .models import ForecastPoint, HistoricalSalesRecord
from .utils.constants import DAY_NAMES


class InsightGenerator:
    """
    Generates narrative insights for a forecast run.

    Usage:
        generator = InsightGenerator()
        insights = generator.generate(history, baseline, trend, forecasts)
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or DEFAULT_CONFIG

        self.icons = {
            'up': '📈',
            'down': '📉',
            'stable': '➡️',
            'peak': '🔥',
            'comparison': '📊'
        }

    def generate(
        self,
        history: Sequence[HistoricalSalesRecord],
        baseline: Dict[int, float],
        trend: float,
        forecasts: Sequence[ForecastPoint]
    ) -> List[str]:
        """
        Build the insight list for one forecast.

        Args:
            history: Windowed history the forecast was built from
            baseline: Mean revenue per weekday (0 = Monday)
            trend: Revenue change per day
            forecasts: Forecast points

        Returns:
            Trend statement, peak-day statement and, when the forecast
            departs from the historical average, a comparison statement
        """
        insights = [self.trend_insight(trend)]

        peak = self.peak_day_insight(baseline)
        if peak:
            insights.append(peak)

        comparison = self.comparison_insight(history, forecasts)
        if comparison:
            insights.append(comparison)

        return insights

    def trend_insight(self, trend: float) -> str:
        threshold = self.config.forecast.trend_threshold
        if trend > threshold:
            return (f"{self.icons['up']} Strong upward trend detected (+${trend:.2f}/day). "
                    f"Consider increasing inventory.")
        if trend < -threshold:
            return (f"{self.icons['down']} Downward trend detected (${trend:.2f}/day). "
                    f"Review menu and marketing strategies.")
        return f"{self.icons['stable']} Sales are stable with minimal trend. Maintain current operations."

    def peak_day_insight(self, baseline: Dict[int, float]) -> Optional[str]:
        """Busiest weekday; the earliest weekday wins a tie"""
        if not baseline:
            return None
        peak_day = max(sorted(baseline), key=lambda day: baseline[day])
        return (f"{self.icons['peak']} {DAY_NAMES[peak_day]} is your busiest day. "
                f"Ensure adequate staffing and prep.")

    def comparison_insight(
        self,
        history: Sequence[HistoricalSalesRecord],
        forecasts: Sequence[ForecastPoint]
    ) -> Optional[str]:
        if not history or not forecasts:
            return None

        avg_forecast = sum(p.predicted_revenue for p in forecasts) / len(forecasts)
        avg_history = sum(r.total_sales for r in history) / len(history)
        if avg_history <= 0:
            return None

        change = (avg_forecast - avg_history) / avg_history * 100
        threshold = self.config.forecast.deviation_threshold_percent

        if change > threshold:
            return (f"{self.icons['comparison']} Forecast shows {change:.1f}% increase vs. "
                    f"historical average. Prepare for higher demand.")
        if change < -threshold:
            return (f"{self.icons['comparison']} Forecast shows {change:.1f}% decrease vs. "
                    f"historical average. Optimize costs.")
        return None
