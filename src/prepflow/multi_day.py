"""
PrepFlow - Multi-Day Consolidator
==================================

Consolidates per-day prep plans over a date range into one shopping list
with day-by-day traceability, for bulk ordering.

Each day is planned independently by the Prep Planning Engine; the daily
plans are then merged by ``merge_daily_plans``, which recomputes the safety
buffer once on the multi-day total.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import Config, DEFAULT_CONFIG
from .exceptions import InvalidRange
from .models import (
    DayBreakdown,
    MultiDayIngredient,
    MultiDayMetrics,
    MultiDayPrepPlan,
    PrepPlanResult,
)
from .prep_planner import PrepPlanningEngine, pieces_for, round_up
from .units import normalize_unit
from .utils.constants import DATE_RANGE_PRESETS
from .utils.logger import LogContext, get_logger

logger = get_logger(__name__)


def date_range_presets() -> List[Dict[str, Any]]:
    """Standard planning horizons offered to users"""
    return [dict(preset) for preset in DATE_RANGE_PRESETS]


@dataclass
class _Consolidated:
    ingredient_id: int
    name: str
    unit: str
    category: Optional[str] = None
    piece_weight_oz: Optional[float] = None
    total: float = 0.0
    breakdowns: List[DayBreakdown] = field(default_factory=list)


def merge_daily_plans(
    plans: Sequence[PrepPlanResult],
    safety_buffer_percent: float,
    decimals: int = 1
) -> Tuple[List[MultiDayIngredient], MultiDayMetrics]:
    """
    Merge daily prep plans into consolidated ingredient lines.

    Pure: reads the plans, returns new objects.

    Args:
        plans: Daily plans in date order
        safety_buffer_percent: Buffer applied to each multi-day total
        decimals: Rounding precision for quantities

    Returns:
        Ingredients sorted largest first, and revenue metrics
    """
    merged: Dict[Tuple[int, str], _Consolidated] = {}

    for plan in plans:
        for rec in plan.recommendations:
            key = (rec.ingredient_id, normalize_unit(rec.unit))
            entry = merged.get(key)
            if entry is None:
                entry = _Consolidated(
                    ingredient_id=rec.ingredient_id,
                    name=rec.ingredient_name,
                    unit=rec.unit,
                    category=rec.category,
                    piece_weight_oz=rec.piece_weight_oz
                )
                merged[key] = entry

            entry.total += rec.recommended_quantity
            entry.breakdowns.append(DayBreakdown(
                date=plan.date,
                quantity=rec.recommended_quantity,
                recipes=list(rec.recipes)
            ))

    ingredients = []
    for entry in merged.values():
        total_with_buffer = round_up(entry.total * (1 + safety_buffer_percent / 100), decimals)
        ingredients.append(MultiDayIngredient(
            ingredient_id=entry.ingredient_id,
            ingredient_name=entry.name,
            unit=entry.unit,
            total_quantity_all_days=round(entry.total, decimals),
            total_with_buffer=total_with_buffer,
            day_breakdowns=entry.breakdowns,
            category=entry.category,
            piece_weight_oz=entry.piece_weight_oz,
            pieces=pieces_for(total_with_buffer, entry.unit, entry.piece_weight_oz)
        ))

    ingredients.sort(key=lambda i: i.total_with_buffer, reverse=True)

    total_revenue = sum(plan.forecast_revenue for plan in plans)
    metrics = MultiDayMetrics(
        total_ingredients=len(ingredients),
        total_forecast_revenue=round(total_revenue, 2),
        average_daily_revenue=round(total_revenue / len(plans), 2) if plans else 0.0
    )

    return ingredients, metrics


class MultiDayConsolidator:
    """
    Multi-day prep planning over a date range.

    Usage:
        consolidator = MultiDayConsolidator(prep_engine)
        plan = consolidator.consolidate(location_id=1, start_date=date(2026, 3, 2), days=7)
    """

    def __init__(
        self,
        prep_engine: Optional[PrepPlanningEngine] = None,
        config: Optional[Config] = None
    ):
        """
        Initialize the MultiDayConsolidator.

        Args:
            prep_engine: PrepPlanningEngine used for each day
            config: Configuration object
        """
        self.config = config or DEFAULT_CONFIG
        self.prep_engine = prep_engine or PrepPlanningEngine(config=self.config)

    def consolidate(
        self,
        location_id,
        start_date: date,
        days: int,
        safety_buffer_percent: Optional[float] = None,
        today: Optional[date] = None
    ) -> MultiDayPrepPlan:
        """
        Build a consolidated prep plan for ``days`` days from ``start_date``.

        Args:
            location_id: Location identifier
            start_date: First day of the range
            days: Number of days (1-30)
            safety_buffer_percent: Extra quantity in percent (0-50)
            today: Reference date (defaults to the current date)

        Returns:
            MultiDayPrepPlan with the daily plans it was built from

        Raises:
            InvalidRange: If ``days`` is outside the allowed bounds
            InvalidDateRange: If any day is outside the planning window
        """
        cfg = self.config.multi_day
        if not cfg.min_days <= days <= cfg.max_days:
            raise InvalidRange(days, cfg.min_days, cfg.max_days)

        today = today or date.today()
        if safety_buffer_percent is None:
            safety_buffer_percent = self.config.prep.default_safety_buffer_percent
        self.prep_engine.validate_safety_buffer(safety_buffer_percent)

        dates = [start_date + timedelta(days=i) for i in range(days)]

        with LogContext(logger, f"Multi-day prep plan for location {location_id}, {days} days from {start_date}"):
            daily_plans = self._plan_days(location_id, dates, safety_buffer_percent, today)
            ingredients, metrics = merge_daily_plans(
                daily_plans,
                safety_buffer_percent,
                self.config.prep.rounding_decimals
            )

        logger.info(
            f"Consolidated {len(ingredients)} ingredients over {days} days, "
            f"${metrics.total_forecast_revenue:,.2f} forecast revenue"
        )

        return MultiDayPrepPlan(
            start_date=start_date,
            end_date=dates[-1],
            total_days=days,
            ingredients=ingredients,
            metrics=metrics,
            daily_plans=daily_plans
        )

    def _plan_days(
        self,
        location_id,
        dates: List[date],
        safety_buffer_percent: float,
        today: date
    ) -> List[PrepPlanResult]:
        """Daily plans in date order; errors from any day propagate"""
        def plan_day(target: date) -> PrepPlanResult:
            return self.prep_engine.plan_prep(location_id, target, safety_buffer_percent, today=today)

        workers = min(self.config.multi_day.max_workers, len(dates))
        if workers <= 1:
            return [plan_day(target) for target in dates]

        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(plan_day, dates))
