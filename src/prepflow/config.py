"""
PrepFlow - Configuration Module
================================

Centralized configuration for the forecasting and prep-planning engines.
Supports environment-based overrides through ``PREPFLOW_*`` variables.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from .utils.constants import Z_SCORE_95


@dataclass
class ForecastConfig:
    """Configuration for revenue forecasting"""
    # Trailing window of history considered, in days
    history_window_days: int = 90
    min_history_records: int = 14

    # Trend regression uses the most recent N records
    trend_window: int = 30

    # Backtest holdout (most recent N records)
    holdout_size: int = 7

    confidence_z: float = Z_SCORE_95
    default_days_ahead: int = 14

    # Insight thresholds
    trend_threshold: float = 10.0  # dollars per day
    deviation_threshold_percent: float = 5.0


@dataclass
class PrepConfig:
    """Configuration for single-day prep planning"""
    default_safety_buffer_percent: float = 10.0
    min_safety_buffer_percent: float = 0.0
    max_safety_buffer_percent: float = 50.0

    # Planning horizon
    max_days_ahead: int = 30

    # Waste heuristic assumes kitchens over-prep by this much without a plan
    waste_baseline_percent: float = 30.0

    rounding_decimals: int = 1

    # Share given to recipes the historical mix has never seen
    default_recipe_share: float = 0.1


@dataclass
class MultiDayConfig:
    """Configuration for multi-day consolidation"""
    min_days: int = 1
    max_days: int = 30

    # 1 = sequential; >1 plans days on a thread pool
    max_workers: int = 1


@dataclass
class Config:
    """
    Master configuration for PrepFlow

    Usage:
        config = Config()
        config.prep.max_days_ahead = 14

        config = Config.from_env()
    """

    forecast: ForecastConfig = field(default_factory=ForecastConfig)
    prep: PrepConfig = field(default_factory=PrepConfig)
    multi_day: MultiDayConfig = field(default_factory=MultiDayConfig)

    def __post_init__(self):
        """Validate cross-section settings"""
        if self.prep.min_safety_buffer_percent > self.prep.max_safety_buffer_percent:
            raise ValueError("min_safety_buffer_percent exceeds max_safety_buffer_percent")
        if self.multi_day.max_workers < 1:
            raise ValueError("max_workers must be at least 1")

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> 'Config':
        """
        Create config from ``PREPFLOW_*`` environment variables.

        Recognised variables:
            PREPFLOW_HISTORY_WINDOW_DAYS, PREPFLOW_SAFETY_BUFFER_PERCENT,
            PREPFLOW_MAX_WORKERS

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            Configured Config instance
        """
        env = os.environ if environ is None else environ

        forecast = ForecastConfig()
        prep = PrepConfig()
        multi_day = MultiDayConfig()

        if 'PREPFLOW_HISTORY_WINDOW_DAYS' in env:
            forecast.history_window_days = int(env['PREPFLOW_HISTORY_WINDOW_DAYS'])
        if 'PREPFLOW_SAFETY_BUFFER_PERCENT' in env:
            prep.default_safety_buffer_percent = float(env['PREPFLOW_SAFETY_BUFFER_PERCENT'])
        if 'PREPFLOW_MAX_WORKERS' in env:
            multi_day.max_workers = int(env['PREPFLOW_MAX_WORKERS'])

        return cls(
            forecast=forecast,
            prep=prep,
            multi_day=multi_day
        )


# Default configuration instance
DEFAULT_CONFIG = Config()
