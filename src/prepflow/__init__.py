"""
PrepFlow - Restaurant Forecasting and Prep Planning
====================================================

Predicts near-term revenue for a location and turns it into ingredient
quantities to prepare, for one day or consolidated over a date range.

Modules:
- config: Configuration management
- data_processor: Sales history, recipe graph and sales analytics
- forecaster: Day-of-week baseline plus linear trend forecasting
- insights: Plain-English forecast insights
- sales_mix: Revenue split across recipes
- prep_planner: Single-day prep planning
- multi_day: Multi-day consolidation
- units: Unit conversion with ingredient overrides
- costing: Recipe food cost

Usage:
    from prepflow import DataProcessor, ForecastEngine, PrepPlanningEngine

    processor = DataProcessor()
    processor.load_sales_history(1, sales_df)
    processor.load_recipes(recipes)
    processor.load_ingredients(ingredients)

    engine = PrepPlanningEngine(processor)
    plan = engine.plan_prep(location_id=1, target_date=tomorrow)
"""

__version__ = "1.0.0"

from .config import Config, DEFAULT_CONFIG
from .costing import RecipeCostCalculator
from .data_processor import DataProcessor
from .exceptions import (
    InsufficientHistoricalData,
    InvalidDateRange,
    InvalidRange,
    InvalidSafetyBuffer,
    PrepFlowError,
)
from .forecaster import ForecastEngine
from .insights import InsightGenerator
from .multi_day import MultiDayConsolidator, date_range_presets, merge_daily_plans
from .prep_planner import PrepPlanningEngine
from .sales_mix import HistoricalSalesMix, SalesMixStrategy, UniformSalesMix
from .units import (
    ConversionFailure,
    Dimension,
    UnitConverter,
    are_units_compatible,
    convert,
    dimension_of,
)

__all__ = [
    'Config',
    'DEFAULT_CONFIG',
    'DataProcessor',
    'ForecastEngine',
    'InsightGenerator',
    'PrepPlanningEngine',
    'MultiDayConsolidator',
    'merge_daily_plans',
    'date_range_presets',
    'SalesMixStrategy',
    'UniformSalesMix',
    'HistoricalSalesMix',
    'RecipeCostCalculator',
    'UnitConverter',
    'ConversionFailure',
    'Dimension',
    'convert',
    'are_units_compatible',
    'dimension_of',
    'PrepFlowError',
    'InsufficientHistoricalData',
    'InvalidDateRange',
    'InvalidRange',
    'InvalidSafetyBuffer'
]
