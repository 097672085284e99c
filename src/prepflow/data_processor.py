"""
PrepFlow - Data Processor Module
=================================

In-memory data source for the planning engines.

Holds, per location, the daily sales history and, shared across locations,
the recipe graph, ingredient master data and conversion overrides. Inputs
may be dataclasses or pandas DataFrames.

Features:
- Sales-history cleaning (date parsing, duplicate days, weekday derivation)
- Trailing-window history extraction for forecasting
- Recipe/ingredient loading from long-format frames
- Sales analytics (summary, daily series, day-of-week profile, date range)
"""

import math
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np
import pandas as pd

from .config import Config, DEFAULT_CONFIG
from .exceptions import PrepFlowError
from .models import (
    ConversionOverride,
    HistoricalSalesRecord,
    IngredientDefinition,
    RecipeDefinition,
    RecipeLine,
)
from .utils.constants import DAY_NAMES, INGREDIENTS_SCHEMA, RECIPE_LINES_SCHEMA
from .utils.logger import get_logger, log_sales_frame_info
from .utils.validators import ValidationResult, validate_columns, validate_sales_frame

logger = get_logger(__name__)

SALES_COLUMNS = ['date', 'total_sales', 'total_orders', 'day_of_week']

DateLike = Union[date, str, pd.Timestamp]


def _to_date(value: Optional[DateLike]) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()


def _optional(value) -> Optional[Any]:
    """NaN/NA to None, everything else unchanged"""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        return value
    return value


class DataProcessor:
    """
    Data source for forecasting and prep planning.

    Usage:
        processor = DataProcessor()
        processor.load_sales_history(location_id=1, records=sales_df)
        processor.load_recipes(recipes)
        processor.load_ingredients(ingredients)
        history = processor.get_sales_history(1, start=date(2026, 1, 1))
    """

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize the DataProcessor.

        Args:
            config: Configuration object. Uses default if not provided.
        """
        self.config = config or DEFAULT_CONFIG
        self._sales: Dict[Any, pd.DataFrame] = {}
        self._recipes: Dict[int, RecipeDefinition] = {}
        self._ingredients: Dict[int, IngredientDefinition] = {}
        self._overrides: List[ConversionOverride] = []

    # =========================================================================
    # LOADING
    # =========================================================================

    def load_sales_history(
        self,
        location_id: Any,
        records: Union[pd.DataFrame, Iterable[HistoricalSalesRecord]]
    ) -> ValidationResult:
        """
        Register the daily sales history of one location.

        Replaces any history already held for the location.

        Args:
            location_id: Location identifier
            records: DataFrame with ``date``/``total_sales`` (optional
                ``total_orders``) or HistoricalSalesRecord objects

        Returns:
            Validation result for the supplied frame

        Raises:
            PrepFlowError: If required columns are missing
        """
        if isinstance(records, pd.DataFrame):
            df = records.copy()
        else:
            df = pd.DataFrame(
                [record.to_dict() for record in records],
                columns=SALES_COLUMNS
            )

        validation = validate_sales_frame(df, name=f"sales_history[{location_id}]")
        if not validation.is_valid:
            raise PrepFlowError(
                f"Invalid sales history for location {location_id}: {'; '.join(validation.errors)}"
            )

        df = self._clean_sales(df)
        self._sales[location_id] = df
        log_sales_frame_info(logger, location_id, df)

        return validation

    def _clean_sales(self, df: pd.DataFrame) -> pd.DataFrame:
        """Normalize a validated sales frame"""
        df['date'] = pd.to_datetime(df['date'], errors='coerce').dt.normalize()
        df['total_sales'] = pd.to_numeric(df['total_sales'], errors='coerce')

        before = len(df)
        df = df.dropna(subset=['date', 'total_sales'])
        dropped = before - len(df)
        if dropped:
            logger.warning(f"Dropped {dropped} sales rows with unusable date or revenue")

        # Last entry wins for a repeated day
        df = df.drop_duplicates(subset='date', keep='last').copy()

        if 'total_orders' in df.columns:
            df['total_orders'] = pd.to_numeric(df['total_orders'], errors='coerce')
        else:
            df['total_orders'] = np.nan

        # Weekday is always re-derived from the date
        df['day_of_week'] = df['date'].dt.dayofweek

        return df[SALES_COLUMNS].sort_values('date').reset_index(drop=True)

    def load_recipes(
        self,
        recipes: Union[pd.DataFrame, Iterable[RecipeDefinition]]
    ) -> int:
        """
        Register recipes.

        A DataFrame is read in long format, one row per recipe line
        (see ``RECIPE_LINES_SCHEMA``).

        Returns:
            Number of recipes held after loading
        """
        if isinstance(recipes, pd.DataFrame):
            recipes = self._recipes_from_frame(recipes)

        for recipe in recipes:
            self._recipes[recipe.id] = recipe

        logger.info(f"Loaded {len(self._recipes)} recipes")
        return len(self._recipes)

    def _recipes_from_frame(self, df: pd.DataFrame) -> List[RecipeDefinition]:
        validation = validate_columns(df, RECIPE_LINES_SCHEMA)
        if not validation.is_valid:
            raise PrepFlowError('; '.join(validation.errors))

        recipes = []
        for recipe_id, rows in df.groupby('recipe_id', sort=False):
            head = rows.iloc[0]
            lines = [
                RecipeLine(
                    ingredient_id=int(row['ingredient_id']),
                    quantity_per_batch=float(row['quantity']),
                    unit=str(row['unit'])
                )
                for _, row in rows.iterrows()
                if _optional(row['ingredient_id']) is not None
            ]
            servings = _optional(head['servings'])
            price = _optional(head['selling_price'])
            recipes.append(RecipeDefinition(
                id=int(recipe_id),
                name=str(head['recipe_name']),
                servings=int(servings) if servings is not None else None,
                selling_price=float(price) if price is not None else None,
                lines=lines,
                category=_optional(head.get('category'))
            ))
        return recipes

    def load_ingredients(
        self,
        ingredients: Union[pd.DataFrame, Iterable[IngredientDefinition]]
    ) -> int:
        """
        Register ingredient master data.

        Returns:
            Number of ingredients held after loading
        """
        if isinstance(ingredients, pd.DataFrame):
            validation = validate_columns(ingredients, INGREDIENTS_SCHEMA)
            if not validation.is_valid:
                raise PrepFlowError('; '.join(validation.errors))
            ingredients = [
                IngredientDefinition(
                    id=int(row['id']),
                    name=str(row['name']),
                    storage_unit=str(row['storage_unit']),
                    cost_per_storage_unit=float(_optional(row['cost_per_storage_unit']) or 0.0),
                    piece_weight_oz=_optional(row.get('piece_weight_oz')),
                    category=_optional(row.get('category'))
                )
                for _, row in ingredients.iterrows()
            ]

        for ingredient in ingredients:
            self._ingredients[ingredient.id] = ingredient

        logger.info(f"Loaded {len(self._ingredients)} ingredients")
        return len(self._ingredients)

    def load_overrides(
        self,
        overrides: Union[pd.DataFrame, Iterable[ConversionOverride]]
    ) -> int:
        """Register ingredient-specific unit conversion overrides"""
        if isinstance(overrides, pd.DataFrame):
            overrides = [
                ConversionOverride(
                    ingredient_id=int(row['ingredient_id']),
                    from_unit=str(row['from_unit']),
                    to_unit=str(row['to_unit']),
                    factor=float(row['factor']),
                    notes=str(_optional(row.get('notes')) or '')
                )
                for _, row in overrides.iterrows()
            ]

        self._overrides.extend(overrides)
        logger.info(f"Loaded {len(self._overrides)} conversion overrides")
        return len(self._overrides)

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    def get_sales_frame(
        self,
        location_id: Any,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None
    ) -> pd.DataFrame:
        """
        Copy of a location's sales frame, optionally bounded (inclusive).

        Returns an empty frame for unknown locations.
        """
        df = self._sales.get(location_id)
        if df is None:
            return pd.DataFrame(columns=SALES_COLUMNS)

        mask = pd.Series(True, index=df.index)
        if start is not None:
            mask &= df['date'] >= pd.Timestamp(_to_date(start))
        if end is not None:
            mask &= df['date'] <= pd.Timestamp(_to_date(end))
        return df[mask].copy()

    def get_sales_history(
        self,
        location_id: Any,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None
    ) -> List[HistoricalSalesRecord]:
        """Sales records for a location in date order"""
        df = self.get_sales_frame(location_id, start, end)
        records = []
        for row in df.itertuples(index=False):
            orders = _optional(row.total_orders)
            records.append(HistoricalSalesRecord(
                date=row.date.date(),
                total_sales=float(row.total_sales),
                day_of_week=int(row.day_of_week),
                total_orders=int(orders) if orders is not None else None
            ))
        return records

    def get_trailing_history(
        self,
        location_id: Any,
        today: date,
        window_days: Optional[int] = None
    ) -> List[HistoricalSalesRecord]:
        """
        History from ``today - window_days`` through ``today``, both inclusive.

        Args:
            location_id: Location identifier
            today: Reference date
            window_days: Defaults to ``config.forecast.history_window_days``
        """
        window = window_days or self.config.forecast.history_window_days
        return self.get_sales_history(location_id, start=today - timedelta(days=window), end=today)

    def get_recipes(self) -> List[RecipeDefinition]:
        return list(self._recipes.values())

    def get_recipe(self, recipe_id: int) -> Optional[RecipeDefinition]:
        return self._recipes.get(recipe_id)

    def get_ingredient(self, ingredient_id: int) -> Optional[IngredientDefinition]:
        return self._ingredients.get(ingredient_id)

    def get_ingredients(self) -> List[IngredientDefinition]:
        return list(self._ingredients.values())

    def get_overrides(self, ingredient_id: Optional[int] = None) -> List[ConversionOverride]:
        """All overrides, or only those recorded for one ingredient"""
        if ingredient_id is None:
            return list(self._overrides)
        return [o for o in self._overrides if o.ingredient_id == ingredient_id]

    def locations(self) -> List[Any]:
        return list(self._sales.keys())

    # =========================================================================
    # ANALYTICS
    # =========================================================================

    def sales_summary(
        self,
        location_id: Any,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None
    ) -> Dict[str, Any]:
        """
        Aggregate revenue statistics for a location.

        Returns:
            Dictionary with total_sales, average_daily_sales, min_daily_sales,
            max_daily_sales, total_orders and record_count
        """
        df = self.get_sales_frame(location_id, start, end)

        if len(df) == 0:
            return {
                'location_id': location_id,
                'total_sales': 0.0,
                'average_daily_sales': 0.0,
                'min_daily_sales': 0.0,
                'max_daily_sales': 0.0,
                'total_orders': 0,
                'record_count': 0
            }

        return {
            'location_id': location_id,
            'total_sales': float(df['total_sales'].sum()),
            'average_daily_sales': float(df['total_sales'].mean()),
            'min_daily_sales': float(df['total_sales'].min()),
            'max_daily_sales': float(df['total_sales'].max()),
            'total_orders': int(df['total_orders'].fillna(0).sum()),
            'record_count': int(len(df))
        }

    def daily_sales(
        self,
        location_id: Any,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None
    ) -> pd.DataFrame:
        """
        Daily series with average order value, oldest first.

        Returns:
            DataFrame with date, day_name, total_sales, total_orders,
            average_order_value
        """
        df = self.get_sales_frame(location_id, start, end)
        df['day_name'] = df['day_of_week'].map(lambda d: DAY_NAMES[int(d)])
        df['average_order_value'] = np.where(
            df['total_orders'].fillna(0) > 0,
            df['total_sales'] / df['total_orders'].where(df['total_orders'] > 0),
            0.0
        )
        return df[['date', 'day_name', 'total_sales', 'total_orders', 'average_order_value']]

    def sales_by_day_of_week(
        self,
        location_id: Any,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None
    ) -> pd.DataFrame:
        """
        Revenue profile per weekday, Monday first.

        Weekdays with no records are omitted.

        Returns:
            DataFrame with day_of_week, day_name, avg_sales, total_sales,
            avg_orders, record_count
        """
        df = self.get_sales_frame(location_id, start, end)
        columns = ['day_of_week', 'day_name', 'avg_sales', 'total_sales', 'avg_orders', 'record_count']
        if len(df) == 0:
            return pd.DataFrame(columns=columns)

        profile = df.groupby('day_of_week').agg(
            avg_sales=('total_sales', 'mean'),
            total_sales=('total_sales', 'sum'),
            avg_orders=('total_orders', 'mean'),
            record_count=('total_sales', 'count')
        ).reset_index()
        profile['day_name'] = profile['day_of_week'].map(lambda d: DAY_NAMES[int(d)])

        return profile.sort_values('day_of_week')[columns].reset_index(drop=True)

    def sales_date_range(self, location_id: Any) -> Optional[Dict[str, date]]:
        """First and last day of recorded sales, or None without history"""
        df = self._sales.get(location_id)
        if df is None or len(df) == 0:
            return None
        return {
            'min_date': df['date'].min().date(),
            'max_date': df['date'].max().date()
        }

    def recipe_revenue(self, recipe_sales: pd.DataFrame) -> Dict[int, float]:
        """
        Total revenue per recipe from an item-level sales frame.

        Args:
            recipe_sales: Frame with ``recipe_id`` and either ``revenue`` or
                ``quantity`` (priced at the recipe's selling price)

        Returns:
            Mapping of recipe id to revenue, ready for HistoricalSalesMix
        """
        df = recipe_sales.copy()
        if 'revenue' not in df.columns:
            prices = {r.id: r.selling_price or 0.0 for r in self._recipes.values()}
            df['revenue'] = df['quantity'] * df['recipe_id'].map(prices).fillna(0.0)

        totals = df.groupby('recipe_id')['revenue'].sum()
        return {
            int(recipe_id): float(value)
            for recipe_id, value in totals.items()
            if not math.isnan(value)
        }
