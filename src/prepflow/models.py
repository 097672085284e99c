"""
PrepFlow - Data Model
======================

Inputs (sales history, recipes, ingredients, conversion overrides) are
read-only records owned by the surrounding application. Outputs (forecast
points, prep recommendations, multi-day plans) are created fresh on every
run and have no identity beyond it.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from .utils.constants import DAY_NAMES


# =============================================================================
# INPUTS
# =============================================================================

@dataclass(frozen=True)
class HistoricalSalesRecord:
    """One day of revenue at one location (weekday 0 = Monday)"""
    date: date
    total_sales: float
    day_of_week: Optional[int] = None
    total_orders: Optional[int] = None

    def __post_init__(self):
        if self.day_of_week is None:
            object.__setattr__(self, 'day_of_week', self.date.weekday())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'total_sales': self.total_sales,
            'day_of_week': self.day_of_week,
            'total_orders': self.total_orders
        }


@dataclass(frozen=True)
class RecipeLine:
    """Quantity of one ingredient used by a full batch of a recipe"""
    ingredient_id: int
    quantity_per_batch: float
    unit: str


@dataclass(frozen=True)
class RecipeDefinition:
    """A sellable recipe; ``servings`` is the yield of one batch"""
    id: int
    name: str
    servings: Optional[int]
    selling_price: Optional[float]
    lines: List[RecipeLine] = field(default_factory=list)
    category: Optional[str] = None


@dataclass(frozen=True)
class IngredientDefinition:
    """Ingredient master data"""
    id: int
    name: str
    storage_unit: str
    cost_per_storage_unit: float = 0.0
    piece_weight_oz: Optional[float] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class ConversionOverride:
    """
    Ingredient-specific conversion: 1 ``from_unit`` = ``factor`` ``to_unit``.

    Directional; the reverse direction is served by ``1 / factor``.
    """
    ingredient_id: int
    from_unit: str
    to_unit: str
    factor: float
    notes: str = ""


# =============================================================================
# FORECAST OUTPUTS
# =============================================================================

@dataclass
class ForecastPoint:
    """Predicted revenue for one future day with its confidence band"""
    date: date
    predicted_revenue: float
    confidence_lower: float
    confidence_upper: float
    day_of_week: str

    @property
    def interval_width(self) -> float:
        return self.confidence_upper - self.confidence_lower

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'predicted_revenue': self.predicted_revenue,
            'confidence_lower': self.confidence_lower,
            'confidence_upper': self.confidence_upper,
            'day_of_week': self.day_of_week
        }


@dataclass
class AccuracyReport:
    """Backtest error on the holdout slice"""
    mape: float
    rmse: float

    def to_dict(self) -> Dict[str, Any]:
        return {'mape': self.mape, 'rmse': self.rmse}


@dataclass
class ForecastResult:
    """Everything one forecast run produces"""
    forecasts: List[ForecastPoint]
    accuracy: AccuracyReport
    insights: List[str] = field(default_factory=list)
    trend: float = 0.0
    baseline: Dict[int, float] = field(default_factory=dict)

    def point_for(self, target: date) -> Optional[ForecastPoint]:
        """Forecast point for a specific date, if within the horizon"""
        for point in self.forecasts:
            if point.date == target:
                return point
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'forecasts': [p.to_dict() for p in self.forecasts],
            'accuracy': self.accuracy.to_dict(),
            'insights': list(self.insights),
            'trend': self.trend,
            'baseline': {DAY_NAMES[day]: value for day, value in self.baseline.items()}
        }


# =============================================================================
# PREP PLAN OUTPUTS
# =============================================================================

@dataclass
class RecipeContribution:
    """How much of an ingredient one recipe needs on one day"""
    recipe_id: int
    recipe_name: str
    estimated_servings: int
    ingredient_quantity: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'recipe_id': self.recipe_id,
            'recipe_name': self.recipe_name,
            'estimated_servings': self.estimated_servings,
            'ingredient_quantity': self.ingredient_quantity
        }


@dataclass
class PrepRecommendation:
    """Quantity of one ingredient to prepare for one day"""
    ingredient_id: int
    ingredient_name: str
    recommended_quantity: float
    unit: str
    safety_buffer: float
    total_with_buffer: float
    recipes: List[RecipeContribution] = field(default_factory=list)
    category: Optional[str] = None
    piece_weight_oz: Optional[float] = None
    pieces: Optional[int] = None
    conversion_warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ingredient_id': self.ingredient_id,
            'ingredient_name': self.ingredient_name,
            'recommended_quantity': self.recommended_quantity,
            'unit': self.unit,
            'safety_buffer': self.safety_buffer,
            'total_with_buffer': self.total_with_buffer,
            'recipes': [r.to_dict() for r in self.recipes],
            'category': self.category,
            'piece_weight_oz': self.piece_weight_oz,
            'pieces': self.pieces,
            'conversion_warning': self.conversion_warning
        }


@dataclass
class PrepPlanMetrics:
    total_ingredients: int
    estimated_waste_reduction: int
    confidence_level: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_ingredients': self.total_ingredients,
            'estimated_waste_reduction': self.estimated_waste_reduction,
            'confidence_level': self.confidence_level
        }


@dataclass
class PrepPlanResult:
    """Single-day prep plan"""
    date: date
    forecast_revenue: float
    recommendations: List[PrepRecommendation]
    metrics: PrepPlanMetrics
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'forecast_revenue': self.forecast_revenue,
            'recommendations': [r.to_dict() for r in self.recommendations],
            'metrics': self.metrics.to_dict(),
            'warnings': list(self.warnings)
        }


# =============================================================================
# MULTI-DAY OUTPUTS
# =============================================================================

@dataclass
class DayBreakdown:
    date: date
    quantity: float
    recipes: List[RecipeContribution] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'quantity': self.quantity,
            'recipes': [r.to_dict() for r in self.recipes]
        }


@dataclass
class MultiDayIngredient:
    """One shopping-list line consolidated across a date range"""
    ingredient_id: int
    ingredient_name: str
    unit: str
    total_quantity_all_days: float
    total_with_buffer: float
    day_breakdowns: List[DayBreakdown] = field(default_factory=list)
    category: Optional[str] = None
    piece_weight_oz: Optional[float] = None
    pieces: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ingredient_id': self.ingredient_id,
            'ingredient_name': self.ingredient_name,
            'unit': self.unit,
            'category': self.category,
            'piece_weight_oz': self.piece_weight_oz,
            'pieces': self.pieces,
            'total_quantity_all_days': self.total_quantity_all_days,
            'total_with_buffer': self.total_with_buffer,
            'day_breakdowns': [d.to_dict() for d in self.day_breakdowns]
        }


@dataclass
class MultiDayMetrics:
    total_ingredients: int
    total_forecast_revenue: float
    average_daily_revenue: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_ingredients': self.total_ingredients,
            'total_forecast_revenue': self.total_forecast_revenue,
            'average_daily_revenue': self.average_daily_revenue
        }


@dataclass
class MultiDayPrepPlan:
    start_date: date
    end_date: date
    total_days: int
    ingredients: List[MultiDayIngredient]
    metrics: MultiDayMetrics
    daily_plans: List[PrepPlanResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'total_days': self.total_days,
            'ingredients': [i.to_dict() for i in self.ingredients],
            'metrics': self.metrics.to_dict(),
            'daily_plans': [p.to_dict() for p in self.daily_plans]
        }
