"""
PrepFlow - Prep Planning Engine
================================

Translates one forecasted day of revenue into ingredient prep quantities.

Pipeline:
1. Forecast revenue for the target date
2. Split revenue across recipes with the sales mix
3. Estimate servings per recipe from its selling price
4. Scale recipe lines to the servings and convert to storage units
5. Add the safety buffer and round up to one decimal

Conversion problems never stop a plan: the affected line keeps its recipe
unit, is flagged, and the plan carries a warning.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

from .config import Config, DEFAULT_CONFIG
from .data_processor import DataProcessor
from .exceptions import InvalidDateRange, InvalidSafetyBuffer, PrepFlowError
from .forecaster import ForecastEngine
from .models import (
    ForecastPoint,
    IngredientDefinition,
    PrepPlanMetrics,
    PrepPlanResult,
    PrepRecommendation,
    RecipeContribution,
    RecipeDefinition,
)
from .sales_mix import SalesMixStrategy, UniformSalesMix
from .units import ConversionFailure, UnitConverter, convert, normalize_unit
from .utils.constants import PIECE_DERIVABLE_UNITS
from .utils.logger import LogContext, get_logger
from .utils.validators import validate_recipe

logger = get_logger(__name__)


def round_up(value: float, decimals: int = 1) -> float:
    """Ceiling to ``decimals`` places, ignoring float noise below 1e-9"""
    scale = 10 ** decimals
    return math.ceil(round(value * scale, 9)) / scale


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounded up"""
    return int(math.floor(value + 0.5))


def pieces_for(quantity: float, unit: str, piece_weight_oz: Optional[float]) -> Optional[int]:
    """Whole pieces needed to cover a weight given in oz or lb"""
    if not piece_weight_oz or piece_weight_oz <= 0:
        return None
    canonical = normalize_unit(unit)
    if canonical not in PIECE_DERIVABLE_UNITS:
        return None
    ounces = convert(quantity, canonical, 'oz')
    return math.ceil(round(ounces / piece_weight_oz, 9))


def confidence_level(point: ForecastPoint) -> int:
    """
    Confidence in a forecast point as a 0-100 score.

    100 means a zero-width band; the score falls as the band widens
    relative to the prediction.
    """
    if point.predicted_revenue <= 0:
        return 0
    relative_width = point.interval_width / point.predicted_revenue
    return max(0, min(100, round_half_up((1 - relative_width) * 100)))


@dataclass
class _Requirement:
    """Running total for one (ingredient, unit) pair"""
    ingredient_id: int
    name: str
    unit: str
    total: float = 0.0
    recipes: List[RecipeContribution] = field(default_factory=list)
    ingredient: Optional[IngredientDefinition] = None
    conversion_warning: Optional[str] = None


class PrepPlanningEngine:
    """
    Single-day prep planning engine.

    Usage:
        engine = PrepPlanningEngine(data_processor, forecast_engine)
        plan = engine.plan_prep(location_id=1, target_date=date(2026, 3, 2))
        for rec in plan.recommendations:
            print(rec.ingredient_name, rec.total_with_buffer, rec.unit)
    """

    def __init__(
        self,
        data_processor: Optional[DataProcessor] = None,
        forecast_engine: Optional[ForecastEngine] = None,
        sales_mix: Optional[SalesMixStrategy] = None,
        converter: Optional[UnitConverter] = None,
        config: Optional[Config] = None
    ):
        """
        Initialize the PrepPlanningEngine.

        Args:
            data_processor: DataProcessor instance
            forecast_engine: ForecastEngine instance
            sales_mix: Revenue split across recipes (uniform by default)
            converter: Unit converter; built from the data processor's
                overrides on each plan when not supplied
            config: Configuration object
        """
        self.config = config or DEFAULT_CONFIG
        self.data_processor = data_processor or DataProcessor(self.config)
        self.forecast_engine = forecast_engine or ForecastEngine(self.data_processor, self.config)
        self.sales_mix = sales_mix or UniformSalesMix()
        self._converter = converter

    @property
    def converter(self) -> UnitConverter:
        if self._converter is not None:
            return self._converter
        return UnitConverter(self.data_processor.get_overrides())

    # =========================================================================
    # PRECONDITIONS
    # =========================================================================

    def validate_safety_buffer(self, percent: float) -> None:
        low = self.config.prep.min_safety_buffer_percent
        high = self.config.prep.max_safety_buffer_percent
        if not low <= percent <= high:
            raise InvalidSafetyBuffer(percent, low, high)

    def validate_target_date(self, target_date: date, today: date) -> int:
        """
        Check the target lies in the planning window.

        Returns:
            Days between today and the target date
        """
        days_ahead = (target_date - today).days
        if days_ahead < 1:
            raise InvalidDateRange(
                f"Target date must be in the future (got {target_date}, today is {today})",
                target_date=target_date,
                days_ahead=days_ahead
            )
        max_days = self.config.prep.max_days_ahead
        if days_ahead > max_days:
            raise InvalidDateRange(
                f"Cannot generate prep plan more than {max_days} days in advance "
                f"(got {days_ahead} days)",
                target_date=target_date,
                days_ahead=days_ahead
            )
        return days_ahead

    # =========================================================================
    # PLANNING
    # =========================================================================

    def plan_prep(
        self,
        location_id,
        target_date: date,
        safety_buffer_percent: Optional[float] = None,
        today: Optional[date] = None
    ) -> PrepPlanResult:
        """
        Build the prep plan for one day.

        Args:
            location_id: Location identifier
            target_date: Day to prepare for, 1 to 30 days after today
            safety_buffer_percent: Extra quantity in percent (0-50)
            today: Reference date (defaults to the current date)

        Returns:
            PrepPlanResult with recommendations sorted largest first

        Raises:
            InvalidDateRange: If the target date is outside the window
            InvalidSafetyBuffer: If the buffer is outside the allowed bounds
            InsufficientHistoricalData: If the forecast cannot be built
        """
        today = today or date.today()
        if safety_buffer_percent is None:
            safety_buffer_percent = self.config.prep.default_safety_buffer_percent

        self.validate_safety_buffer(safety_buffer_percent)
        days_ahead = self.validate_target_date(target_date, today)

        with LogContext(logger, f"Prep plan for location {location_id} on {target_date}"):
            forecast = self.forecast_engine.forecast_location(location_id, days_ahead, today=today)
            point = forecast.point_for(target_date)
            if point is None:
                raise PrepFlowError(f"Unable to generate forecast for {target_date}")

            return self.build_plan(point, safety_buffer_percent)

    def build_plan(self, point: ForecastPoint, safety_buffer_percent: float) -> PrepPlanResult:
        """Prep plan for a forecast point, without date checks"""
        recipes = self.data_processor.get_recipes()
        shares = self.sales_mix.shares(recipes)
        converter = self.converter

        requirements: Dict[Tuple[int, str], _Requirement] = {}
        warnings: List[str] = []

        for recipe in recipes:
            validation = validate_recipe(recipe)
            if not validation.is_valid:
                message = f"Skipped recipe '{recipe.name}': {'; '.join(validation.errors)}"
                logger.warning(message)
                warnings.append(message)
                continue

            share = shares.get(recipe.id, self.config.prep.default_recipe_share)
            servings = self.estimate_servings(point.predicted_revenue, share, recipe)
            if servings <= 0:
                continue

            for line in recipe.lines:
                self._add_line(requirements, warnings, converter, recipe, line, servings)

        recommendations = [
            self._to_recommendation(req, safety_buffer_percent)
            for req in requirements.values()
        ]
        recommendations.sort(key=lambda r: r.total_with_buffer, reverse=True)

        metrics = PrepPlanMetrics(
            total_ingredients=len(recommendations),
            estimated_waste_reduction=self.waste_reduction(safety_buffer_percent),
            confidence_level=confidence_level(point)
        )

        logger.info(
            f"Prep plan for {point.date}: {len(recommendations)} ingredients from "
            f"${point.predicted_revenue:,.2f} forecast revenue"
        )

        return PrepPlanResult(
            date=point.date,
            forecast_revenue=point.predicted_revenue,
            recommendations=recommendations,
            metrics=metrics,
            warnings=warnings
        )

    def estimate_servings(self, revenue: float, share: float, recipe: RecipeDefinition) -> int:
        """Servings needed for the recipe's slice of revenue, rounded up"""
        return math.ceil(round(revenue * share / recipe.selling_price, 9))

    def _add_line(self, requirements, warnings, converter, recipe, line, servings) -> None:
        ingredient = self.data_processor.get_ingredient(line.ingredient_id)
        quantity = line.quantity_per_batch / recipe.servings * servings
        unit = line.unit
        conversion_warning = None

        if ingredient is not None:
            converted = converter.convert(quantity, line.unit, ingredient.storage_unit, ingredient=ingredient)
            if isinstance(converted, ConversionFailure):
                conversion_warning = (
                    f"Missing conversion: {line.unit} -> {ingredient.storage_unit} "
                    f"for {ingredient.name}"
                )
                if conversion_warning not in warnings:
                    logger.warning(f"{conversion_warning} ({converted.message})")
                    warnings.append(conversion_warning)
            else:
                quantity = converted
                unit = ingredient.storage_unit

        key = (line.ingredient_id, normalize_unit(unit))
        requirement = requirements.get(key)
        if requirement is None:
            requirement = _Requirement(
                ingredient_id=line.ingredient_id,
                name=ingredient.name if ingredient else f"Ingredient {line.ingredient_id}",
                unit=unit,
                ingredient=ingredient,
                conversion_warning=conversion_warning
            )
            requirements[key] = requirement

        requirement.total += quantity
        requirement.recipes.append(RecipeContribution(
            recipe_id=recipe.id,
            recipe_name=recipe.name,
            estimated_servings=servings,
            ingredient_quantity=quantity
        ))

    def _to_recommendation(self, req: _Requirement, safety_buffer_percent: float) -> PrepRecommendation:
        decimals = self.config.prep.rounding_decimals
        buffer = req.total * safety_buffer_percent / 100
        total_with_buffer = round_up(req.total + buffer, decimals)
        piece_weight = req.ingredient.piece_weight_oz if req.ingredient else None

        return PrepRecommendation(
            ingredient_id=req.ingredient_id,
            ingredient_name=req.name,
            recommended_quantity=round_up(req.total, decimals),
            unit=req.unit,
            safety_buffer=round_up(buffer, decimals),
            total_with_buffer=total_with_buffer,
            recipes=req.recipes,
            category=req.ingredient.category if req.ingredient else None,
            piece_weight_oz=piece_weight,
            pieces=pieces_for(total_with_buffer, req.unit, piece_weight),
            conversion_warning=req.conversion_warning
        )

    def waste_reduction(self, safety_buffer_percent: float) -> int:
        """
        Waste avoided compared with over-prepping by the baseline percent.

        Negative when the buffer exceeds the baseline.
        """
        baseline = self.config.prep.waste_baseline_percent
        return round_half_up((baseline - safety_buffer_percent) / baseline * 100)
