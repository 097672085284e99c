"""
PrepFlow - Sales Mix Strategies
================================

A sales mix says which share of a day's revenue each recipe is expected to
bring in. The prep planner multiplies the forecast by that share to estimate
servings.

Strategies:
- UniformSalesMix: every recipe gets 1 / number of recipes
- HistoricalSalesMix: shares proportional to observed recipe revenue
"""

from abc import ABC, abstractmethod
from typing import Dict, Mapping, Sequence

from .models import RecipeDefinition
from .utils.logger import get_logger

logger = get_logger(__name__)


class SalesMixStrategy(ABC):
    """Assigns each recipe its share of daily revenue"""

    @abstractmethod
    def shares(self, recipes: Sequence[RecipeDefinition]) -> Dict[int, float]:
        """
        Revenue share per recipe id.

        Args:
            recipes: Every recipe on the menu, including ones the planner
                will later skip

        Returns:
            Mapping of recipe id to a share in [0, 1]
        """


class UniformSalesMix(SalesMixStrategy):
    """Equal share for every recipe on the menu"""

    def shares(self, recipes: Sequence[RecipeDefinition]) -> Dict[int, float]:
        if not recipes:
            return {}
        equal_share = 1 / len(recipes)
        return {recipe.id: equal_share for recipe in recipes}


class HistoricalSalesMix(SalesMixStrategy):
    """
    Shares proportional to each recipe's observed revenue.

    Recipes with no recorded revenue fall back to ``default_share``, so the
    shares need not sum to exactly 1 once new recipes are on the menu.

    Usage:
        revenue = processor.recipe_revenue(item_sales_df)
        mix = HistoricalSalesMix(revenue)
    """

    def __init__(self, recipe_revenue: Mapping[int, float], default_share: float = 0.1):
        if not 0 <= default_share <= 1:
            raise ValueError(f"default_share must be between 0 and 1 (got {default_share})")
        self.recipe_revenue = {
            recipe_id: float(revenue)
            for recipe_id, revenue in recipe_revenue.items()
            if revenue and revenue > 0
        }
        self.default_share = default_share

    def shares(self, recipes: Sequence[RecipeDefinition]) -> Dict[int, float]:
        total = sum(self.recipe_revenue.values())

        result = {}
        unseen = 0
        for recipe in recipes:
            revenue = self.recipe_revenue.get(recipe.id)
            if revenue is None or total <= 0:
                result[recipe.id] = self.default_share
                unseen += 1
            else:
                result[recipe.id] = revenue / total

        if unseen:
            logger.info(f"{unseen} recipes without sales history use the default {self.default_share:.0%} share")
        return result
