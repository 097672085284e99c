"""
System-Wide Constants
======================
Calendar names, input schemas and planning presets shared by the engines.

Design Principles:
- Magic numbers used by more than one module live here
- Schemas define expected columns for DataFrame inputs
- Weekday numbering follows ``date.weekday()`` (0 = Monday)
"""

from typing import Dict, List, Any

# =============================================================================
# CALENDAR
# =============================================================================

DAY_NAMES: List[str] = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]

DAYS_PER_WEEK = 7

# =============================================================================
# INPUT SCHEMAS
# =============================================================================
# Required columns trigger validation errors if missing.
# Optional columns are validated if present but won't fail if absent.

SALES_HISTORY_SCHEMA: Dict[str, Any] = {
    "name": "sales_history",
    "description": "Daily revenue per location",
    "required_columns": ["date", "total_sales"],
    "optional_columns": ["total_orders", "day_of_week", "location_id"],
    "numeric_columns": ["total_sales", "total_orders"],
}

RECIPE_LINES_SCHEMA: Dict[str, Any] = {
    "name": "recipe_lines",
    "description": "Recipe header joined with its ingredient lines",
    "required_columns": [
        "recipe_id", "recipe_name", "servings", "selling_price",
        "ingredient_id", "quantity", "unit",
    ],
    "optional_columns": ["category"],
}

INGREDIENTS_SCHEMA: Dict[str, Any] = {
    "name": "ingredients",
    "description": "Ingredient master data",
    "required_columns": ["id", "name", "storage_unit", "cost_per_storage_unit"],
    "optional_columns": ["piece_weight_oz", "category"],
}

# =============================================================================
# FORECAST CONSTANTS
# =============================================================================

# Two-sided 95% normal quantile used for revenue bands
Z_SCORE_95 = 1.96

# =============================================================================
# PLANNING PRESETS
# =============================================================================

DATE_RANGE_PRESETS: List[Dict[str, Any]] = [
    {"label": "Tomorrow", "days": 1, "description": "Single day prep plan"},
    {"label": "Next 3 Days", "days": 3, "description": "Short-term planning"},
    {"label": "This Week", "days": 7, "description": "Weekly prep planning"},
    {"label": "Next 2 Weeks", "days": 14, "description": "Bi-weekly bulk ordering"},
]

# Units a piece count can be derived from on a prep list
PIECE_DERIVABLE_UNITS = ("oz", "lb")
