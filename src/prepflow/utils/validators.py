"""
Input Validation Utilities
===========================
Schema checks for sales-history frames and sanity checks for recipes.

Design Principles:
- Never silently fail - always log issues
- Return structured validation results
- Support partial validation (warn but continue)
"""

import pandas as pd
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field

from .logger import get_logger
from .constants import SALES_HISTORY_SCHEMA

logger = get_logger(__name__)


@dataclass
class ValidationResult:
    """
    Structured result of a validation operation.

    Attributes
    ----------
    is_valid : bool
        Overall validation status
    errors : List[str]
        Critical issues that prevent processing
    warnings : List[str]
        Non-critical issues to be aware of
    info : Dict[str, Any]
        Additional validation metadata
    """
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    info: Dict[str, Any] = field(default_factory=dict)

    def add_error(self, message: str) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(message)

    def merge(self, other: 'ValidationResult') -> None:
        """Fold another result's findings into this one."""
        for error in other.errors:
            self.add_error(error)
        self.warnings.extend(other.warnings)
        self.info.update(other.info)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "is_valid": self.is_valid,
            "errors": self.errors,
            "warnings": self.warnings,
            "info": self.info
        }


def validate_columns(
    df: pd.DataFrame,
    schema: Dict[str, Any],
    name: Optional[str] = None
) -> ValidationResult:
    """
    Check that a DataFrame carries the schema's required columns.

    Parameters
    ----------
    df : pd.DataFrame
        The DataFrame to validate
    schema : dict
        Schema definition with ``required_columns`` / ``optional_columns``
    name : str, optional
        Label used in messages; defaults to the schema name

    Returns
    -------
    ValidationResult
        Errors for missing required columns, info on optional ones present
    """
    result = ValidationResult()
    label = name or schema.get("name", "frame")
    result.info["row_count"] = len(df)

    missing = [col for col in schema.get("required_columns", []) if col not in df.columns]
    if missing:
        result.add_error(f"Missing required columns in {label}: {missing}")

    present = [col for col in schema.get("optional_columns", []) if col in df.columns]
    result.info["optional_columns_present"] = present

    return result


def validate_sales_frame(df: pd.DataFrame, name: str = "sales_history") -> ValidationResult:
    """
    Validate a daily sales-history frame.

    Missing ``date``/``total_sales`` columns are errors; unparseable dates,
    negative revenue and repeated dates are warnings.
    """
    result = validate_columns(df, SALES_HISTORY_SCHEMA, name)
    if not result.is_valid:
        logger.error(f"Validation FAILED for {name}: {result.errors}")
        return result

    dates = pd.to_datetime(df["date"], errors="coerce")
    unparseable = int(dates.isna().sum())
    if unparseable:
        result.add_warning(f"{name} has {unparseable} unparseable dates")

    sales = pd.to_numeric(df["total_sales"], errors="coerce")
    negative = int((sales < 0).sum())
    if negative:
        result.add_warning(f"{name} has {negative} days with negative revenue")

    non_numeric = int(sales.isna().sum() - df["total_sales"].isna().sum())
    if non_numeric:
        result.add_warning(f"{name} has {non_numeric} non-numeric revenue values")

    duplicates = int(dates.dropna().duplicated().sum())
    result.info["duplicate_dates"] = duplicates
    if duplicates:
        result.add_warning(f"{name} has {duplicates} repeated dates")

    if len(dates.dropna()) > 0:
        result.info["date_range"] = {
            "min": str(dates.min().date()),
            "max": str(dates.max().date())
        }

    for warning in result.warnings:
        logger.warning(warning)

    return result


def validate_recipe(recipe) -> ValidationResult:
    """
    Check that a recipe can take part in prep planning.

    Missing servings or selling price make the recipe unplannable; an empty
    ingredient list is only worth a warning.
    """
    result = ValidationResult()
    result.info["recipe_id"] = recipe.id

    if not recipe.servings or recipe.servings <= 0:
        result.add_error(f"Recipe '{recipe.name}' has no servings count")
    if not recipe.selling_price or recipe.selling_price <= 0:
        result.add_error(f"Recipe '{recipe.name}' has no selling price")
    if not recipe.lines:
        result.add_warning(f"Recipe '{recipe.name}' has no ingredient lines")

    return result
