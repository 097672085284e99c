"""
Utils Package
=============
Utility functions shared by the PrepFlow engines.

Modules:
- logger: Centralized logging configuration
- validators: Input validation utilities
- constants: Calendar names, schemas and planning presets
"""

from .logger import get_logger, LogContext
from .validators import ValidationResult, validate_sales_frame, validate_recipe
from .constants import (
    DAY_NAMES,
    SALES_HISTORY_SCHEMA,
    DATE_RANGE_PRESETS,
    Z_SCORE_95
)

__all__ = [
    'get_logger',
    'LogContext',
    'ValidationResult',
    'validate_sales_frame',
    'validate_recipe',
    'DAY_NAMES',
    'SALES_HISTORY_SCHEMA',
    'DATE_RANGE_PRESETS',
    'Z_SCORE_95'
]
