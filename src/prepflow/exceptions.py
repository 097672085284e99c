"""
PrepFlow - Error Taxonomy
==========================

Structural and input-validation errors are raised and halt the planning
operation that hit them. Unit conversion problems are never raised; see
``prepflow.units.ConversionFailure``.
"""


class PrepFlowError(Exception):
    """Base class for all PrepFlow errors"""


class InsufficientHistoricalData(PrepFlowError, ValueError):
    """Too few sales records in the trailing window to forecast from"""

    def __init__(self, available: int, required: int, location_id=None):
        self.available = available
        self.required = required
        self.location_id = location_id
        where = f" for location {location_id}" if location_id is not None else ""
        super().__init__(
            f"Insufficient historical data for forecasting{where}: "
            f"{available} days available, minimum {required} days required"
        )


class InvalidDateRange(PrepFlowError, ValueError):
    """Prep target date is not in the allowed planning window"""

    def __init__(self, message: str, target_date=None, days_ahead=None):
        self.target_date = target_date
        self.days_ahead = days_ahead
        super().__init__(message)


class InvalidRange(PrepFlowError, ValueError):
    """Multi-day plan length outside the allowed bounds"""

    def __init__(self, days: int, min_days: int, max_days: int):
        self.days = days
        self.min_days = min_days
        self.max_days = max_days
        super().__init__(f"Days must be between {min_days} and {max_days} (got {days})")


class InvalidSafetyBuffer(PrepFlowError, ValueError):
    """Safety buffer percentage outside the allowed bounds"""

    def __init__(self, percent: float, low: float, high: float):
        self.percent = percent
        super().__init__(
            f"Safety buffer must be between {low:g}% and {high:g}% (got {percent:g}%)"
        )
