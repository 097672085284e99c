"""Shared test data builders."""

from datetime import date, timedelta

from prepflow.models import HistoricalSalesRecord

# Saturday
TODAY = date(2024, 6, 15)
LOCATION = 1

# Monday first
WEEKDAY_REVENUE = [1000.0, 1100.0, 1200.0, 1300.0, 2000.0, 2500.0, 1500.0]


def make_history(values, end=TODAY):
    """One record per value, the last one dated ``end``."""
    start = end - timedelta(days=len(values) - 1)
    return [
        HistoricalSalesRecord(date=start + timedelta(days=i), total_sales=float(v), total_orders=40)
        for i, v in enumerate(values)
    ]
