"""
Pydantic schemas for the input data contracts.

This module contains all Pydantic models used at the data-fetch boundary.
"""
from schemas.samples import SubDailyValue, RawSample
from schemas.series import SeriesPoint, SeriesInput

__all__ = [
    # Sample schemas
    "SubDailyValue",
    "RawSample",
    # Chart series schemas
    "SeriesPoint",
    "SeriesInput",
]
