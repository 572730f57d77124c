"""
Pydantic schemas for raw parameter samples returned by the data-fetch layer.

The sub-daily ``values`` field arrives either as an array of
``{time, value, remark?, remarks?}`` objects or as an object map
``{"HH:MM": number}``. Both shapes are normalized here, at the boundary,
into one list of SubDailyValue so the aggregator never branches on shape.
"""
from collections.abc import Mapping
from datetime import date as date_type
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


def _as_remark_list(value: Any) -> Any:
    if isinstance(value, str):
        return [value]
    if isinstance(value, tuple):
        return list(value)
    if value is not None and not isinstance(value, list):
        return None
    return value


class SubDailyValue(BaseModel):
    """One intra-day reading of a parameter."""
    time: Any = Field(None, description="Local time of the reading (HH:MM)", example="12:00")
    value: Any = Field(None, description="Raw reading; numbers and numeric strings are accepted", example=4)
    remark: Any = Field(None, description="Free-text annotation; non-text values are ignored", example="Estimation")
    remarks: Optional[List[Any]] = Field(None, description="Additional annotations")

    class Config:
        extra = "ignore"

    @field_validator('remarks', mode='before')
    @classmethod
    def wrap_single_remark(cls, value: Any) -> Any:
        return _as_remark_list(value)


class RawSample(BaseModel):
    """Schema for one raw sample of one parameter at one date.

    Either ``value`` holds a daily total, or ``values`` holds sub-daily readings
    that get averaged into the daily value.
    """
    date: Optional[str] = Field(
        None,
        description="ISO date (yyyy-MM-dd) or quarter (YYYY-Qn) of the sample",
        example="2024-01-15"
    )
    value: Any = Field(None, description="Daily value; numbers and numeric strings are accepted", example=12.5)
    values: Optional[List[SubDailyValue]] = Field(None, description="Sub-daily readings")
    remark: Any = Field(None, description="Free-text annotation; non-text values are ignored", example="Capteur défectueux")
    remarks: Optional[List[Any]] = Field(None, description="Additional annotations; a single string is accepted")

    class Config:
        extra = "ignore"
        json_schema_extra = {
            "example": {
                "date": "2024-01-01",
                "values": {"00:00": 2, "12:00": 4},
                "remark": "Estimation"
            }
        }

    @field_validator('date', mode='before')
    @classmethod
    def coerce_date(cls, value: Any) -> Any:
        """Accept date objects by rendering them as ISO strings."""
        if isinstance(value, date_type):
            return value.isoformat()[:10]
        return value

    @field_validator('remarks', mode='before')
    @classmethod
    def wrap_single_remark(cls, value: Any) -> Any:
        """Accept a bare string as a one-item remark list."""
        return _as_remark_list(value)

    @field_validator('values', mode='before')
    @classmethod
    def normalize_sub_daily_values(cls, value: Any) -> Any:
        """Convert either sub-daily shape into a list of reading objects."""
        if value is None:
            return None

        if isinstance(value, Mapping):
            # {"HH:MM": number} carries no remarks
            return [{'time': time, 'value': reading} for time, reading in value.items()]

        if isinstance(value, (list, tuple)):
            return [
                item for item in value
                if isinstance(item, (Mapping, SubDailyValue))
            ]

        return None
