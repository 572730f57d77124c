"""
Pydantic schemas for chart series handed to the series aligner.
"""
from collections.abc import Mapping
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, field_validator


class SeriesPoint(BaseModel):
    """A single (x, y) point; x is a date-like value, y a number or null."""
    x: Any = Field(None, description="Datetime, date, ISO/quarter string or epoch milliseconds")
    y: Any = Field(None, description="Numeric value; anything non-finite becomes null")
    meta: Any = Field(None, description="Optional annotation, e.g. {'comment': ...}; annotated points survive decimation")

    class Config:
        extra = "ignore"


class SeriesInput(BaseModel):
    """Schema for one parameter series to plot.

    ``axis`` selects the Y axis: "right" maps to y-right, anything else to y-left.
    """
    id: Union[str, int] = Field(..., description="Series identifier", example="volume")
    label: Optional[str] = Field(None, description="Legend label (defaults to id)", example="Volume prélevé")
    axis: Optional[str] = Field(None, description="'left' or 'right'", example="left")
    color: Optional[str] = Field(None, description="Opaque color token", example="#000091")
    data: List[SeriesPoint] = Field(default_factory=list, description="Series points")
    value_type: Optional[str] = Field(
        None,
        alias="valueType",
        description="Value kind, e.g. 'minimum' or 'maximum' for band envelopes",
        example="maximum"
    )

    class Config:
        extra = "ignore"
        populate_by_name = True

    @field_validator('data', mode='before')
    @classmethod
    def drop_invalid_points(cls, value: Any) -> Any:
        """Keep only point-like items; a missing data list becomes empty."""
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return [item for item in value if isinstance(item, (Mapping, SeriesPoint))]
        return value
