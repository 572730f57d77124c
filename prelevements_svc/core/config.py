"""
Configuration module for the series aggregation service.
Uses Pydantic BaseSettings for validation - inconsistent thresholds fail fast at import.
"""
import logging
from pathlib import Path
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings with validation.
    Defaults reproduce the documented aggregation and calendar behavior.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Remark normalization
    series_remark_max_items: int = Field(default=10, description="Maximum number of unique remarks kept in a comment")
    series_remark_separator: str = Field(default=" • ", description="Separator used to join remarks")

    # Calendar mode thresholds (inclusive month span)
    series_calendar_multi_year_months: int = Field(default=72, description="Span above which the calendar shows years")
    series_calendar_year_months: int = Field(default=6, description="Span above which the calendar shows months")

    # Selectable period bounds
    series_period_min_year: int = Field(default=1900, description="Lower year bound when no start date is known")
    series_period_max_year: int = Field(default=2100, description="Upper year bound when no end date is known")

    # Gap detection
    series_gap_multiplier: float = Field(default=1.5, description="Gap threshold as a multiple of the sampling interval")

    # Chart decimation
    series_decimation_target: int = Field(default=800, description="Points kept per series once a series is decimated")
    series_decimation_max_points: int = Field(default=2000, description="Point count above which a chart is reported as decimated")

    # Reference data
    series_reference_file: str = Field(default="", description="Override path for the reference data YAML")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: str = Field(default="json", description="Log format: json or text")

    @model_validator(mode="after")
    def validate_thresholds(self) -> "Settings":
        """Reject settings that would make the transforms inconsistent."""
        errors = []

        if self.series_remark_max_items < 1:
            errors.append("SERIES_REMARK_MAX_ITEMS must be at least 1")
        if self.series_calendar_year_months >= self.series_calendar_multi_year_months:
            errors.append(
                "SERIES_CALENDAR_YEAR_MONTHS must be lower than SERIES_CALENDAR_MULTI_YEAR_MONTHS"
            )
        if self.series_period_min_year > self.series_period_max_year:
            errors.append("SERIES_PERIOD_MIN_YEAR must not exceed SERIES_PERIOD_MAX_YEAR")
        if self.series_gap_multiplier <= 0:
            errors.append("SERIES_GAP_MULTIPLIER must be positive")
        if self.series_decimation_target <= 2:
            errors.append("SERIES_DECIMATION_TARGET must be greater than 2")
        if self.series_decimation_max_points < self.series_decimation_target:
            errors.append("SERIES_DECIMATION_MAX_POINTS must not be lower than SERIES_DECIMATION_TARGET")

        if errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            logger.critical(error_msg)
            raise ValueError(error_msg)

        return self

    @property
    def reference_file_path(self) -> Optional[Path]:
        """Get the reference data override path, if any."""
        if not self.series_reference_file:
            return None
        return Path(self.series_reference_file)


# Create global settings instance
settings = Settings()

