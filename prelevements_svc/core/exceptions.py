"""
Shared exception classes for the series aggregation service.

Malformed data records never raise: the transforms skip them and emit a
warning. Exceptions are reserved for caller or configuration mistakes.

Usage:
    from core.exceptions import ReferenceConfigError, InvalidThresholdError

    raise InvalidThresholdError(threshold_type="str")
"""
from typing import Any, Dict, Optional


# =============================================================================
# BASE EXCEPTION CLASSES
# =============================================================================

class SeriesServiceError(Exception):
    """
    Base exception for all series service errors.

    All custom exceptions should inherit from this class.
    Provides a consistent error structure with a detail message and context.
    """

    detail: str = "An unexpected error occurred"

    def __init__(self, detail: Optional[str] = None, **kwargs: Any):
        """
        Initialize the exception.

        Args:
            detail: Human-readable error message. Uses class default if not provided.
            **kwargs: Additional context to include in the error payload.
        """
        self.detail = detail or self.__class__.detail
        self.context = kwargs
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for structured reporting."""
        result: Dict[str, Any] = {"detail": self.detail}
        if self.context:
            result["context"] = self.context
        return result


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ReferenceConfigError(SeriesServiceError):
    """Raised when the reference data YAML is missing fields or holds invalid values."""

    detail = "Invalid reference data configuration"

    def __init__(self, reason: Optional[str] = None, **kwargs: Any):
        detail = f"Invalid reference data: {reason}" if reason else self.detail
        super().__init__(detail=detail, **kwargs)


# =============================================================================
# CHARTING EXCEPTIONS
# =============================================================================

class InvalidThresholdError(SeriesServiceError):
    """Raised when a chart threshold is neither a number nor a list of points."""

    detail = "Invalid threshold format"

    def __init__(self, threshold_type: Optional[str] = None, **kwargs: Any):
        detail = (
            f"Invalid threshold format: expected a number or a list of points, got {threshold_type}"
            if threshold_type else self.detail
        )
        super().__init__(detail=detail, threshold_type=threshold_type, **kwargs)
