"""
Error types raised by the aggregation engine and helpers for surfacing
repository failures to callers.
"""

from typing import Any, Dict, Optional

from ..utils.secure_logging import get_structured_logger

logger = get_structured_logger().get_logger(__name__)


class AnalyticsError(Exception):
    """Base exception for analytics engine errors"""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "type": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class InvalidRangeError(AnalyticsError):
    """Raised when a date range cannot be resolved"""
    pass


class InvalidReportTypeError(AnalyticsError):
    """Raised for a report type outside the fixed set"""
    pass


class AggregationError(AnalyticsError):
    """Raised when a record fetch fails while building metrics.

    The caller is expected to offer a manual retry; the engine never retries.
    """

    def __init__(self, message: str, operation: str, **kwargs):
        self.operation = operation
        super().__init__(message, **kwargs)


def wrap_repository_error(exception: Exception, operation: str, **context: Any) -> AggregationError:
    """Log a repository failure and convert it into an AggregationError."""
    logger.error(
        "Repository fetch failed",
        operation=operation,
        error_type=type(exception).__name__,
        **context,
    )
    return AggregationError(
        f"Failed to load records for {operation}: {exception}",
        operation=operation,
        details={"error_type": type(exception).__name__, **context},
    )
