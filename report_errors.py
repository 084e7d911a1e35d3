"""Custom exceptions for the cancer incidence report."""

from typing import Any, Dict, List, Optional


class IncidenceReportError(Exception):
    """Base exception for report pipeline errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}


class MissingColumnError(IncidenceReportError):
    """Input file lacks one or more expected fields."""

    def __init__(
        self,
        missing: List[str],
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        self.missing = list(missing)
        message = f"Missing expected columns: {', '.join(self.missing)}"
        super().__init__(message, "MISSING_COLUMN", context)


class InvalidRecordError(IncidenceReportError):
    """A column holds values outside its declared type or range."""

    def __init__(
        self,
        column: str,
        reason: str,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        self.column = column
        message = f"Invalid values in column '{column}': {reason}"
        super().__init__(message, "INVALID_RECORD", context)


class HealthBoardNotFoundError(IncidenceReportError):
    """The region filter left no rows."""

    def __init__(
        self,
        health_board: str,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        self.health_board = health_board
        message = f"No incidence records found for health board '{health_board}'"
        super().__init__(message, "HEALTH_BOARD_NOT_FOUND", context)


class InsufficientYearsError(IncidenceReportError):
    """Fewer years are available than a recent-window ranking requires."""

    def __init__(
        self,
        required: int,
        available: int,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        self.required = required
        self.available = available
        message = f"Need {required} years of data, found {available}"
        super().__init__(message, "INSUFFICIENT_YEARS", context)
