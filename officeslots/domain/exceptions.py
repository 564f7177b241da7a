"""
Domain-specific exception hierarchy for the officeslots application.
"""

from __future__ import annotations

from typing import List, Optional, Sequence


class OfficeSlotsError(Exception):
    """Base class for all application-level errors."""


class CalculationError(OfficeSlotsError):
    """
    Raised when an availability calculation fails on bad input.

    ``safe_message`` can be shown to callers as-is; ``cause`` keeps the
    original exception for logs and debugging.
    """

    def __init__(self, safe_message: str, *, cause: Optional[BaseException] = None) -> None:
        self.safe_message = safe_message
        self.cause = cause
        detail = f"{safe_message}: {cause}" if cause is not None else safe_message
        super().__init__(detail)


class ScheduleValidationError(OfficeSlotsError):
    """Raised when a work schedule is rejected at save time."""

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors: List[str] = list(errors)
        super().__init__("Invalid work schedule: " + "; ".join(self.errors))


class RepositoryError(OfficeSlotsError):
    """Raised when scheduling data cannot be loaded or stored."""


class UnknownRecordError(RepositoryError, KeyError):
    """Raised when a requested office or record does not exist."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class ConfigError(OfficeSlotsError):
    """Raised when the application configuration is invalid."""
