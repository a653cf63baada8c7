"""
Domain Errors Module

Exceptions raised by the time-calculation engine.
A negative working total is not an error; it is returned as-is and noted.
"""

from typing import Optional


class WorkTimeError(Exception):
    """Base exception for work-time calculation errors."""
    pass


class InvalidTimeFormat(WorkTimeError, ValueError):
    """Raised when a wall-clock value is not a valid 24h "HH:MM" string."""

    def __init__(self, value, message: Optional[str] = None):
        self.value = value
        self.message = message or f"Invalid time '{value}', expected 24h HH:MM"
        super().__init__(self.message)


class InvalidInput(WorkTimeError, ValueError):
    """Raised when calculation input is structurally unusable."""
    pass


class MissingPolicy(InvalidInput):
    """
    Raised when a record's shift policy cannot be resolved.

    Fatal for a single daily calculation; the weekly aggregator catches it
    and skips the day instead.
    """

    def __init__(self, policy_id: Optional[str], message: Optional[str] = None):
        self.policy_id = policy_id
        self.message = message or f"Shift policy '{policy_id}' could not be resolved"
        super().__init__(self.message)
