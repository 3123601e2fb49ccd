# stock_pulse/exceptions.py - Custom exceptions for the stock_pulse package
"""
Custom exception classes for the stock_pulse package.
None of these is fatal: each one is caught at the seam where it occurs and
turned into a status string, a coerced default, or a dropped callback.
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class PulseError(Exception):
    """
    [CLASS SUMMARY]
    Purpose: Base exception class for all stock_pulse errors
    Attributes:
        - message: Error description
        - details: Additional context dictionary
        - timestamp: When the error occurred (UTC)
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)

    def __str__(self) -> str:
        """Format error message with details if available"""
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class TransportAckError(PulseError):
    """
    [CLASS SUMMARY]
    Purpose: Raised when a request acknowledgement is not ok or never arrives
    Usage: Caught by subscriptions and shown to the user as a status string.
           Never retried automatically.
    Attributes:
        - event: The request that failed (e.g. 'request_history')
        - status: Status field of the ack, if any
    """

    def __init__(self, event: str, message: Optional[str] = None,
                 status: Optional[str] = None, **kwargs):
        details = kwargs
        if status:
            details['status'] = status
        super().__init__(message or f"{event} failed", details)
        self.event = event
        self.status = status

    def __str__(self) -> str:
        # Shown verbatim in the status line
        return self.message


class MalformedDataError(PulseError):
    """
    [CLASS SUMMARY]
    Purpose: Raised when a payload field is missing or not numeric
    Usage: Recovered locally by coercing to a default; never reaches callers
    """

    def __init__(self, field: str, value: Any = None, message: Optional[str] = None):
        super().__init__(message or f"Malformed value for {field}",
                         {'field': field, 'value': repr(value)})
        self.field = field
        self.value = value


class LifecycleRaceError(PulseError):
    """
    [CLASS SUMMARY]
    Purpose: Raised when an event or response arrives after its subscription
             has been torn down
    Usage: Dropped by the lifecycle guard and logged at DEBUG, not as an error
    """

    def __init__(self, owner: str, event: str):
        super().__init__(f"{event} arrived after {owner} was released",
                         {'owner': owner, 'event': event})
        self.owner = owner
        self.event = event
