# stock_pulse/utils.py - Utility functions for the stock_pulse package
"""
Numeric coercion, acknowledgement parsing and display formatting.
Every parser here recovers from malformed input instead of raising.
"""

import logging
import math
from datetime import datetime
from typing import Any, List, Optional

from .exceptions import MalformedDataError, TransportAckError

logger = logging.getLogger(__name__)


def _parse_number(value: Any, field: str) -> float:
    """Strict float conversion; raises MalformedDataError for None, junk, NaN and inf"""
    if value is None:
        raise MalformedDataError(field, value, f"Missing value for {field}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise MalformedDataError(field, value)
    if not math.isfinite(number):
        raise MalformedDataError(field, value, f"Non-finite value for {field}")
    return number


def to_number(value: Any, default: float = 0.0, field: str = 'value') -> float:
    """
    [FUNCTION SUMMARY]
    Purpose: Coerce a payload field to float, never raising
    Parameters:
        - value: Raw field value (number, numeric string, None, junk)
        - default (float): Returned when the value is missing or malformed
        - field (str): Field name used in the debug log
    Returns: float
    Example: to_number('101.5') -> 101.5, to_number('abc') -> 0.0
    """
    try:
        return _parse_number(value, field)
    except MalformedDataError as e:
        logger.debug(f"Coercing to {default}: {e}")
        return default


def optional_number(value: Any, field: str = 'value') -> Optional[float]:
    """
    [FUNCTION SUMMARY]
    Purpose: Parse an optional numeric field
    Returns: float when present and numeric, otherwise None
    Example: optional_number(None) -> None, optional_number('2.5') -> 2.5
    """
    if value is None:
        return None
    try:
        return _parse_number(value, field)
    except MalformedDataError as e:
        logger.debug(f"Ignoring optional field: {e}")
        return None


def percent_change(price: float, reference: Optional[float]) -> Optional[float]:
    """Percent move of price against reference, None when the reference is not positive"""
    if reference is None or reference <= 0:
        return None
    return (price - reference) / reference * 100


def parse_ack(event: str, response: Any) -> List[Any]:
    """
    [FUNCTION SUMMARY]
    Purpose: Validate a request acknowledgement and return its data list
    Parameters:
        - event (str): Request name, used in the error message
        - response: Ack payload, expected {'status': 'ok', 'data': [...]}
    Returns: list - The ack's data (empty list if missing)
    Raises: TransportAckError when status is not 'ok'
    Example: parse_ack('request_history', {'status': 'ok', 'data': []}) -> []
    """
    if not isinstance(response, dict):
        raise TransportAckError(event, f"{event}: unexpected response")

    status = response.get('status')
    if status != 'ok':
        message = response.get('message') or f"{event} returned status {status!r}"
        raise TransportAckError(event, str(message), status=str(status))

    data = response.get('data')
    if not isinstance(data, list):
        return []
    return data


def format_event_time(event_time: Any, with_seconds: bool = True, tz=None) -> str:
    """
    [FUNCTION SUMMARY]
    Purpose: Format an epoch-milliseconds timestamp for chart labels
    Parameters:
        - event_time: Epoch milliseconds (number or numeric string)
        - with_seconds (bool): HH:MM:SS when True, HH:MM otherwise
        - tz: pytz time zone, None for the machine's local zone
    Returns: str - Formatted time; current time when the value is unusable
    Example: format_event_time(0, tz=pytz.UTC) -> '00:00:00'
    """
    fmt = '%H:%M:%S' if with_seconds else '%H:%M'
    millis = optional_number(event_time, 'event_time')

    moment = None
    if millis is not None:
        try:
            moment = datetime.fromtimestamp(millis / 1000.0, tz=tz)
        except (OverflowError, OSError, ValueError):
            logger.debug(f"Out-of-range event_time {event_time!r}")
    if moment is None:
        moment = datetime.now(tz)

    return moment.strftime(fmt)


def format_price(price: Any) -> str:
    """
    [FUNCTION SUMMARY]
    Purpose: Format a price for display
    Returns: str - 6 decimals below 1, 2 decimals otherwise, '0.00' for empty
    Example: format_price(0.000123) -> '0.000123', format_price(101.5) -> '101.50'
    """
    number = to_number(price, field='price')
    if number == 0:
        return '0.00'
    return f"{number:.6f}" if number < 1 else f"{number:.2f}"


def format_change(change: Any) -> str:
    """Signed percent with two decimals, e.g. '+1.25%'"""
    number = to_number(change, field='change')
    return f"{number:+.2f}%"
