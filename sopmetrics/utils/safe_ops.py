"""
Utility functions for handling None values and loosely-typed input.

This module provides functions to safely handle operations on potentially
None values and on raw store values (timestamps in several encodings)
before they are turned into typed entities.
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional


def safe_lower(value: Optional[str]) -> str:
    """
    Safely convert a string to lowercase, handling None values.

    Args:
        value: A string or None

    Returns:
        The lowercase string if value is a string, otherwise an empty string
    """
    if value is None:
        return ""
    return str(value).lower()


def safe_str(value: Any) -> str:
    """
    Safely convert any value to a string, handling None values.

    Args:
        value: Any value that might be None

    Returns:
        A string representation or empty string if None
    """
    if value is None:
        return ""
    return str(value)


def safe_parse_datetime(date_input: Any) -> datetime:
    """
    Normalize a timestamp from the formats found in store rows.

    Naive values are taken as UTC. The result is always timezone-aware
    and expressed in UTC.

    Args:
        date_input: The timestamp to normalize, can be one of:
            - datetime (naive or aware)
            - integer or float (epoch time in milliseconds)
            - dict with $date key containing an ISO format string
            - string in ISO format, with "Z" or an explicit offset

    Returns:
        datetime: Aware UTC datetime

    Raises:
        ValueError: If the date_input is not in a recognized format
    """
    if isinstance(date_input, datetime):
        dt = date_input
    elif isinstance(date_input, bool):
        raise ValueError(f"Unrecognized date format: {date_input!r}")
    elif isinstance(date_input, (int, float)):
        try:
            dt = datetime.fromtimestamp(date_input / 1000.0, tz=timezone.utc)
        except (ValueError, OverflowError, OSError) as e:
            raise ValueError(f"Invalid epoch timestamp: {e}")
    elif isinstance(date_input, dict) and "$date" in date_input:
        return safe_parse_datetime(date_input["$date"])
    elif isinstance(date_input, str) and date_input.strip():
        text = date_input.strip()
        if text.isdigit():
            return safe_parse_datetime(int(text))
        try:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            # JSON string that wraps a date object
            try:
                parsed_json = json.loads(text)
            except (json.JSONDecodeError, TypeError):
                raise ValueError(f"Unrecognized date format: {date_input!r}")
            if isinstance(parsed_json, dict) and "$date" in parsed_json:
                return safe_parse_datetime(parsed_json)
            raise ValueError(f"Unrecognized date format: {date_input!r}")
    else:
        raise ValueError(f"Unrecognized date format: {date_input!r}")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
