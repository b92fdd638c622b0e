#!/usr/bin/env python3
"""
Timestamp helpers shared by the data models.

All run-scoped records carry ISO-8601 UTC timestamps.
"""

from datetime import datetime
from typing import Any, Optional

import pytz
from dateutil import parser as date_parser


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(pytz.utc)


def utc_now_iso() -> str:
    """Current time as an ISO-8601 UTC string."""
    return utc_now().isoformat()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 value into an aware datetime, or None if unparseable."""
    if isinstance(value, datetime):
        dt = value
    elif not value:
        return None
    else:
        try:
            dt = date_parser.parse(str(value))
        except (ValueError, OverflowError):
            return None

    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    return dt
