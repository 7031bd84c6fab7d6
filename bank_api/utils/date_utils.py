"""Date and time window utilities"""

from datetime import datetime, timedelta


def window_start(timestamp: datetime, minutes: int) -> datetime:
    """Start of a lookback window ending at `timestamp`"""
    return timestamp - timedelta(minutes=minutes)


def is_in_hour_window(timestamp: datetime, start_hour: int, end_hour: int) -> bool:
    """
    Check whether the timestamp's hour falls in [start_hour, end_hour).

    Windows that wrap past midnight (start_hour > end_hour) are supported,
    e.g. (23, 6) covers 23:00-05:59.
    """
    hour = timestamp.hour
    if start_hour <= end_hour:
        return start_hour <= hour < end_hour
    return hour >= start_hour or hour < end_hour
