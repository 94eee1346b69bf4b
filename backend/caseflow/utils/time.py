"""Time Utilities - UTC timestamps and formatting"""
from datetime import datetime, timezone, timedelta
from typing import Optional


def utc_now() -> datetime:
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)


def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 string

    Always UTC with a six-digit fraction, so stored timestamps sort
    lexicographically in time order.

    Args:
        dt: Datetime object

    Returns:
        ISO formatted string with Z suffix for UTC
    """
    if dt.tzinfo is None:
        # Assume UTC if no timezone
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="microseconds").replace("+00:00", "Z")


def add_hours(dt: datetime, hours: float) -> datetime:
    """Add hours to datetime"""
    return dt + timedelta(hours=hours)


def sla_due_at(entered_at: Optional[datetime], sla_hours: Optional[float]) -> Optional[datetime]:
    """
    Calculate when a stage's SLA expires

    Returns None when the stage has no SLA or the entry time is unknown.
    """
    if entered_at is None or not sla_hours:
        return None
    return add_hours(entered_at, sla_hours)


def is_overdue(due_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """Check if due datetime has passed"""
    if due_at is None:
        return False
    return (now or utc_now()) > due_at
