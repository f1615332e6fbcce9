"""Timestamp helpers for session start/end bookkeeping."""

from __future__ import annotations

from datetime import datetime, timedelta
import logging
import time

from assessment_app.constants.session_constants import MIN_ELAPSED_MS, TIMESTAMP_FORMAT

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Milliseconds since the epoch."""
    return int(time.time() * 1000)


def format_timestamp(timestamp_ms: int) -> str:
    """Format as ``MM/DD/YYYY at hh:mm:ss AM`` in local time."""
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(text: str) -> datetime:
    return datetime.strptime(text.strip(), TIMESTAMP_FORMAT)


def compute_end_timestamp(start_timestamp_ms: int, current_ms: int) -> int:
    """End of an attempt, always strictly after its start even at equal clock readings."""
    return max(current_ms, start_timestamp_ms + MIN_ELAPSED_MS)


def elapsed_between(date_of_start: str | None, date_of_end: str | None) -> timedelta | None:
    """Time taken between two formatted timestamps, or None if they are unusable or out of order."""
    if not date_of_start or not date_of_end:
        return None
    try:
        start = parse_timestamp(date_of_start)
        end = parse_timestamp(date_of_end)
    except ValueError:
        return None
    if end <= start:
        logger.warning("Result ends at %s, not after its start %s", date_of_end, date_of_start)
        return None
    return end - start


def format_countdown(seconds: int) -> str:
    """Render remaining seconds as ``MM:SS``."""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"
