from __future__ import annotations

from datetime import timedelta

from assessment_app.core.timestamps import (
    compute_end_timestamp,
    elapsed_between,
    format_countdown,
    format_timestamp,
)

from conftest import START_MS


def test_format_timestamp_uses_twelve_hour_clock():
    assert format_timestamp(START_MS) == "03/05/2024 at 02:07:09 PM"


def test_end_timestamp_is_at_least_one_second_after_start():
    assert compute_end_timestamp(START_MS, START_MS) == START_MS + 1000
    assert compute_end_timestamp(START_MS, START_MS - 5000) == START_MS + 1000
    assert compute_end_timestamp(START_MS, START_MS + 90_000) == START_MS + 90_000


def test_equal_clock_readings_still_format_differently():
    end_ms = compute_end_timestamp(START_MS, START_MS)
    assert format_timestamp(end_ms) != format_timestamp(START_MS)


def test_elapsed_between_formatted_timestamps():
    start = "03/05/2024 at 02:07:09 PM"
    end = "03/05/2024 at 02:19:39 PM"
    assert elapsed_between(start, end) == timedelta(minutes=12, seconds=30)


def test_elapsed_between_handles_missing_or_garbled_values():
    assert elapsed_between(None, "03/05/2024 at 02:19:39 PM") is None
    assert elapsed_between("yesterday", "03/05/2024 at 02:19:39 PM") is None


def test_format_countdown():
    assert format_countdown(0) == "00:00"
    assert format_countdown(59) == "00:59"
    assert format_countdown(1200) == "20:00"
    assert format_countdown(-3) == "00:00"


def test_elapsed_between_rejects_end_before_start():
    start = "03/05/2024 at 02:19:39 PM"
    end = "03/05/2024 at 02:07:09 PM"
    assert elapsed_between(start, end) is None
    assert elapsed_between(start, start) is None
