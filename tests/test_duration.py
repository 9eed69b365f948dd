"""Tests for call duration normalisation."""

from datetime import datetime, timezone

import pytest

from convops.services.duration import parse_duration_minutes, resolve_duration


@pytest.mark.parametrize(
    "value, expected",
    [
        ("90s", 1.5),
        ("2.5m", 2.5),
        ("3", 3.0),
        ("45S", 0.75),
        (4, 4.0),
        (1.25, 1.25),
        ("", 0.0),
        ("abc", 0.0),
        ("1m30s", 0.0),
        (None, 0.0),
        (-2, 0.0),
        (True, 0.0),
    ],
)
def test_parse_duration_minutes(value, expected):
    assert parse_duration_minutes(value) == pytest.approx(expected)


def test_resolve_prefers_reported_string():
    minutes, raw = resolve_duration("120s", seconds=600)
    assert minutes == pytest.approx(2.0)
    assert raw == "120s"


def test_resolve_falls_back_to_seconds():
    minutes, raw = resolve_duration(None, seconds=90)
    assert minutes == pytest.approx(1.5)
    assert raw is None


def test_resolve_falls_back_to_timestamps():
    start = datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)
    end = datetime(2025, 3, 1, 10, 4, 30, tzinfo=timezone.utc)
    minutes, raw = resolve_duration(None, None, start, end)
    assert minutes == pytest.approx(4.5)
    assert raw is None


def test_resolve_without_any_source_is_zero():
    assert resolve_duration() == (0.0, None)
