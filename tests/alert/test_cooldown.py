# tests/alert/test_cooldown.py
from datetime import UTC, datetime, timedelta

from signal_relay.alert.cooldown import is_eligible

T = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def test_never_notified_is_eligible():
    assert is_eligible(None, 3600, T) is True


def test_ineligible_inside_window():
    for seconds in (1, 10, 1800, 3599):
        assert is_eligible(T, 3600, T + timedelta(seconds=seconds)) is False


def test_eligible_at_window_end_and_after():
    assert is_eligible(T, 3600, T + timedelta(seconds=3600)) is True
    assert is_eligible(T, 3600, T + timedelta(seconds=3601)) is True


def test_zero_cooldown():
    assert is_eligible(T, 0, T) is True


def test_clock_behind_last_notification_is_ineligible():
    assert is_eligible(T, 0, T - timedelta(seconds=5)) is False
