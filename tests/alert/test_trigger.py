# tests/alert/test_trigger.py
import math

from signal_relay.alert.trigger import evaluate, threshold_price
from signal_relay.storage.models import TriggerType


def test_percent_drop_hits_at_exact_boundary():
    boundary = 100 * (1 - 10 / 100)
    assert evaluate(TriggerType.PERCENT_DROP, 10, 100, boundary) is True


def test_percent_drop_no_hit_just_above_boundary():
    boundary = 100 * (1 - 10 / 100)
    assert evaluate(TriggerType.PERCENT_DROP, 10, 100, math.nextafter(boundary, math.inf)) is False


def test_percent_drop_hits_below_boundary():
    assert evaluate(TriggerType.PERCENT_DROP, 10, 100, 89.99) is True
    assert evaluate(TriggerType.PERCENT_DROP, 10, 100, 95) is False


def test_percent_rise_hits_at_exact_boundary():
    boundary = 0.05 * (1 + 25 / 100)
    assert evaluate(TriggerType.PERCENT_RISE, 25, 0.05, boundary) is True


def test_percent_rise_no_hit_just_below_boundary():
    boundary = 0.05 * (1 + 25 / 100)
    assert evaluate(TriggerType.PERCENT_RISE, 25, 0.05, math.nextafter(boundary, 0)) is False


def test_accepts_string_trigger_type():
    assert evaluate("percent_rise", 5, 100, 106) is True
    assert evaluate("percent_drop", 5, 100, 106) is False


def test_bad_prices_never_hit():
    for price in (0, -1, math.nan, math.inf, -math.inf):
        assert evaluate(TriggerType.PERCENT_DROP, 10, 100, price) is False
        assert evaluate(TriggerType.PERCENT_RISE, 10, 100, price) is False
        assert evaluate(TriggerType.PERCENT_DROP, 10, price, 50) is False


def test_unknown_trigger_type_or_bad_value_never_hits():
    assert evaluate("moving_average", 10, 100, 1) is False
    assert evaluate(TriggerType.PERCENT_DROP, math.nan, 100, 1) is False
    assert evaluate(TriggerType.PERCENT_DROP, 0, 100, 100) is False
    assert evaluate(TriggerType.PERCENT_DROP, -10, 100, 100) is False
    assert evaluate(TriggerType.PERCENT_RISE, 0, 100, 100) is False
    assert evaluate(TriggerType.PERCENT_RISE, -50, 100, 60) is False


def test_threshold_price():
    assert threshold_price(TriggerType.PERCENT_DROP, 10, 100) == 100 * (1 - 10 / 100)
    assert threshold_price(TriggerType.PERCENT_RISE, 10, 100) == 100 * (1 + 10 / 100)
