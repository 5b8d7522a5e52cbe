# signal_relay/alert/trigger.py
import math

from signal_relay.storage.models import TriggerType


def _positive(value: float) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


def evaluate(
    trigger_type: TriggerType | str,
    trigger_value: float,
    baseline_price: float,
    current_price: float,
) -> bool:
    """检查触发条件 (相对固定基准价)

    Boundary equality counts as a hit. Never raises: bad prices, bad
    trigger values and unknown trigger types all evaluate to no hit.
    """
    if not (_positive(current_price) and _positive(baseline_price) and _positive(trigger_value)):
        return False

    try:
        kind = TriggerType(trigger_type)
    except ValueError:
        return False

    if kind == TriggerType.PERCENT_DROP:
        return current_price <= baseline_price * (1 - trigger_value / 100)
    if kind == TriggerType.PERCENT_RISE:
        return current_price >= baseline_price * (1 + trigger_value / 100)
    return False


def threshold_price(trigger_type: TriggerType, trigger_value: float, baseline_price: float) -> float:
    """触发价位, 用于展示"""
    if trigger_type == TriggerType.PERCENT_DROP:
        return baseline_price * (1 - trigger_value / 100)
    return baseline_price * (1 + trigger_value / 100)
