"""信号消息体

Downstream consumers match ``kind``, ``action`` and ``alertId`` literally,
so the JSON field names below are part of the wire contract.
"""

import json
from datetime import datetime
from typing import Any

from signal_relay.storage.models import Alert, AlertAction

KIND_PRICE_ALERT = "price_alert"
KIND_TRADE_SIGNAL = "trade_signal"


def signal_kind(action: AlertAction) -> str:
    return KIND_PRICE_ALERT if action == AlertAction.NOTIFY else KIND_TRADE_SIGNAL


def build_signal_payload(alert: Alert, current_price: float, now: datetime) -> dict[str, Any]:
    return {
        "kind": signal_kind(alert.action),
        "action": alert.action.value,
        "amount": alert.amount,
        "triggerType": alert.trigger_type.value,
        "triggerValue": alert.trigger_value,
        "baselinePrice": alert.baseline_price,
        "currentPrice": current_price,
        "alertId": alert.id,
        "owner": alert.owner,
        "timestamp": now.isoformat(),
    }


def encode_payload(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")
