# signal_relay/alert/factory.py
import logging
import math
import secrets
import string
import time
from datetime import UTC, datetime

from signal_relay.client.base import PriceSource
from signal_relay.errors import InvalidAlert, QuoteUnavailable
from signal_relay.storage.base import AlertRepository
from signal_relay.storage.models import (
    DEFAULT_COOLDOWN_SECONDS,
    Alert,
    AlertAction,
    AlertStatus,
    TriggerType,
)

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_alert_id() -> str:
    """<毫秒时间戳>-<6 位随机 base36>"""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(6))
    return f"{int(time.time() * 1000)}-{suffix}"


def _finite(value: float) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value)


def validate_alert(alert: Alert) -> None:
    if not alert.source_account:
        raise InvalidAlert("source_account is required")
    if not _finite(alert.amount) or alert.amount < 0:
        raise InvalidAlert("amount must be a non-negative number")
    if alert.action == AlertAction.NOTIFY and alert.amount != 0:
        raise InvalidAlert("notify alerts carry no amount")
    if alert.action in (AlertAction.BUY, AlertAction.SELL) and alert.amount <= 0:
        raise InvalidAlert(f"{alert.action.value} alerts need a positive amount")
    if not _finite(alert.trigger_value) or alert.trigger_value <= 0:
        raise InvalidAlert("trigger_value must be a positive percentage")
    if not _finite(alert.baseline_price) or alert.baseline_price <= 0:
        raise InvalidAlert("baseline_price must be positive")
    if alert.cooldown_seconds < 0:
        raise InvalidAlert("cooldown_seconds must not be negative")


async def create_alert(
    repository: AlertRepository,
    price_source: PriceSource | None,
    *,
    symbol: str,
    source_account: str,
    action: AlertAction | str,
    trigger_type: TriggerType | str,
    trigger_value: float,
    amount: float = 0,
    baseline_price: float | None = None,
    owner: str | None = None,
    destination_account: str | None = None,
    cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS,
    now: datetime | None = None,
) -> Alert:
    """校验并保存新 alert

    Without an explicit ``baseline_price`` the current quote is captured as
    the fixed baseline the trigger is evaluated against.
    """
    try:
        action = AlertAction(action)
        trigger_type = TriggerType(trigger_type)
    except ValueError as e:
        raise InvalidAlert(str(e)) from e

    if baseline_price is None:
        if price_source is None:
            raise InvalidAlert("baseline_price is required without a price source")
        quote = await price_source.get_price(symbol)
        if not quote.usable:
            raise QuoteUnavailable(f"Cannot capture baseline: unusable {symbol} quote")
        baseline_price = quote.value_usd

    now = now or datetime.now(UTC)
    alert = Alert(
        id=new_alert_id(),
        owner=owner or None,
        source_account=(source_account or "").strip(),
        destination_account=destination_account.strip() if destination_account else None,
        amount=float(amount),
        action=action,
        trigger_type=trigger_type,
        trigger_value=float(trigger_value),
        baseline_price=float(baseline_price),
        cooldown_seconds=int(cooldown_seconds),
        status=AlertStatus.ACTIVE,
        created_at=now,
        updated_at=now,
    )
    validate_alert(alert)

    await repository.insert(alert)
    logger.info(
        f"Alert created: {alert.id} {alert.action.value} {alert.trigger_type.value} "
        f"{alert.trigger_value}% from {alert.baseline_price}"
    )
    return alert
