# signal_relay/alert/dispatcher.py
"""Alert 检查与信号分发

One pass: list active alerts, fetch one quote, and for every alert that is
past its cooldown and whose trigger hits, publish a signal and record the
firing on the alert.

Delivery is at-least-once. A failure after publishing but before the
repository write leaves the alert eligible, so the next pass publishes the
same signal again. A failure before publishing never loses a signal: the
alert simply fires on a later pass.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

from signal_relay.alert.cooldown import is_eligible
from signal_relay.alert.factory import validate_alert
from signal_relay.alert.trigger import evaluate
from signal_relay.client.base import PriceSource
from signal_relay.client.models import PriceQuote
from signal_relay.config import TimeoutsConfig, TopicsConfig
from signal_relay.errors import PersistFailure, QuoteUnavailable, RepositoryUnavailable
from signal_relay.publisher.base import SignalPublisher
from signal_relay.publisher.payload import build_signal_payload, encode_payload
from signal_relay.storage.base import AlertRepository
from signal_relay.storage.models import Alert

logger = logging.getLogger(__name__)

FAILURE_PUBLISH = "publish"
FAILURE_PERSIST = "persist"
FAILURE_INVALID = "invalid"


@dataclass
class DispatchFailure:
    alert_id: str
    error: str
    kind: str  # "publish" | "persist" | "invalid"


@dataclass
class DispatchResult:
    evaluated: int = 0
    fired: int = 0
    failures: list[DispatchFailure] = field(default_factory=list)
    error: str | None = None  # 整轮失败 (如无法读取 alert)
    price: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _describe(e: BaseException) -> str:
    # TimeoutError 的 str() 为空
    return str(e) or type(e).__name__


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AlertDispatcher:
    def __init__(
        self,
        repository: AlertRepository,
        price_source: PriceSource,
        publisher: SignalPublisher,
        symbol: str,
        topics: TopicsConfig | None = None,
        timeouts: TimeoutsConfig | None = None,
        max_concurrency: int = 8,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.repository = repository
        self.price_source = price_source
        self.publisher = publisher
        self.symbol = symbol
        self.topics = topics or TopicsConfig()
        self.timeouts = timeouts or TimeoutsConfig()
        self.max_concurrency = max(1, max_concurrency)
        self.clock = clock
        self._lock = asyncio.Lock()
        self._stopping = False

    def stop(self) -> None:
        """Stop starting new per-alert work; in-flight work runs to completion."""
        self._stopping = True

    async def wait_idle(self) -> None:
        """等待进行中的一轮结束"""
        async with self._lock:
            pass

    async def _list_active(self) -> list[Alert]:
        try:
            return await asyncio.wait_for(
                self.repository.list_active(), self.timeouts.repository_seconds
            )
        except Exception as e:
            raise RepositoryUnavailable(f"Failed to list active alerts: {_describe(e)}") from e

    async def _fetch_quote(self) -> PriceQuote:
        try:
            quote = await asyncio.wait_for(
                self.price_source.get_price(self.symbol), self.timeouts.price_seconds
            )
        except Exception as e:
            raise QuoteUnavailable(f"Price fetch for {self.symbol} failed: {_describe(e)}") from e
        if not quote.usable:
            raise QuoteUnavailable(f"Unusable {self.symbol} quote from {quote.source}: {quote.value_usd}")
        return quote

    async def _resolve_topic(self, alert: Alert) -> str:
        configured = self.topics.for_action(alert.action)
        if configured:
            return configured
        if alert.topic_id:
            return alert.topic_id
        return await asyncio.wait_for(
            self.publisher.ensure_topic(f"signal-relay alert {alert.id}"),
            self.timeouts.publish_seconds,
        )

    async def _fire(self, alert: Alert, price: float, now: datetime) -> DispatchFailure | None:
        try:
            topic_id = await self._resolve_topic(alert)
            payload = encode_payload(build_signal_payload(alert, price, now))
            receipt = await asyncio.wait_for(
                self.publisher.publish(topic_id, payload), self.timeouts.publish_seconds
            )
        except Exception as e:
            logger.error(f"Failed to publish signal for alert {alert.id}: {_describe(e)}")
            return DispatchFailure(alert_id=alert.id, error=_describe(e), kind=FAILURE_PUBLISH)

        try:
            await asyncio.wait_for(
                self.repository.update_fired(
                    alert.id,
                    topic_id,
                    receipt.sequence,
                    now,
                    alert.last_notified_at,
                ),
                self.timeouts.repository_seconds,
            )
        except Exception as e:
            error = e if isinstance(e, PersistFailure) else PersistFailure(
                f"Failed to record signal for alert {alert.id}: {_describe(e)}"
            )
            # 信号已发出但状态未保存, 下一轮会重复发送
            logger.error(
                f"Signal for alert {alert.id} published to {topic_id} #{receipt.sequence} "
                f"but not recorded, it will be published again: {error}"
            )
            return DispatchFailure(alert_id=alert.id, error=str(error), kind=FAILURE_PERSIST)

        logger.info(
            f"Signal fired: alert {alert.id} {alert.action.value} "
            f"{alert.trigger_type.value} {alert.trigger_value}% @ {price} -> {topic_id} #{receipt.sequence}"
        )
        return None

    async def _process(
        self,
        alert: Alert,
        price: float,
        now: datetime,
        semaphore: asyncio.Semaphore,
    ) -> DispatchFailure | bool | None:
        """Returns True when fired, False when skipped, the failure, or None
        for alerts that are not evaluated at all (not active)
        """
        if not alert.is_active:
            return None
        try:
            validate_alert(alert)
            if not is_eligible(alert.last_notified_at, alert.cooldown_seconds, now):
                logger.debug(f"Alert {alert.id} in cooldown")
                return False
            if not evaluate(alert.trigger_type, alert.trigger_value, alert.baseline_price, price):
                return False
        except Exception as e:
            logger.error(f"Alert {alert.id} cannot be evaluated: {_describe(e)}")
            return DispatchFailure(alert_id=alert.id, error=_describe(e), kind=FAILURE_INVALID)

        async with semaphore:
            if self._stopping:
                logger.debug(f"Dispatcher stopping, alert {alert.id} left for a later pass")
                return False
            failure = await self._fire(alert, price, now)
        return failure if failure else True

    async def run_pass(self) -> DispatchResult:
        if self._lock.locked():
            logger.warning("Dispatch pass already in progress, skipping")
            return DispatchResult(error="pass already in progress")

        async with self._lock:
            if self._stopping:
                return DispatchResult()

            try:
                alerts = await self._list_active()
            except RepositoryUnavailable as e:
                logger.error(str(e))
                return DispatchResult(error=str(e))

            try:
                quote = await self._fetch_quote()
            except QuoteUnavailable as e:
                logger.warning(f"Skipping pass: {e}")
                return DispatchResult()

            # 同一轮所有 alert 共用同一个报价和时间
            price = quote.value_usd
            now = self.clock()
            semaphore = asyncio.Semaphore(self.max_concurrency)
            outcomes = await asyncio.gather(
                *(self._process(alert, price, now, semaphore) for alert in alerts)
            )

            result = DispatchResult(price=price)
            for outcome in outcomes:
                if outcome is None:
                    continue
                result.evaluated += 1
                if isinstance(outcome, DispatchFailure):
                    result.failures.append(outcome)
                elif outcome:
                    result.fired += 1

            logger.info(
                f"Dispatch pass: {self.symbol} @ {price} evaluated={result.evaluated} "
                f"fired={result.fired} failures={len(result.failures)}"
            )
            return result
