# signal_relay/storage/memory.py
from dataclasses import replace
from datetime import datetime

from signal_relay.errors import ConcurrentUpdate

from .base import AlertRepository
from .models import Alert, AlertStatus


class InMemoryAlertRepository(AlertRepository):
    """进程内 Alert 存储, 用于测试和本地演示

    Returns copies so callers never mutate stored records directly.
    """

    def __init__(self, alerts: list[Alert] | None = None):
        self._alerts: dict[str, Alert] = {}
        for alert in alerts or []:
            self._alerts[alert.id] = replace(alert)

    async def list_active(self) -> list[Alert]:
        return [replace(a) for a in self._alerts.values() if a.status == AlertStatus.ACTIVE]

    async def update_fired(
        self,
        alert_id: str,
        topic_id: str,
        sequence: int,
        fired_at: datetime,
        expected_last_notified_at: datetime | None,
    ) -> None:
        alert = self._alerts.get(alert_id)
        if (
            alert is None
            or alert.status != AlertStatus.ACTIVE
            or alert.last_notified_at != expected_last_notified_at
        ):
            raise ConcurrentUpdate(f"Alert {alert_id} changed since it was read")
        alert.topic_id = topic_id
        alert.last_sequence = sequence
        alert.last_notified_at = fired_at
        alert.updated_at = fired_at

    async def insert(self, alert: Alert) -> str:
        if alert.id in self._alerts:
            raise ValueError(f"Alert {alert.id} already exists")
        self._alerts[alert.id] = replace(alert)
        return alert.id

    async def get(self, alert_id: str) -> Alert | None:
        alert = self._alerts.get(alert_id)
        return replace(alert) if alert else None

    async def list_alerts(self, owner: str | None = None) -> list[Alert]:
        alerts = [
            replace(a) for a in self._alerts.values() if owner is None or a.owner == owner
        ]
        alerts.sort(
            key=lambda a: a.updated_at.timestamp() if a.updated_at else 0.0,
            reverse=True,
        )
        return alerts

    async def set_status(self, alert_id: str, status: AlertStatus, at: datetime) -> bool:
        alert = self._alerts.get(alert_id)
        if alert is None:
            return False
        alert.status = status
        alert.updated_at = at
        return True

    async def delete(self, alert_id: str) -> bool:
        return self._alerts.pop(alert_id, None) is not None

    async def delete_all(self) -> int:
        count = len(self._alerts)
        self._alerts.clear()
        return count
