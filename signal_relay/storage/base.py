# signal_relay/storage/base.py
from abc import ABC, abstractmethod
from datetime import datetime

from .models import Alert, AlertStatus


class AlertRepository(ABC):
    """Alert 持久化接口

    The dispatcher only needs ``list_active`` and ``update_fired``; the rest
    serves alert administration.
    """

    @abstractmethod
    async def list_active(self) -> list[Alert]:
        pass

    @abstractmethod
    async def update_fired(
        self,
        alert_id: str,
        topic_id: str,
        sequence: int,
        fired_at: datetime,
        expected_last_notified_at: datetime | None,
    ) -> None:
        """Record a successful firing.

        Applies only while the alert is still active and its
        ``last_notified_at`` equals ``expected_last_notified_at``; otherwise
        raises ``ConcurrentUpdate`` and changes nothing.
        """

    @abstractmethod
    async def insert(self, alert: Alert) -> str:
        pass

    @abstractmethod
    async def get(self, alert_id: str) -> Alert | None:
        pass

    @abstractmethod
    async def list_alerts(self, owner: str | None = None) -> list[Alert]:
        """All alerts (optionally for one owner), most recently updated first"""

    @abstractmethod
    async def set_status(self, alert_id: str, status: AlertStatus, at: datetime) -> bool:
        pass

    @abstractmethod
    async def delete(self, alert_id: str) -> bool:
        pass

    @abstractmethod
    async def delete_all(self) -> int:
        pass
