# signal_relay/storage/database.py
import logging
from datetime import UTC, datetime
from typing import Any

import aiosqlite

from signal_relay.errors import ConcurrentUpdate

from .base import AlertRepository
from .models import Alert, AlertAction, AlertStatus, TriggerType

logger = logging.getLogger(__name__)

ALERT_COLUMNS = (
    "id, owner, source_account, destination_account, amount, action, "
    "trigger_type, trigger_value, baseline_price, cooldown_seconds, status, "
    "topic_id, last_sequence, last_notified_at, created_at, updated_at"
)


def _to_db(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _from_db(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    # 外部写入的无时区时间按 UTC 处理
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _row_to_alert(row: Any) -> Alert:
    return Alert(
        id=row[0],
        owner=row[1],
        source_account=row[2],
        destination_account=row[3],
        amount=row[4],
        action=AlertAction(row[5]),
        trigger_type=TriggerType(row[6]),
        trigger_value=row[7],
        baseline_price=row[8],
        cooldown_seconds=row[9],
        status=AlertStatus(row[10]),
        topic_id=row[11],
        last_sequence=row[12],
        last_notified_at=_from_db(row[13]),
        created_at=_from_db(row[14]),
        updated_at=_from_db(row[15]),
    )


def _decode_rows(rows: list[Any]) -> list[Alert]:
    alerts = []
    for row in rows:
        # 单条坏记录不影响其他 alert
        try:
            alerts.append(_row_to_alert(row))
        except (ValueError, TypeError) as e:
            logger.error(f"Skipping unreadable alert row {row[0]}: {e}")
    return alerts


class Database(AlertRepository):
    def __init__(self, path: str):
        self.path = path
        self.conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        self.conn = await aiosqlite.connect(self.path)
        await self._create_tables()

    async def close(self) -> None:
        if self.conn:
            await self.conn.close()
            self.conn = None

    async def _create_tables(self) -> None:
        assert self.conn is not None
        await self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS alerts (
                id TEXT PRIMARY KEY,
                owner TEXT,
                source_account TEXT NOT NULL,
                destination_account TEXT,
                amount REAL NOT NULL,
                action TEXT NOT NULL,
                trigger_type TEXT NOT NULL,
                trigger_value REAL NOT NULL,
                baseline_price REAL NOT NULL,
                cooldown_seconds INTEGER NOT NULL DEFAULT 3600,
                status TEXT NOT NULL DEFAULT 'active',
                topic_id TEXT,
                last_sequence INTEGER,
                last_notified_at TEXT,
                created_at TEXT,
                updated_at TEXT
            );
            CREATE INDEX IF NOT EXISTS idx_alerts_status ON alerts(status);
            CREATE INDEX IF NOT EXISTS idx_alerts_owner ON alerts(owner);
        """)
        await self.conn.commit()

    async def insert(self, alert: Alert) -> str:
        assert self.conn is not None
        await self.conn.execute(
            f"INSERT INTO alerts ({ALERT_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                alert.id,
                alert.owner,
                alert.source_account,
                alert.destination_account,
                alert.amount,
                alert.action.value,
                alert.trigger_type.value,
                alert.trigger_value,
                alert.baseline_price,
                alert.cooldown_seconds,
                alert.status.value,
                alert.topic_id,
                alert.last_sequence,
                _to_db(alert.last_notified_at),
                _to_db(alert.created_at),
                _to_db(alert.updated_at),
            ),
        )
        await self.conn.commit()
        return alert.id

    async def get(self, alert_id: str) -> Alert | None:
        assert self.conn is not None
        cursor = await self.conn.execute(
            f"SELECT {ALERT_COLUMNS} FROM alerts WHERE id = ?",
            (alert_id,),
        )
        row = await cursor.fetchone()
        return _row_to_alert(row) if row else None

    async def list_active(self) -> list[Alert]:
        assert self.conn is not None
        cursor = await self.conn.execute(
            f"SELECT {ALERT_COLUMNS} FROM alerts WHERE status = ?",
            (AlertStatus.ACTIVE.value,),
        )
        rows = await cursor.fetchall()
        return _decode_rows(rows)

    async def list_alerts(self, owner: str | None = None) -> list[Alert]:
        assert self.conn is not None
        if owner is None:
            cursor = await self.conn.execute(
                f"SELECT {ALERT_COLUMNS} FROM alerts ORDER BY updated_at DESC"
            )
        else:
            cursor = await self.conn.execute(
                f"SELECT {ALERT_COLUMNS} FROM alerts WHERE owner = ? ORDER BY updated_at DESC",
                (owner,),
            )
        rows = await cursor.fetchall()
        return _decode_rows(rows)

    async def update_fired(
        self,
        alert_id: str,
        topic_id: str,
        sequence: int,
        fired_at: datetime,
        expected_last_notified_at: datetime | None,
    ) -> None:
        assert self.conn is not None
        # 按时间点比较, 兼容无时区的旧记录
        cursor = await self.conn.execute(
            """UPDATE alerts
               SET topic_id = ?, last_sequence = ?, last_notified_at = ?, updated_at = ?
               WHERE id = ? AND status = ?
                 AND ((last_notified_at IS NULL AND ? IS NULL)
                      OR julianday(last_notified_at) = julianday(?))""",
            (
                topic_id,
                sequence,
                _to_db(fired_at),
                _to_db(fired_at),
                alert_id,
                AlertStatus.ACTIVE.value,
                _to_db(expected_last_notified_at),
                _to_db(expected_last_notified_at),
            ),
        )
        await self.conn.commit()
        if cursor.rowcount == 0:
            raise ConcurrentUpdate(f"Alert {alert_id} changed since it was read")

    async def set_status(self, alert_id: str, status: AlertStatus, at: datetime) -> bool:
        assert self.conn is not None
        cursor = await self.conn.execute(
            "UPDATE alerts SET status = ?, updated_at = ? WHERE id = ?",
            (status.value, _to_db(at), alert_id),
        )
        await self.conn.commit()
        return cursor.rowcount > 0

    async def delete(self, alert_id: str) -> bool:
        assert self.conn is not None
        cursor = await self.conn.execute("DELETE FROM alerts WHERE id = ?", (alert_id,))
        await self.conn.commit()
        return cursor.rowcount > 0

    async def delete_all(self) -> int:
        assert self.conn is not None
        cursor = await self.conn.execute("DELETE FROM alerts")
        await self.conn.commit()
        return cursor.rowcount
