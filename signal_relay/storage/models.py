# signal_relay/storage/models.py
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class AlertAction(str, Enum):
    BUY = "buy"
    SELL = "sell"
    NOTIFY = "notify"


class TriggerType(str, Enum):
    PERCENT_DROP = "percent_drop"
    PERCENT_RISE = "percent_rise"


class AlertStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


DEFAULT_COOLDOWN_SECONDS = 3600


@dataclass
class Alert:
    id: str
    owner: str | None
    source_account: str  # 代表哪个账户发出信号
    destination_account: str | None  # 下游结算使用, 分发不读取
    amount: float  # notify 时为 0
    action: AlertAction
    trigger_type: TriggerType
    trigger_value: float  # 百分比, 10 = 10%
    baseline_price: float  # 创建时的 USD 价格
    cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS
    status: AlertStatus = AlertStatus.ACTIVE
    # 以下字段创建后只由分发循环写入
    topic_id: str | None = None
    last_sequence: int | None = None
    last_notified_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == AlertStatus.ACTIVE
