# signal_relay/alert/cooldown.py
from datetime import datetime


def is_eligible(
    last_notified_at: datetime | None,
    cooldown_seconds: float,
    now: datetime,
) -> bool:
    # 从未触发过的 alert 总是可以触发, 与创建时间无关
    if last_notified_at is None:
        return True
    elapsed = (now - last_notified_at).total_seconds()
    return elapsed >= max(cooldown_seconds, 0)
