from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class DeliveryReceipt:
    topic_id: str
    sequence: int  # 每个 topic 单调递增


class SignalPublisher(ABC):
    """追加式日志 (共识 topic) 发布接口"""

    async def init(self) -> None:
        pass

    async def close(self) -> None:
        pass

    @abstractmethod
    async def ensure_topic(self, hint: str) -> str:
        """Provision a new topic and return its id; ``hint`` becomes the topic memo."""

    @abstractmethod
    async def publish(self, topic_id: str, payload: bytes) -> DeliveryReceipt:
        pass
