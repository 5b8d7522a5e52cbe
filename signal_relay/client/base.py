from abc import ABC, abstractmethod

from .models import PriceQuote


class PriceSource(ABC):
    """USD 现价来源, 不保存历史"""

    name: str = "unknown"

    async def init(self) -> None:
        pass

    async def close(self) -> None:
        pass

    @abstractmethod
    async def get_price(self, symbol: str) -> PriceQuote:
        pass
