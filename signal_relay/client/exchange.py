import logging
from datetime import UTC, datetime
from typing import Any

import ccxt.async_support as ccxt

from .base import PriceSource
from .models import PriceQuote

logger = logging.getLogger(__name__)


class ExchangePriceSource(PriceSource):
    """交易所现货最新成交价 (ccxt)"""

    def __init__(self, exchange_id: str = "binance", quote: str = "USDT"):
        self.exchange_id = exchange_id
        self.quote = quote
        self.name = f"ccxt:{exchange_id}"
        self.exchange: Any = None

    async def init(self) -> None:
        exchange_class = getattr(ccxt, self.exchange_id)
        self.exchange = exchange_class()

    async def close(self) -> None:
        if self.exchange:
            await self.exchange.close()
            self.exchange = None

    def market_symbol(self, symbol: str) -> str:
        return f"{symbol.upper()}/{self.quote}"

    async def get_price(self, symbol: str) -> PriceQuote:
        assert self.exchange is not None
        market = self.market_symbol(symbol)
        ticker: dict[str, Any] = await self.exchange.fetch_ticker(market)
        last = ticker.get("last")
        if last is None:
            logger.warning(f"No last price from {self.exchange_id} for {market}")
            last = 0.0

        return PriceQuote(value_usd=float(last), fetched_at=datetime.now(UTC), source=self.name)
