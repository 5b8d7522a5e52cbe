"""CoinGecko 价格客户端"""

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import aiohttp

from .base import PriceSource
from .models import PriceQuote


class CoinGeckoAPIError(Exception):
    """CoinGecko API 错误"""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(message)


@dataclass
class CoinGeckoClient(PriceSource):
    base_url: str = "https://api.coingecko.com"
    coin_ids: dict[str, str] = field(default_factory=lambda: {"HBAR": "hedera-hashgraph"})
    name: str = "coingecko"
    _session: aiohttp.ClientSession | None = field(default=None, repr=False)

    async def _request(self, endpoint: str, params: dict[str, str]) -> Any:
        if self._session is None:
            raise RuntimeError("Session not initialized. Use 'async with' context.")

        url = f"{self.base_url.rstrip('/')}{endpoint}"
        response = await self._session.get(url, params=params)

        if response.status != 200:
            error_text = await response.text()
            try:
                error_data = json.loads(error_text)
                message = error_data.get("status", {}).get("error_message", error_text)
                raise CoinGeckoAPIError(response.status, str(message))
            except (json.JSONDecodeError, AttributeError):
                raise CoinGeckoAPIError(response.status, error_text)

        return await response.json()

    async def init(self) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession()

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "CoinGeckoClient":
        await self.init()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def get_price(self, symbol: str) -> PriceQuote:
        coin_id = self.coin_ids.get(symbol.upper())
        if coin_id is None:
            raise ValueError(f"No CoinGecko id configured for {symbol}")

        data = await self._request(
            "/api/v3/simple/price",
            {"ids": coin_id, "vs_currencies": "usd"},
        )
        try:
            value = float((data.get(coin_id) or {}).get("usd") or 0)
        except (AttributeError, TypeError, ValueError):
            value = 0.0

        return PriceQuote(value_usd=value, fetched_at=datetime.now(UTC), source=self.name)
