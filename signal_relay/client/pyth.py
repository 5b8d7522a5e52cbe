"""Pyth Hermes 价格客户端"""

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import aiohttp

from .base import PriceSource
from .models import PriceQuote

HBAR_USD_FEED_ID = "3728e591097635310e6341af53db8b7ee42da9b3a8d918f9463ce9cca886dfbd"


class PythAPIError(Exception):
    """Pyth Hermes API 错误"""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(message)


@dataclass
class PythClient(PriceSource):
    """Pyth Hermes REST 客户端"""

    base_url: str = "https://hermes.pyth.network"
    feed_ids: dict[str, str] = field(default_factory=lambda: {"HBAR": HBAR_USD_FEED_ID})
    name: str = "pyth"
    _session: aiohttp.ClientSession | None = field(default=None, repr=False)

    async def _request(self, endpoint: str, params: list[tuple[str, str]]) -> Any:
        if self._session is None:
            raise RuntimeError("Session not initialized. Use 'async with' context.")

        url = f"{self.base_url.rstrip('/')}{endpoint}"
        response = await self._session.get(url, params=params)

        if response.status != 200:
            error_text = await response.text()
            try:
                error_data = json.loads(error_text)
                raise PythAPIError(response.status, str(error_data.get("message", error_text)))
            except (json.JSONDecodeError, AttributeError):
                raise PythAPIError(response.status, error_text)

        return await response.json()

    async def init(self) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession()

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "PythClient":
        await self.init()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def feed_id(self, symbol: str) -> str:
        try:
            return self.feed_ids[symbol.upper()]
        except KeyError:
            raise ValueError(f"No Pyth feed configured for {symbol}") from None

    async def get_price(self, symbol: str) -> PriceQuote:
        """获取最新价格, price * 10^expo"""
        data = await self._request(
            "/v2/updates/price/latest",
            [("ids[]", self.feed_id(symbol)), ("parsed", "true")],
        )
        parsed = data.get("parsed") if isinstance(data, dict) else None
        raw = parsed[0].get("price", {}) if parsed else {}

        try:
            price = float(raw.get("price", 0))
            expo = int(raw.get("expo", 0))
            value = price * 10**expo
        except (TypeError, ValueError):
            value = 0.0

        return PriceQuote(value_usd=value, fetched_at=datetime.now(UTC), source=self.name)
