# signal_relay/config.py
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel

from signal_relay.client.pyth import HBAR_USD_FEED_ID
from signal_relay.storage.models import AlertAction


class PriceConfig(BaseModel):
    provider: Literal["pyth", "coingecko", "exchange"] = "pyth"
    pyth_url: str = "https://hermes.pyth.network"
    pyth_feed_ids: dict[str, str] = {"HBAR": HBAR_USD_FEED_ID}
    coingecko_url: str = "https://api.coingecko.com"
    coingecko_ids: dict[str, str] = {"HBAR": "hedera-hashgraph"}
    exchange: str = "binance"


class HederaConfig(BaseModel):
    network: Literal["testnet", "mainnet", "previewnet"] = "testnet"
    operator_id: str
    operator_key: str | None = None
    operator_key_file: str | None = None


class TopicsConfig(BaseModel):
    """按 action 固定的 topic, 配置后优先于 alert 上保存的 topic"""

    buy: str | None = None
    sell: str | None = None
    notify: str | None = None

    def for_action(self, action: AlertAction) -> str | None:
        return getattr(self, action.value)


class DispatchConfig(BaseModel):
    interval_seconds: int = 60
    max_concurrency: int = 8
    default_cooldown_seconds: int = 3600


class TimeoutsConfig(BaseModel):
    price_seconds: float = 10
    repository_seconds: float = 5
    publish_seconds: float = 30


class DatabaseConfig(BaseModel):
    path: str = "data/alerts.db"


class LoggingConfig(BaseModel):
    level: str = "INFO"


class Config(BaseModel):
    symbol: str = "HBAR"
    price: PriceConfig = PriceConfig()
    hedera: HederaConfig
    topics: TopicsConfig = TopicsConfig()
    dispatch: DispatchConfig = DispatchConfig()
    timeouts: TimeoutsConfig = TimeoutsConfig()
    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(path: Path) -> Config:
    with open(path) as f:
        data = yaml.safe_load(f)
    return Config(**data)
