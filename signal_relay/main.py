# signal_relay/main.py
import argparse
import asyncio
import json
import logging
import signal
from collections.abc import Sequence
from pathlib import Path

from signal_relay.alert.dispatcher import AlertDispatcher, DispatchResult
from signal_relay.client.base import PriceSource
from signal_relay.client.coingecko import CoinGeckoClient
from signal_relay.client.exchange import ExchangePriceSource
from signal_relay.client.pyth import PythClient
from signal_relay.config import Config, PriceConfig, load_config
from signal_relay.publisher.base import SignalPublisher
from signal_relay.publisher.credentials import read_operator_key
from signal_relay.publisher.hedera import HederaPublisher
from signal_relay.storage.database import Database

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def build_price_source(config: PriceConfig) -> PriceSource:
    if config.provider == "coingecko":
        return CoinGeckoClient(base_url=config.coingecko_url, coin_ids=dict(config.coingecko_ids))
    if config.provider == "exchange":
        return ExchangePriceSource(exchange_id=config.exchange)
    return PythClient(base_url=config.pyth_url, feed_ids=dict(config.pyth_feed_ids))


def build_publisher(config: Config) -> SignalPublisher:
    operator_key = read_operator_key(config.hedera.operator_key, config.hedera.operator_key_file)
    return HederaPublisher(
        network=config.hedera.network,
        operator_id=config.hedera.operator_id,
        operator_key=operator_key,
    )


class SignalRelay:
    def __init__(
        self,
        config: Config,
        price_source: PriceSource | None = None,
        publisher: SignalPublisher | None = None,
    ):
        self.config = config
        self.db = Database(config.database.path)
        self.price_source = price_source or build_price_source(config.price)
        self.publisher = publisher or build_publisher(config)
        self.dispatcher = AlertDispatcher(
            repository=self.db,
            price_source=self.price_source,
            publisher=self.publisher,
            symbol=config.symbol,
            topics=config.topics,
            timeouts=config.timeouts,
            max_concurrency=config.dispatch.max_concurrency,
        )
        self.running = False

    async def init(self) -> None:
        # Ensure data directory exists
        Path(self.config.database.path).parent.mkdir(parents=True, exist_ok=True)

        await self.db.init()
        await self.price_source.init()
        await self.publisher.init()

    async def close(self) -> None:
        await self.publisher.close()
        await self.price_source.close()
        await self.db.close()

    async def run_once(self) -> DispatchResult:
        await self.init()
        try:
            return await self.dispatcher.run_pass()
        finally:
            await self.close()

    async def _dispatch_loop(self) -> None:
        interval = self.config.dispatch.interval_seconds
        while self.running:
            try:
                await self.dispatcher.run_pass()
            except Exception as e:
                logger.error(f"Dispatch pass crashed: {e}")
            await asyncio.sleep(interval)

    async def run(self) -> None:
        await self.init()
        self.running = True

        task = asyncio.create_task(self._dispatch_loop())
        logger.info(
            f"Signal relay started: {self.config.symbol} every "
            f"{self.config.dispatch.interval_seconds}s on {self.config.hedera.network}"
        )

        # Wait for shutdown signal
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)

        await stop_event.wait()

        # 不再开始新的 alert, 已开始的发布跑完
        self.running = False
        self.dispatcher.stop()
        await self.dispatcher.wait_idle()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        await self.close()

        logger.info("Signal relay stopped")


def parse_args(args: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Price alert signal relay")
    parser.add_argument(
        "--config",
        type=str,
        default="config.yaml",
        help="配置文件路径 (默认: config.yaml)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="只执行一轮检查并输出结果",
    )
    return parser.parse_args(args)


async def main(args: Sequence[str] | None = None) -> None:
    options = parse_args(args)
    config = load_config(Path(options.config))
    logging.basicConfig(level=config.logging.level.upper(), format=LOG_FORMAT)

    relay = SignalRelay(config)
    if options.once:
        result = await relay.run_once()
        print(json.dumps(result.to_dict(), indent=2))
        return
    await relay.run()


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
