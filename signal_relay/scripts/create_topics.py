"""
创建买入/卖出信号 topic 并输出配置

用法:
    python -m signal_relay.scripts.create_topics
    python -m signal_relay.scripts.create_topics "Buy Signals" "Sell Signals" --config config.yaml
"""

import argparse
import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

from signal_relay.config import load_config
from signal_relay.main import LOG_FORMAT, build_publisher
from signal_relay.publisher.base import SignalPublisher

logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

HASHSCAN_URL = "https://hashscan.io"


def parse_args(args: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="创建 HCS 信号 topic")
    parser.add_argument("buy_memo", nargs="?", default="Signal Relay Buy Signals")
    parser.add_argument("sell_memo", nargs="?", default="Signal Relay Sell Signals")
    parser.add_argument(
        "--config",
        type=str,
        default="config.yaml",
        help="配置文件路径",
    )
    return parser.parse_args(args)


def topic_url(network: str, topic_id: str) -> str:
    return f"{HASHSCAN_URL}/{network}/topic/{topic_id}"


def format_topics(network: str, buy_topic: str, sell_topic: str) -> str:
    return "\n".join(
        [
            "Add these to config.yaml:",
            "",
            "topics:",
            f"  buy: {buy_topic}",
            f"  sell: {sell_topic}",
            "",
            f"BUY  -> {topic_url(network, buy_topic)}",
            f"SELL -> {topic_url(network, sell_topic)}",
        ]
    )


async def create_topics(
    publisher: SignalPublisher, buy_memo: str, sell_memo: str
) -> tuple[str, str]:
    buy_topic = await publisher.ensure_topic(buy_memo)
    sell_topic = await publisher.ensure_topic(sell_memo)
    return buy_topic, sell_topic


async def main(args: Sequence[str] | None = None) -> None:
    options = parse_args(args)
    config = load_config(Path(options.config))

    publisher = build_publisher(config)
    await publisher.init()
    try:
        buy_topic, sell_topic = await create_topics(publisher, options.buy_memo, options.sell_memo)
    finally:
        await publisher.close()

    print(format_topics(config.hedera.network, buy_topic, sell_topic))


if __name__ == "__main__":
    asyncio.run(main())
