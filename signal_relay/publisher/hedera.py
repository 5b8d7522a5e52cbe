"""Hedera Consensus Service 信号发布"""

import asyncio
import logging
from typing import Any

from hiero_sdk_python import (
    AccountId,
    Client,
    Network,
    ResponseCode,
    TopicCreateTransaction,
    TopicId,
    TopicMessageSubmitTransaction,
)

from signal_relay.errors import PublishFailure

from .base import DeliveryReceipt, SignalPublisher
from .credentials import parse_operator_key

logger = logging.getLogger(__name__)

NETWORKS = ("testnet", "mainnet", "previewnet")


class HederaPublisher(SignalPublisher):
    """Publishes signal payloads as HCS topic messages.

    The SDK is synchronous, so every network call runs in a worker thread.
    """

    def __init__(self, network: str, operator_id: str, operator_key: str):
        network = network.lower()
        if network not in NETWORKS:
            network = "testnet"
        self.network = network
        self.operator_id = operator_id
        self.operator_key = parse_operator_key(operator_key)
        self.client: Any = None

    def _build_client(self) -> Any:
        client = Client(Network(network=self.network))
        client.set_operator(AccountId.from_string(self.operator_id), self.operator_key)
        return client

    async def init(self) -> None:
        if self.client is None:
            self.client = await asyncio.to_thread(self._build_client)
            logger.info(f"Hedera client ready on {self.network} as {self.operator_id}")

    async def close(self) -> None:
        if self.client is not None:
            close = getattr(self.client, "close", None)
            if close:
                await asyncio.to_thread(close)
            self.client = None

    @staticmethod
    def _check_receipt(receipt: Any, what: str) -> None:
        status = getattr(receipt, "status", None)
        if status != ResponseCode.SUCCESS:
            try:
                name = ResponseCode(status).name
            except ValueError:
                name = str(status)
            raise PublishFailure(f"{what} failed with status {name}")

    def _create_topic(self, memo: str) -> str:
        receipt = (
            TopicCreateTransaction(memo=memo, admin_key=self.operator_key.public_key())
            .freeze_with(self.client)
            .sign(self.operator_key)
            .execute(self.client)
        )
        self._check_receipt(receipt, "Topic creation")
        if receipt.topic_id is None:
            raise PublishFailure("Topic creation returned no topic id")
        return str(receipt.topic_id)

    def _submit(self, topic_id: str, payload: bytes) -> int:
        receipt = (
            TopicMessageSubmitTransaction(
                topic_id=TopicId.from_string(topic_id),
                message=payload.decode("utf-8"),
            )
            .freeze_with(self.client)
            .sign(self.operator_key)
            .execute(self.client)
        )
        self._check_receipt(receipt, f"Message submit to {topic_id}")
        sequence = getattr(receipt, "topic_sequence_number", None)
        if sequence is None:
            raise PublishFailure(f"Receipt for {topic_id} carries no sequence number")
        return int(sequence)

    async def ensure_topic(self, hint: str) -> str:
        if self.client is None:
            raise RuntimeError("Hedera client not initialized. Call init() first.")
        try:
            topic_id = await asyncio.to_thread(self._create_topic, hint)
        except PublishFailure:
            raise
        except Exception as e:
            raise PublishFailure(f"Topic creation failed: {e}") from e
        logger.info(f"Created topic {topic_id} ({hint})")
        return topic_id

    async def publish(self, topic_id: str, payload: bytes) -> DeliveryReceipt:
        if self.client is None:
            raise RuntimeError("Hedera client not initialized. Call init() first.")
        try:
            sequence = await asyncio.to_thread(self._submit, topic_id, payload)
        except PublishFailure:
            raise
        except Exception as e:
            raise PublishFailure(f"Message submit to {topic_id} failed: {e}") from e
        return DeliveryReceipt(topic_id=topic_id, sequence=sequence)
