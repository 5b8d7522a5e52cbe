"""Operator 私钥解析

Keys show up as DER hex, raw ED25519 hex or raw ECDSA hex, with or without a
``0x`` prefix. Decoders are tried in a fixed order; the first success wins.
"""

import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from hiero_sdk_python import PrivateKey

from signal_relay.errors import InvalidCredential

logger = logging.getLogger(__name__)

Decoder = tuple[str, Callable[[str], Any]]

DEFAULT_DECODERS: list[Decoder] = [
    ("der", lambda s: PrivateKey.from_string_der(s)),
    ("ed25519", lambda s: PrivateKey.from_string_ed25519(s)),
    ("ecdsa", lambda s: PrivateKey.from_string_ecdsa(s)),
    ("generic", lambda s: PrivateKey.from_string(s)),
]


def _candidates(raw: str) -> list[str]:
    """原样优先, 然后去掉/补上 0x 前缀"""
    if raw.startswith("0x"):
        return [raw, raw[2:]]
    return [raw, f"0x{raw}"]


def parse_operator_key(raw: str, decoders: Sequence[Decoder] | None = None) -> Any:
    value = (raw or "").strip()
    if not value:
        raise InvalidCredential("Operator key is empty")

    decoders = DEFAULT_DECODERS if decoders is None else decoders
    for candidate in _candidates(value):
        for name, decode in decoders:
            try:
                key = decode(candidate)
            except Exception:
                continue
            logger.debug(f"Operator key decoded as {name}")
            return key

    raise InvalidCredential("Unable to parse operator key. Provide a DER, ED25519 or ECDSA key.")


def read_operator_key(operator_key: str | None, operator_key_file: str | None) -> str:
    """配置中的私钥优先, 否则读取私钥文件"""
    if operator_key:
        return operator_key
    if operator_key_file:
        path = Path(operator_key_file)
        if path.exists():
            return path.read_text().strip()
    raise InvalidCredential("Set hedera.operator_key or hedera.operator_key_file")
