import pytest

from signal_relay.errors import InvalidCredential
from signal_relay.publisher.credentials import parse_operator_key, read_operator_key


def _only(prefix: str, tag: str):
    def decode(value: str) -> str:
        if not value.startswith(prefix):
            raise ValueError("bad key")
        return f"{tag}:{value}"

    return decode


def _never(value: str) -> str:
    raise ValueError("bad key")


def test_first_successful_decoder_wins():
    decoders = [("der", _only("302e", "der")), ("ed25519", _only("", "ed25519"))]

    assert parse_operator_key("302e0201", decoders) == "der:302e0201"
    assert parse_operator_key("abcd", decoders) == "ed25519:abcd"


def test_strips_hex_prefix_when_needed():
    decoders = [("ed25519", _only("ab", "ed25519"))]

    assert parse_operator_key("  0xabcd \n", decoders) == "ed25519:abcd"


def test_adds_hex_prefix_when_needed():
    decoders = [("ecdsa", _only("0x", "ecdsa"))]

    assert parse_operator_key("abcd", decoders) == "ecdsa:0xabcd"


def test_all_decoders_fail():
    with pytest.raises(InvalidCredential) as exc_info:
        parse_operator_key("secret-material", [("der", _never), ("ed25519", _never)])
    assert "secret-material" not in str(exc_info.value)


def test_empty_key():
    with pytest.raises(InvalidCredential):
        parse_operator_key("   ", [("der", _only("", "der"))])


def test_read_operator_key(tmp_path):
    key_file = tmp_path / "operator.key"
    key_file.write_text("302e020100\n")

    assert read_operator_key("inline", str(key_file)) == "inline"
    assert read_operator_key(None, str(key_file)) == "302e020100"
    with pytest.raises(InvalidCredential):
        read_operator_key(None, str(tmp_path / "missing.key"))
    with pytest.raises(InvalidCredential):
        read_operator_key(None, None)
