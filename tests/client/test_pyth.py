import math
from unittest.mock import AsyncMock, MagicMock

import pytest

from signal_relay.client.pyth import HBAR_USD_FEED_ID, PythAPIError, PythClient


def _session(status: int = 200, json_data=None, text: str = "") -> MagicMock:
    mock_response = MagicMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=json_data)
    mock_response.text = AsyncMock(return_value=text)

    mock_session = MagicMock()
    mock_session.get = AsyncMock(return_value=mock_response)
    return mock_session


def test_pyth_client_defaults():
    client = PythClient()
    assert client.base_url == "https://hermes.pyth.network"
    assert client.feed_id("hbar") == HBAR_USD_FEED_ID


async def test_get_price_applies_exponent():
    client = PythClient()
    client._session = _session(
        json_data={"parsed": [{"id": HBAR_USD_FEED_ID, "price": {"price": "7512345", "expo": -8}}]}
    )

    quote = await client.get_price("HBAR")

    assert math.isclose(quote.value_usd, 0.07512345)
    assert quote.source == "pyth"
    assert quote.usable is True
    _, kwargs = client._session.get.call_args
    assert ("ids[]", HBAR_USD_FEED_ID) in kwargs["params"]


async def test_get_price_missing_data_is_unusable():
    client = PythClient()
    client._session = _session(json_data={"parsed": []})

    quote = await client.get_price("HBAR")

    assert quote.value_usd == 0
    assert quote.usable is False


async def test_request_handles_error():
    client = PythClient()
    client._session = _session(status=404, text='{"message": "Price ids not found"}')

    with pytest.raises(PythAPIError, match="Price ids not found"):
        await client.get_price("HBAR")


async def test_unknown_symbol():
    client = PythClient()
    client._session = _session(json_data={})

    with pytest.raises(ValueError):
        await client.get_price("DOGE")


async def test_request_without_session():
    client = PythClient()

    with pytest.raises(RuntimeError):
        await client.get_price("HBAR")
