from unittest.mock import AsyncMock, MagicMock

import pytest

from signal_relay.client.coingecko import CoinGeckoAPIError, CoinGeckoClient


def _session(status: int = 200, json_data=None, text: str = "") -> MagicMock:
    mock_response = MagicMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=json_data)
    mock_response.text = AsyncMock(return_value=text)

    mock_session = MagicMock()
    mock_session.get = AsyncMock(return_value=mock_response)
    return mock_session


async def test_get_price():
    client = CoinGeckoClient()
    client._session = _session(json_data={"hedera-hashgraph": {"usd": 0.0712}})

    quote = await client.get_price("HBAR")

    assert quote.value_usd == 0.0712
    assert quote.source == "coingecko"
    client._session.get.assert_called_once()
    _, kwargs = client._session.get.call_args
    assert kwargs["params"] == {"ids": "hedera-hashgraph", "vs_currencies": "usd"}


async def test_missing_price_is_zero():
    client = CoinGeckoClient()
    client._session = _session(json_data={})

    quote = await client.get_price("HBAR")

    assert quote.value_usd == 0
    assert quote.usable is False


async def test_request_handles_error():
    client = CoinGeckoClient()
    client._session = _session(
        status=429, text='{"status": {"error_code": 429, "error_message": "rate limited"}}'
    )

    with pytest.raises(CoinGeckoAPIError, match="rate limited"):
        await client.get_price("HBAR")
