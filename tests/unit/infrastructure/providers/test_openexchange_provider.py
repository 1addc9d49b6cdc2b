# nosec B101


from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from domain.exceptions.rate import ProviderError
from infrastructure.providers.openexchange import OpenExchangeProvider


def _client(payload):
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_response = Mock()
    mock_response.json.return_value = payload
    mock_response.raise_for_status = Mock()
    mock_client.get.return_value = mock_response
    return mock_client


@pytest.mark.asyncio
async def test_get_spot_rate_success():
    mock_client = _client({'timestamp': 1758967200, 'base': 'USD', 'rates': {'IDR': 16650.5}})
    provider = OpenExchangeProvider(app_id='app', client=mock_client)

    rate = await provider.get_spot_rate('USD', 'IDR', 'buy')

    assert rate.rate == Decimal('16650.5')
    assert rate.source == 'openexchange'
    call_args = mock_client.get.call_args
    assert call_args[0][0] == 'https://openexchangerates.org/api/latest.json'
    assert call_args[1]['params'] == {'base': 'USD', 'symbols': 'IDR', 'app_id': 'app'}


@pytest.mark.asyncio
async def test_get_spot_rate_api_error():
    mock_client = _client({'error': True, 'status': 401, 'message': 'invalid_app_id', 'description': 'Invalid App ID'})
    provider = OpenExchangeProvider(app_id='bad', client=mock_client)

    with pytest.raises(ProviderError) as exc_info:
        await provider.get_spot_rate('USD', 'IDR', 'sell')

    assert 'Invalid App ID' in str(exc_info.value)


@pytest.mark.asyncio
async def test_non_object_payload_is_rejected():
    provider = OpenExchangeProvider(app_id='app', client=_client(['not', 'a', 'dict']))

    with pytest.raises(ProviderError):
        await provider.get_spot_rate('USD', 'IDR', 'sell')


@pytest.mark.asyncio
async def test_get_all_spot_rates_uses_configured_base():
    mock_client = _client({'base': 'USD', 'rates': {'USD': 1, 'EUR': 0.8, 'GBP': 0.5}})
    provider = OpenExchangeProvider(app_id='app', client=mock_client, base_currency='USD')

    rates = await provider.get_all_spot_rates()

    assert len(rates) == 8
    by_key = {(r.pair, r.rate_type): r.rate for r in rates}
    assert by_key[('GBP/USD', 'sell')] == Decimal('2')
    assert by_key[('USD/EUR', 'buy')] == Decimal('0.8')


@pytest.mark.asyncio
async def test_get_historical_rate_endpoint():
    mock_client = _client({'base': 'USD', 'rates': {'EUR': 0.9}})
    provider = OpenExchangeProvider(app_id='app', client=mock_client)

    await provider.get_historical_rate('USD', 'EUR', 'sell', date(2024, 2, 29))

    assert mock_client.get.call_args[0][0] == 'https://openexchangerates.org/api/historical/2024-02-29.json'
