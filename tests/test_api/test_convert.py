# nosec B101


from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_conversion_service
from api.main import app
from domain.exceptions.rate import NoRatesFoundError


@pytest.fixture
def mock_conversion_service():
    mock_service = MagicMock()
    mock_service.convert = AsyncMock(return_value={
        'from_currency': 'USD',
        'to_currency': 'EUR',
        'original_amount': Decimal('100'),
        'converted_amount': Decimal('85.00'),
        'exchange_rate': Decimal('0.85'),
        'rate_type': 'sell',
        'timestamp': datetime(2025, 9, 30, 10, 0, tzinfo=UTC),
        'source': 'fixerio',
        'note': 'mid',
        'cached': True,
    })
    return mock_service


@pytest.fixture
def client(mock_conversion_service):
    app.dependency_overrides[get_conversion_service] = lambda: mock_conversion_service
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def test_convert_currency_success(client, mock_conversion_service):
    response = client.get('/api/convert/usd/eur/100', params={'source': 'fixerio'})

    assert response.status_code == 200
    data = response.json()

    assert data['from_currency'] == 'USD'
    assert data['to_currency'] == 'EUR'
    assert Decimal(data['original_amount']) == Decimal('100')
    assert Decimal(data['converted_amount']) == Decimal('85.00')
    assert Decimal(data['exchange_rate']) == Decimal('0.85')
    assert data['cached'] is True
    assert 'timestamp' in data

    mock_conversion_service.convert.assert_awaited_once_with(
        Decimal('100'), 'USD', 'EUR', rate_type=None, source='fixerio', max_age_cache=None
    )


def test_convert_decimal_amount(client, mock_conversion_service):
    response = client.get('/api/convert/USD/EUR/50.75')

    assert response.status_code == 200
    assert mock_conversion_service.convert.call_args[0][0] == Decimal('50.75')


@pytest.mark.parametrize('amount', ['0', '-10', 'abc'])
def test_convert_invalid_amount(client, amount):
    response = client.get(f'/api/convert/USD/EUR/{amount}')
    assert response.status_code == 422


def test_convert_no_rate(client, mock_conversion_service):
    mock_conversion_service.convert.side_effect = NoRatesFoundError()

    response = client.get('/api/convert/USD/EUR/10')

    assert response.status_code == 404
