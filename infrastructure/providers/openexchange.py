from datetime import UTC, date, datetime
from typing import Any

import httpx

from domain.exceptions.rate import ProviderError

from .base import MidMarketAPIProvider, Rates


class OpenExchangeProvider(MidMarketAPIProvider):
	BASE_URL = 'https://openexchangerates.org/api'
	LABEL = 'OpenExchange'

	def __init__(
		self, app_id: str, client: httpx.AsyncClient | None = None, timeout: int = 10, base_currency: str = 'USD'
	):
		super().__init__(client=client, timeout=timeout, base_currency=base_currency)
		self.app_id = app_id

	@property
	def name(self) -> str:
		return 'openexchange'

	def _auth_params(self, params: dict[str, Any]) -> dict[str, Any]:
		return {**params, 'app_id': self.app_id}

	def _check_payload(self, data: dict[str, Any]) -> None:
		if data.get('error'):
			message = data.get('description', data.get('message', 'Unknown error'))
			raise ProviderError(f'OpenExchange API error: {message}')

	def _parse(self, data: dict[str, Any]) -> tuple[Rates, datetime | None]:
		rates = {code: self._to_decimal(value, code) for code, value in data.get('rates', {}).items()}
		timestamp = data.get('timestamp')
		mtime = datetime.fromtimestamp(timestamp, tz=UTC) if timestamp else None
		return rates, mtime

	async def _fetch_latest(self, base: str, symbols: list[str] | None) -> tuple[Rates, datetime | None]:
		params = {'base': base}
		if symbols:
			params['symbols'] = ','.join(symbols)
		return self._parse(await self._request('latest.json', params))

	async def _fetch_historical(
		self, base: str, symbols: list[str], as_of: date
	) -> tuple[Rates, datetime | None]:
		params = {'base': base, 'symbols': ','.join(symbols)}
		return self._parse(await self._request(f'historical/{as_of.isoformat()}.json', params))
