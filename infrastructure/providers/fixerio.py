from datetime import UTC, date, datetime
from typing import Any

import httpx

from domain.exceptions.rate import ProviderError

from .base import MidMarketAPIProvider, Rates


class FixerIOProvider(MidMarketAPIProvider):
	BASE_URL = 'http://data.fixer.io/api'
	LABEL = 'Fixer.io'

	def __init__(
		self, api_key: str, client: httpx.AsyncClient | None = None, timeout: int = 10, base_currency: str = 'EUR'
	):
		super().__init__(client=client, timeout=timeout, base_currency=base_currency)
		self.api_key = api_key

	@property
	def name(self) -> str:
		return 'fixerio'

	def _auth_params(self, params: dict[str, Any]) -> dict[str, Any]:
		return {**params, 'access_key': self.api_key}

	def _check_payload(self, data: dict[str, Any]) -> None:
		if not data.get('success', False):
			info = data.get('error', {}).get('info', 'Unknown error')
			raise ProviderError(f'Fixer.io API error: {info}')

	def _parse(self, data: dict[str, Any]) -> tuple[Rates, datetime | None]:
		rates = {code: self._to_decimal(value, code) for code, value in data.get('rates', {}).items()}
		timestamp = data.get('timestamp')
		mtime = datetime.fromtimestamp(timestamp, tz=UTC) if timestamp else None
		return rates, mtime

	async def _fetch_latest(self, base: str, symbols: list[str] | None) -> tuple[Rates, datetime | None]:
		params = {'base': base}
		if symbols:
			params['symbols'] = ','.join(symbols)
		return self._parse(await self._request('latest', params))

	async def _fetch_historical(
		self, base: str, symbols: list[str], as_of: date
	) -> tuple[Rates, datetime | None]:
		params = {'base': base, 'symbols': ','.join(symbols)}
		return self._parse(await self._request(as_of.isoformat(), params))
