from datetime import datetime
from typing import Any

import httpx

from domain.exceptions.rate import ProviderError

from .base import MidMarketAPIProvider, Rates


class CurrencyAPIProvider(MidMarketAPIProvider):
	"""CurrencyAPI latest rates; authentication goes in the `apikey` header."""

	BASE_URL = 'https://api.currencyapi.com/v3'
	LABEL = 'CurrencyAPI'

	def __init__(
		self, api_key: str, client: httpx.AsyncClient | None = None, timeout: int = 10, base_currency: str = 'USD'
	):
		super().__init__(
			client=client, timeout=timeout, base_currency=base_currency, extra_headers={'apikey': api_key}
		)
		self.api_key = api_key

	@property
	def name(self) -> str:
		return 'currencyapi'

	def _auth_params(self, params: dict[str, Any]) -> dict[str, Any]:
		return params

	def _check_payload(self, data: dict[str, Any]) -> None:
		if 'data' not in data:
			message = data.get('message', "Invalid response format: missing 'data' field")
			raise ProviderError(f'CurrencyAPI API error: {message}')

	async def _fetch_latest(self, base: str, symbols: list[str] | None) -> tuple[Rates, datetime | None]:
		params = {'base_currency': base}
		if symbols:
			params['currencies'] = ','.join(symbols)
		data = await self._request('latest', params)

		rates = {}
		for code, info in data['data'].items():
			value = info.get('value') if isinstance(info, dict) else None
			rates[code] = self._to_decimal(value, code)

		last_updated = data.get('meta', {}).get('last_updated_at')
		mtime = datetime.fromisoformat(last_updated.replace('Z', '+00:00')) if last_updated else None
		return rates, mtime
