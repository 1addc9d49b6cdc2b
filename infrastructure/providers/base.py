from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from domain.exceptions.rate import NotSupportedError, ProviderError
from domain.models.rate import RateObservation, quantize_rate

Rates = dict[str, Decimal]


class RateSource(ABC):
	"""Capability set shared by every provider variant.

	Each operation either returns observations, raises NotSupportedError when
	the provider does not offer it, or raises any other exception (normally
	ProviderError) on failure.
	"""

	@property
	@abstractmethod
	def name(self) -> str:
		...

	async def get_spot_rate(self, from_currency: str, to_currency: str, rate_type: str) -> RateObservation:
		raise NotSupportedError(f'{self.name} does not provide spot rates')

	async def get_all_spot_rates(self) -> list[RateObservation]:
		raise NotSupportedError(f'{self.name} does not provide a full rate table')

	async def get_historical_rate(
		self, from_currency: str, to_currency: str, rate_type: str, as_of: date
	) -> RateObservation:
		raise NotSupportedError(f'{self.name} does not provide historical rates')

	async def close(self) -> None:
		pass

	def __repr__(self):
		return f'<{self.__class__.__name__}(name={self.name})>'


class MidMarketAPIProvider(RateSource):
	"""Base for JSON APIs that publish a single mid-market rate per pair.

	The mid rate is reported for both buy and sell. The full table is built
	around `base_currency` in both directions, inverse rates carrying the
	note '1/mid'.
	"""

	BASE_URL: str = ''
	LABEL: str = ''
	RATE_TYPES = ('buy', 'sell')

	def __init__(
		self,
		client: httpx.AsyncClient | None = None,
		timeout: int = 10,
		base_currency: str = 'USD',
		extra_headers: dict | None = None,
	):
		headers = {'accept': 'application/json'}
		if extra_headers:
			headers.update(extra_headers)
		self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout), headers=headers)
		self.base_currency = base_currency

	@abstractmethod
	def _auth_params(self, params: dict[str, Any]) -> dict[str, Any]:
		...

	@abstractmethod
	def _check_payload(self, data: dict[str, Any]) -> None:
		"""Raise ProviderError when the API reports an error inside a 200 response."""

	@abstractmethod
	async def _fetch_latest(self, base: str, symbols: list[str] | None) -> tuple[Rates, datetime | None]:
		...

	async def _fetch_historical(
		self, base: str, symbols: list[str], as_of: date
	) -> tuple[Rates, datetime | None]:
		raise NotSupportedError(f'{self.name} does not provide historical rates')

	async def _request(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
		url = f'{self.BASE_URL}/{endpoint}'
		try:
			response = await self._client.get(url, params=self._auth_params(params))
			response.raise_for_status()
			data = response.json()
		except httpx.HTTPStatusError as e:
			raise ProviderError(
				f'{self.LABEL} HTTP error {e.response.status_code}: {e.response.text[:200]}'
			) from e
		except httpx.RequestError as e:
			raise ProviderError(f'{self.LABEL} request failed: {e.__class__.__name__}') from e
		except ValueError as e:
			raise ProviderError(f'{self.LABEL} response parsing error: {str(e)}') from e

		if not isinstance(data, dict):
			raise ProviderError(f'{self.LABEL} response parsing error: expected an object')
		self._check_payload(data)
		return data

	def _check_rate_type(self, rate_type: str) -> None:
		if rate_type not in self.RATE_TYPES:
			raise NotSupportedError(f'{self.name} only provides {"/".join(self.RATE_TYPES)} rate types')

	@staticmethod
	def _to_decimal(value: Any, code: str) -> Decimal:
		try:
			rate = Decimal(str(value))
		except (InvalidOperation, TypeError) as e:
			raise ProviderError(f'Invalid rate for {code}: {value!r}') from e
		if not rate.is_finite() or rate <= 0:
			raise ProviderError(f'Invalid rate for {code}: {value!r}')
		return rate

	def _pick(self, rates: Rates, from_currency: str, to_currency: str) -> Decimal:
		try:
			rate = rates[to_currency]
		except KeyError as e:
			raise ProviderError(f'Missing rate for {from_currency}/{to_currency}') from e
		try:
			quantize_rate(rate)
		except ValueError as e:
			raise ProviderError(f'Unusable rate for {from_currency}/{to_currency}: {e}') from e
		return rate

	async def get_spot_rate(self, from_currency: str, to_currency: str, rate_type: str) -> RateObservation:
		self._check_rate_type(rate_type)
		rates, mtime = await self._fetch_latest(from_currency, [to_currency])
		return RateObservation(
			from_currency=from_currency,
			to_currency=to_currency,
			rate_type=rate_type,
			rate=self._pick(rates, from_currency, to_currency),
			source=self.name,
			note='mid',
			source_mtime=mtime,
		)

	async def get_all_spot_rates(self) -> list[RateObservation]:
		base = self.base_currency
		rates, mtime = await self._fetch_latest(base, None)
		if not rates:
			raise ProviderError(f'{self.LABEL} returned no rates for {base}')

		observations = []
		for code in sorted(rates):
			if code == base:
				continue
			rate = rates[code]
			pairs = [(base, code, rate, 'mid'), (code, base, Decimal(1) / rate, '1/mid')]
			for from_currency, to_currency, value, note in pairs:
				# rows that round to zero at 8 places are left out of the table
				try:
					value = quantize_rate(value)
				except ValueError:
					continue
				for rate_type in self.RATE_TYPES:
					observations.append(
						RateObservation(
							from_currency=from_currency, to_currency=to_currency, rate_type=rate_type,
							rate=value, source=self.name, note=note, source_mtime=mtime,
						)
					)
		return observations

	async def get_historical_rate(
		self, from_currency: str, to_currency: str, rate_type: str, as_of: date
	) -> RateObservation:
		self._check_rate_type(rate_type)
		rates, mtime = await self._fetch_historical(from_currency, [to_currency], as_of)
		return RateObservation(
			from_currency=from_currency,
			to_currency=to_currency,
			rate_type=rate_type,
			rate=self._pick(rates, from_currency, to_currency),
			source=self.name,
			note='mid',
			source_mtime=mtime,
		)

	async def close(self) -> None:
		await self._client.aclose()
