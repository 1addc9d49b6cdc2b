from decimal import Decimal

from application.services.rate_service import RateService
from domain.exceptions.rate import RequestError
from domain.models.rate import SourceSelection


class ConversionService:
	"""Converts amounts with the current spot rate.

	There is no stale-rate fallback: when the rate service cannot produce a
	fresh enough rate, its error propagates.
	"""

	def __init__(self, rate_service: RateService):
		self.rate_service = rate_service

	async def convert(
		self,
		amount: Decimal,
		from_currency: str,
		to_currency: str,
		rate_type: str | None = None,
		source: str | SourceSelection | None = None,
		max_age_cache: float | None = None,
	) -> dict:
		if amount <= 0:
			raise RequestError('Amount must be positive')

		result = await self.rate_service.lookup_spot_rate(
			from_currency, to_currency, rate_type=rate_type, source=source, max_age_cache=max_age_cache
		)
		rate = result.observation

		return {
			'from_currency': from_currency,
			'to_currency': to_currency,
			'original_amount': amount,
			'converted_amount': amount * rate.rate,
			'exchange_rate': rate.rate,
			'rate_type': rate.rate_type,
			'timestamp': rate.query_time,
			'source': rate.source,
			'note': rate.note,
			'cached': result.cached,
		}
