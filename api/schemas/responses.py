from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from domain.models.rate import CachedRatePair, RateObservation


class RateResponse(BaseModel):
	pair: str = Field(..., description='FROM/TO currency pair')
	from_currency: str = Field(..., description='Source currency code')
	to_currency: str = Field(..., description='Target currency code')
	type: str = Field(..., description='Rate type, e.g. sell or buy')
	rate: Decimal = Field(..., description='Units of to_currency per unit of from_currency')
	source: str | None = Field(None, description='Provider of the rate, empty for synthetic averages')
	note: str | None = Field(None, description='How the rate was derived')
	mtime: datetime | None = Field(None, description='When the provider last updated the rate')
	query_time: datetime | None = Field(None, description='When the rate was fetched')
	cached: bool = Field(False, description='Whether the rate was served from the cache')
	cache_time: datetime | None = Field(None, description='When the cached rate was stored, empty for fresh rates')

	@classmethod
	def from_observation(
		cls, observation: RateObservation, cached: bool = False, cache_time: datetime | None = None
	) -> 'RateResponse':
		return cls(
			pair=observation.pair,
			from_currency=observation.from_currency,
			to_currency=observation.to_currency,
			type=observation.rate_type,
			rate=observation.rate,
			source=observation.source,
			note=observation.note,
			mtime=observation.source_mtime,
			query_time=observation.query_time,
			cached=cached,
			cache_time=cache_time,
		)

	@classmethod
	def from_cached(cls, result: CachedRatePair) -> 'RateResponse':
		return cls.from_observation(result.observation, cached=result.cached, cache_time=result.cache_time)

	model_config = ConfigDict(
		json_schema_extra={
			'example': {
				'pair': 'USD/IDR',
				'from_currency': 'USD',
				'to_currency': 'IDR',
				'type': 'sell',
				'rate': 15230.5,
				'source': 'fixerio',
				'note': 'mid',
				'mtime': '2025-09-27T10:00:00Z',
				'query_time': '2025-09-27T10:30:00Z',
				'cached': True,
				'cache_time': '2025-09-27T10:30:00Z',
			}
		}
	)


class RateTableResponse(BaseModel):
	source: str = Field(..., description='Source or policy the table was requested for')
	rates: list[RateResponse]


class ConversionResponse(BaseModel):
	from_currency: str = Field(..., description='Source currency code')
	to_currency: str = Field(..., description='Target currency code')
	original_amount: Decimal = Field(..., description='Original amount requested')
	converted_amount: Decimal = Field(..., description='Converted amount')
	exchange_rate: Decimal = Field(..., description='Exchange rate used for conversion')
	rate_type: str = Field(..., description='Rate type used')
	timestamp: datetime | None = Field(None, description='When the rate was fetched')
	source: str | None = Field(None, description='Provider of the rate')
	note: str | None = Field(None, description='How the rate was derived')
	cached: bool = Field(False, description='Whether the rate was served from the cache')


class SourcesResponse(BaseModel):
	sources: list[str] = Field(description='Registered provider identifiers')
	policies: list[str] = Field(description='Special source values accepted by the rate endpoints')

	model_config = ConfigDict(
		json_schema_extra={'examples': [{'sources': ['currencyapi', 'fixerio'], 'policies': [':any', ':all']}]}
	)


class RateHistoryResponse(BaseModel):
	pair: str
	rates: list[RateResponse]
