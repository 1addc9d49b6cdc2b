import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum, IntEnum

from domain.exceptions.rate import RequestError

RATE_QUANTUM = Decimal('0.00000001')

_SOURCE_NAME = re.compile(r'\A\w+\Z')


def quantize_rate(rate: Decimal) -> Decimal:
	"""Round a rate to the stored precision.

	Raises ValueError when the rounded rate is not positive or does not fit.
	"""
	try:
		rounded = rate.quantize(RATE_QUANTUM)
	except InvalidOperation as e:
		raise ValueError(f'Rate {rate} cannot be stored with 8 decimal places') from e
	if rounded <= 0:
		raise ValueError(f'Rate {rate} rounds to {rounded} at 8 decimal places')
	return rounded


class CollectionKey(IntEnum):
	"""Which query shape produced a stored row."""

	SPOT_RATE = 1
	ALL_SPOT_RATES = 2


class AggregationPolicy(str, Enum):
	ANY = 'any'
	ALL = 'all'
	SPECIFIC = 'specific'
	HIGHEST = 'highest'
	LOWEST = 'lowest'
	NEWEST = 'newest'
	OLDEST = 'oldest'
	AVERAGE = 'average'

	@property
	def is_multi_source(self) -> bool:
		return self not in (AggregationPolicy.ANY, AggregationPolicy.SPECIFIC)


@dataclass(frozen=True)
class SourceSelection:
	policy: AggregationPolicy
	source: str | None = None

	@classmethod
	def parse(cls, value: 'str | SourceSelection') -> 'SourceSelection':
		"""Parse ':any', ':highest', ... or a bare provider identifier."""
		if isinstance(value, SourceSelection):
			return value
		if not value:
			raise RequestError('Please specify source')

		if value.startswith(':'):
			try:
				policy = AggregationPolicy(value[1:])
			except ValueError:
				raise RequestError(f'Unknown source policy {value!r}') from None
			if policy is AggregationPolicy.SPECIFIC:
				raise RequestError(f'Unknown source policy {value!r}')
			return cls(policy=policy)

		if not _SOURCE_NAME.match(value):
			raise RequestError(f'Invalid source name {value!r}')
		return cls(policy=AggregationPolicy.SPECIFIC, source=value)

	def __str__(self) -> str:
		if self.policy is AggregationPolicy.SPECIFIC:
			return self.source or ''
		return f':{self.policy.value}'


@dataclass(frozen=True)
class RateObservation:
	"""A single quote for a currency pair at a point in time."""

	from_currency: str
	to_currency: str
	rate_type: str
	rate: Decimal
	source: str | None = None
	note: str | None = None
	query_time: datetime | None = None
	source_mtime: datetime | None = None
	collection_key: CollectionKey | None = None

	def __post_init__(self):
		if not isinstance(self.rate, Decimal):
			object.__setattr__(self, 'rate', Decimal(str(self.rate)))
		if self.rate <= 0:
			raise ValueError(f'Rate for {self.pair} must be positive, got {self.rate}')

	@property
	def pair(self) -> str:
		return f'{self.from_currency}/{self.to_currency}'

	@property
	def group_key(self) -> tuple[str, str]:
		return (self.pair, self.rate_type)


@dataclass(frozen=True)
class CachedRatePair:
	"""Rate returned to callers, flagged with whether it came from the store."""

	observation: RateObservation
	cached: bool

	@property
	def rate(self) -> Decimal:
		return self.observation.rate

	@property
	def cache_time(self) -> datetime | None:
		return self.observation.query_time if self.cached else None
