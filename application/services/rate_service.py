import logging
from datetime import UTC, datetime
from decimal import Decimal

from application.services.aggregation import aggregate
from application.services.orchestrator import ProviderQueryOrchestrator
from application.services.rate_cache import FreshnessCacheLookup
from domain.exceptions.rate import RequestError
from domain.models.rate import AggregationPolicy, CachedRatePair, RateObservation, SourceSelection
from infrastructure.persistence.repositories.rate import RateRepository
from infrastructure.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_CACHE = 4 * 3600


class RateService:
	def __init__(
		self,
		repository: RateRepository,
		registry: ProviderRegistry,
		max_age_cache: int = DEFAULT_MAX_AGE_CACHE,
		default_rate_type: str = 'sell',
		default_source: str = ':any',
	):
		self.repository = repository
		self.registry = registry
		self.cache = FreshnessCacheLookup(repository)
		self.orchestrator = ProviderQueryOrchestrator(registry, repository)
		self.max_age_cache = max_age_cache
		self.default_rate_type = default_rate_type
		self.default_source = default_source

	def _max_age(self, max_age_cache: float | None) -> float:
		if max_age_cache is None:
			return self.max_age_cache
		if max_age_cache < 0:
			raise RequestError('max_age_cache must not be negative')
		return max_age_cache

	async def get_spot_rate(
		self,
		from_currency: str,
		to_currency: str,
		rate_type: str | None = None,
		source: str | SourceSelection | None = None,
		max_age_cache: float | None = None,
	) -> RateObservation:
		"""Get the spot (latest) rate for one pair."""
		result = await self.lookup_spot_rate(from_currency, to_currency, rate_type, source, max_age_cache)
		return result.observation

	async def lookup_spot_rate(
		self,
		from_currency: str,
		to_currency: str,
		rate_type: str | None = None,
		source: str | SourceSelection | None = None,
		max_age_cache: float | None = None,
	) -> CachedRatePair:
		"""Like get_spot_rate, but also reports whether the rate came from the store.

		Raises:
			RequestError: missing currencies, bad source, or ':all' as source
			NoProvidersAvailableError: cache miss and no providers registered
			NoRatesFoundError: cache miss and no provider answered
			StorageUnavailableError: the rate store cannot be read or written
		"""
		if not from_currency:
			raise RequestError('Please specify from')
		if not to_currency:
			raise RequestError('Please specify to')
		selection = SourceSelection.parse(source or self.default_source)
		if selection.policy is AggregationPolicy.ALL:
			raise RequestError('Source cannot be :all for get_spot_rate()')
		rate_type = self.default_rate_type if rate_type is None else rate_type
		max_age = self._max_age(max_age_cache)
		now = datetime.now(UTC)

		if from_currency == to_currency:
			identity = RateObservation(
				from_currency=from_currency,
				to_currency=to_currency,
				rate_type=rate_type,
				rate=Decimal(1),
				note='identity',
				query_time=now,
			)
			return CachedRatePair(observation=identity, cached=False)

		rows = await self.cache.spot_rate(from_currency, to_currency, rate_type, selection, max_age, now=now)
		cached = bool(rows)
		if not cached:
			logger.debug('There are no cached rates that are recent enough, querying remote source(s) ...')
			rows = await self.orchestrator.fetch_spot_rate(from_currency, to_currency, rate_type, selection)

		rate = aggregate(rows, selection.policy)[0]
		logger.info(
			f'Spot rate {rate.pair} {rate.rate_type} = {rate.rate} '
			f'(source={rate.source}, policy={selection}, cached={cached})'
		)
		return CachedRatePair(observation=rate, cached=cached)

	async def get_all_spot_rates(
		self,
		source: str | SourceSelection | None,
		max_age_cache: float | None = None,
	) -> list[CachedRatePair]:
		"""Get every spot rate a source (or set of sources) publishes."""
		if not source:
			raise RequestError('Please specify source')
		selection = SourceSelection.parse(source)
		max_age = self._max_age(max_age_cache)
		now = datetime.now(UTC)

		rows = await self.cache.all_spot_rates(selection, max_age, now=now)
		cached = bool(rows)
		if not cached:
			logger.debug('There are no cached rate tables that are recent enough, querying remote source(s) ...')
			rows = await self.orchestrator.fetch_all_spot_rates(selection)

		rates = aggregate(rows, selection.policy)
		logger.info(f'Returning {len(rates)} spot rates (policy={selection}, cached={cached})')
		return [CachedRatePair(observation=rate, cached=cached) for rate in rates]

	async def get_rate_history(
		self,
		from_currency: str,
		to_currency: str,
		rate_type: str | None = None,
		since: datetime | None = None,
		limit: int = 100,
	) -> list[RateObservation]:
		if not from_currency or not to_currency:
			raise RequestError('Please specify from and to')
		if limit < 1:
			raise RequestError('limit must be at least 1')
		return await self.repository.history(
			from_currency, to_currency, rate_type=rate_type, since=since, limit=limit
		)

	def list_sources(self) -> list[str]:
		return self.registry.list_providers()
