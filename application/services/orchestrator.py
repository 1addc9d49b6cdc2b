import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from domain.exceptions.rate import NoProvidersAvailableError, NotSupportedError
from domain.models.rate import (
	AggregationPolicy,
	CollectionKey,
	RateObservation,
	SourceSelection,
	quantize_rate,
)
from infrastructure.persistence.repositories.rate import RateRepository
from infrastructure.providers.base import RateSource
from infrastructure.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)

ProviderCall = Callable[[RateSource], Awaitable[list[RateObservation]]]


class ProviderQueryOrchestrator:
	"""Queries providers in order on a cache miss and records every answer."""

	def __init__(
		self,
		registry: ProviderRegistry,
		repository: RateRepository,
		clock: Callable[[], datetime] | None = None,
	):
		self.registry = registry
		self.repository = repository
		self._clock = clock or (lambda: datetime.now(UTC))

	def candidates(self, selection: SourceSelection) -> list[tuple[str, RateSource]]:
		if len(self.registry) == 0:
			raise NoProvidersAvailableError()
		if selection.policy is AggregationPolicy.SPECIFIC:
			return [(selection.source, self.registry.resolve(selection.source))]
		return [(name, self.registry.resolve(name)) for name in self.registry.list_providers()]

	async def fetch_spot_rate(
		self, from_currency: str, to_currency: str, rate_type: str, selection: SourceSelection
	) -> list[RateObservation]:
		async def call(provider: RateSource) -> list[RateObservation]:
			return [await provider.get_spot_rate(from_currency, to_currency, rate_type)]

		def wanted(observation: RateObservation) -> bool:
			return (
				observation.from_currency == from_currency
				and observation.to_currency == to_currency
				and observation.rate_type == rate_type
			)

		return await self._query(selection, CollectionKey.SPOT_RATE, call, wanted)

	async def fetch_all_spot_rates(self, selection: SourceSelection) -> list[RateObservation]:
		async def call(provider: RateSource) -> list[RateObservation]:
			return await provider.get_all_spot_rates()

		return await self._query(selection, CollectionKey.ALL_SPOT_RATES, call)

	async def _query(
		self,
		selection: SourceSelection,
		collection_key: CollectionKey,
		call: ProviderCall,
		wanted: Callable[[RateObservation], bool] | None = None,
	) -> list[RateObservation]:
		results: list[RateObservation] = []

		for name, provider in self.candidates(selection):
			logger.debug(f"Querying source '{name}' ...")
			query_time = self._clock()
			try:
				observations = await call(provider)
			except NotSupportedError as e:
				logger.debug(f"Source '{name}' declined: {e}")
				continue
			except Exception as e:
				logger.warning(f"Source '{name}' failed, trying next source: {e}")
				continue

			for observation in observations:
				try:
					quantize_rate(observation.rate)
				except ValueError as e:
					logger.warning(f"Skipping {observation.pair} {observation.rate_type} from '{name}': {e}")
					continue
				stored = await self.repository.insert(
					observation, source=name, collection_key=collection_key, query_time=query_time
				)
				if wanted is None or wanted(stored):
					results.append(stored)

			logger.info(f"Got {len(observations)} rates from source '{name}'")

			if results and selection.policy is AggregationPolicy.ANY:
				break

		return results
