import logging
from datetime import datetime

from domain.models.rate import AggregationPolicy, CollectionKey, RateObservation, SourceSelection
from infrastructure.persistence.repositories.rate import RateRepository

logger = logging.getLogger(__name__)


class FreshnessCacheLookup:
	"""Answers requests from stored observations younger than the freshness window."""

	def __init__(self, repository: RateRepository):
		self.repository = repository

	async def spot_rate(
		self,
		from_currency: str,
		to_currency: str,
		rate_type: str,
		selection: SourceSelection,
		max_age_cache: float,
		now: datetime | None = None,
	) -> list[RateObservation]:
		pair_filter = {'from_currency': from_currency, 'to_currency': to_currency, 'rate_type': rate_type}

		if not selection.policy.is_multi_source:
			# source is None under :any, so the newest row from any provider wins
			rows = await self.repository.query_recent(
				max_age_cache, source=selection.source, limit=1, now=now, **pair_filter
			)
		else:
			rows = []
			sources = await self.repository.distinct_sources(max_age_cache, now=now, **pair_filter)
			for source in sources:
				rows.extend(
					await self.repository.query_recent(max_age_cache, source=source, limit=1, now=now, **pair_filter)
				)

		logger.debug(
			f'Cache {"HIT" if rows else "MISS"} for {from_currency}/{to_currency} {rate_type} '
			f'({selection}, max age {max_age_cache}s): {len(rows)} rows'
		)
		return rows

	async def all_spot_rates(
		self,
		selection: SourceSelection,
		max_age_cache: float,
		now: datetime | None = None,
	) -> list[RateObservation]:
		if selection.policy is AggregationPolicy.SPECIFIC:
			sources = [selection.source]
		else:
			sources = await self.repository.distinct_sources(max_age_cache, now=now)

		rows = []
		seen = set()
		for source in sources:
			snapshot = await self.repository.query_recent(
				max_age_cache, source=source, collection_key=CollectionKey.ALL_SPOT_RATES, now=now
			)
			for row in snapshot:
				key = (row.source, row.pair, row.rate_type)
				if key in seen:
					continue
				seen.add(key)
				rows.append(row)

		logger.debug(
			f'Cache {"HIT" if rows else "MISS"} for all spot rates '
			f'({selection}, max age {max_age_cache}s): {len(rows)} rows from {len(sources)} sources'
		)
		return rows
