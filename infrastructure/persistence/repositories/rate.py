import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from domain.exceptions.rate import StorageUnavailableError
from domain.models.rate import CollectionKey, RateObservation, quantize_rate
from infrastructure.persistence.database import Database
from infrastructure.persistence.models.rate import RateDB

logger = logging.getLogger(__name__)


def _to_db_time(value: datetime | None) -> datetime | None:
	if value is None or value.tzinfo is None:
		return value
	return value.astimezone(UTC).replace(tzinfo=None)


def _from_db_time(value: datetime | None) -> datetime | None:
	if value is None or value.tzinfo is not None:
		return value
	return value.replace(tzinfo=UTC)


def _to_observation(row: RateDB) -> RateObservation:
	return RateObservation(
		from_currency=row.from_currency,
		to_currency=row.to_currency,
		rate_type=row.type,
		rate=row.rate,
		source=row.source,
		note=row.note,
		query_time=_from_db_time(row.query_time),
		source_mtime=_from_db_time(row.mtime),
		collection_key=CollectionKey(row.key) if row.key is not None else None,
	)


class RateRepository:
	"""Append-only store of rate observations with time-windowed reads.

	Every operation runs in its own session, so concurrent inserts from
	different requests never share a transaction.
	"""

	def __init__(self, db: Database):
		self.db = db

	@asynccontextmanager
	async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
		try:
			async with self.db.session() as session:
				yield session
		except (SQLAlchemyError, OSError) as e:
			logger.error(f'Rate store {operation} failed: {e}')
			raise StorageUnavailableError(f'Rate store unavailable ({operation}): {e}') from e

	@staticmethod
	def _cutoff(not_older_than: float, now: datetime | None) -> datetime:
		now = now or datetime.now(UTC)
		return _to_db_time(now - timedelta(seconds=not_older_than))

	async def insert(
		self,
		observation: RateObservation,
		*,
		source: str,
		collection_key: CollectionKey,
		query_time: datetime,
	) -> RateObservation:
		"""Append one row. Raises ValueError if the rate rounds to zero at 8 places."""
		stored = replace(
			observation,
			rate=quantize_rate(observation.rate),
			source=source,
			collection_key=collection_key,
			query_time=query_time,
		)
		async with self._session('insert') as session:
			session.add(
				RateDB(
					query_time=_to_db_time(stored.query_time),
					mtime=_to_db_time(stored.source_mtime),
					from_currency=stored.from_currency,
					to_currency=stored.to_currency,
					rate=stored.rate,
					source=source,
					type=stored.rate_type,
					note=stored.note,
					key=int(collection_key),
				)
			)
		return stored

	async def query_recent(
		self,
		not_older_than: float,
		*,
		source: str | None = None,
		from_currency: str | None = None,
		to_currency: str | None = None,
		rate_type: str | None = None,
		collection_key: CollectionKey | None = None,
		limit: int | None = None,
		now: datetime | None = None,
	) -> list[RateObservation]:
		stmt = select(RateDB).where(RateDB.query_time >= self._cutoff(not_older_than, now))
		if source is not None:
			stmt = stmt.where(RateDB.source == source)
		if from_currency is not None:
			stmt = stmt.where(RateDB.from_currency == from_currency)
		if to_currency is not None:
			stmt = stmt.where(RateDB.to_currency == to_currency)
		if rate_type is not None:
			stmt = stmt.where(RateDB.type == rate_type)
		if collection_key is not None:
			stmt = stmt.where(RateDB.key == int(collection_key))
		stmt = stmt.order_by(RateDB.query_time.desc(), RateDB.id.desc())
		if limit is not None:
			stmt = stmt.limit(limit)

		async with self._session('query_recent') as session:
			result = await session.execute(stmt)
			rows = result.scalars().all()
		return [_to_observation(row) for row in rows]

	async def distinct_sources(
		self,
		not_older_than: float,
		*,
		from_currency: str | None = None,
		to_currency: str | None = None,
		rate_type: str | None = None,
		now: datetime | None = None,
	) -> list[str]:
		stmt = select(RateDB.source).distinct().where(
			RateDB.query_time >= self._cutoff(not_older_than, now)
		)
		if from_currency is not None:
			stmt = stmt.where(RateDB.from_currency == from_currency)
		if to_currency is not None:
			stmt = stmt.where(RateDB.to_currency == to_currency)
		if rate_type is not None:
			stmt = stmt.where(RateDB.type == rate_type)

		async with self._session('distinct_sources') as session:
			result = await session.execute(stmt)
			sources = result.scalars().all()
		return sorted(sources)

	async def history(
		self,
		from_currency: str,
		to_currency: str,
		*,
		rate_type: str | None = None,
		since: datetime | None = None,
		limit: int = 100,
	) -> list[RateObservation]:
		stmt = select(RateDB).where(
			RateDB.from_currency == from_currency,
			RateDB.to_currency == to_currency,
		)
		if rate_type is not None:
			stmt = stmt.where(RateDB.type == rate_type)
		if since is not None:
			stmt = stmt.where(RateDB.query_time >= _to_db_time(since))
		stmt = stmt.order_by(RateDB.query_time.desc(), RateDB.id.desc()).limit(limit)

		async with self._session('history') as session:
			result = await session.execute(stmt)
			rows = result.scalars().all()
		return [_to_observation(row) for row in rows]
