import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from config.settings import Settings
from infrastructure.persistence.models.rate import Base

logger = logging.getLogger(__name__)


class Database:
	"""Async engine plus a session factory for the rate store.

	Server databases get pre-ping and recycling on pooled connections; SQLite
	files keep SQLAlchemy's defaults.
	"""

	def __init__(self, db_url: str, echo: bool = False, **engine_kwargs):
		self.url = make_url(db_url)
		if not self.is_sqlite:
			engine_kwargs.setdefault('pool_pre_ping', True)
			engine_kwargs.setdefault('pool_recycle', 3600)

		self.engine = create_async_engine(self.url, echo=echo, **engine_kwargs)
		self.session_factory = async_sessionmaker(
			self.engine,
			class_=AsyncSession,
			autoflush=True,
			expire_on_commit=False,
		)

	@classmethod
	def from_settings(cls, settings: Settings) -> 'Database':
		return cls(settings.DATABASE_URL)

	@property
	def is_sqlite(self) -> bool:
		return self.url.get_backend_name() == 'sqlite'

	async def create_tables(self) -> None:
		async with self.engine.begin() as conn:
			await conn.run_sync(Base.metadata.create_all)
		logger.info(f'Rate tables ready on {self.url.render_as_string(hide_password=True)}')

	async def close(self) -> None:
		await self.engine.dispose()

	@asynccontextmanager
	async def session(self) -> AsyncIterator[AsyncSession]:
		"""One transaction: committed on success, rolled back on any error."""
		async with self.session_factory() as session:
			try:
				yield session
				await session.commit()
			except Exception:
				await session.rollback()
				raise
