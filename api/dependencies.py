import logging
from typing import Annotated

from fastapi import Depends

from application.services import ConversionService, RateService
from config.settings import get_settings
from infrastructure.persistence.database import Database
from infrastructure.persistence.repositories.rate import RateRepository
from infrastructure.providers import ProviderRegistry, build_registry

logger = logging.getLogger(__name__)


class AppDependencies:
	"""Container for application-wide singleton dependencies."""

	db: Database | None = None
	registry: ProviderRegistry | None = None


deps = AppDependencies()


def init_dependencies() -> None:
	"""Initialize all singleton dependencies. Called at app startup."""
	logger.info('Initializing dependencies...')
	settings = get_settings()

	deps.db = Database.from_settings(settings)
	deps.registry = build_registry(settings)
	logger.info('Dependencies initialized')


async def bootstrap() -> None:
	"""Create the rate table if needed. Called after init_dependencies() at startup."""
	if deps.db is None:
		raise RuntimeError('Dependencies not initialized. Call init_dependencies() first.')

	await deps.db.create_tables()
	logger.info('Rate store ready')


async def cleanup_dependencies() -> None:
	logger.info('Cleaning up dependencies...')

	if deps.registry:
		await deps.registry.close()
	if deps.db:
		await deps.db.close()

	logger.info('Cleanup complete')


def get_rate_repository() -> RateRepository:
	if deps.db is None:
		raise RuntimeError('Database is not initialized')
	return RateRepository(deps.db)


def get_provider_registry() -> ProviderRegistry:
	if deps.registry is None:
		raise RuntimeError('Providers not initialized')
	return deps.registry


def get_rate_service(
	repository: Annotated[RateRepository, Depends(get_rate_repository)],
	registry: Annotated[ProviderRegistry, Depends(get_provider_registry)],
) -> RateService:
	settings = get_settings()
	return RateService(
		repository=repository,
		registry=registry,
		max_age_cache=settings.MAX_AGE_CACHE,
		default_rate_type=settings.DEFAULT_RATE_TYPE,
		default_source=settings.DEFAULT_SOURCE,
	)


def get_conversion_service(
	rate_service: Annotated[RateService, Depends(get_rate_service)],
) -> ConversionService:
	return ConversionService(rate_service=rate_service)
