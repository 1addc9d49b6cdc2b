import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType

from config.settings import Settings
from domain.exceptions.rate import UnknownProviderError

from .base import RateSource
from .currencyapi import CurrencyAPIProvider
from .fixerio import FixerIOProvider
from .openexchange import OpenExchangeProvider

logger = logging.getLogger(__name__)


PROVIDER_FACTORIES: Mapping[str, Callable[[Settings], RateSource]] = MappingProxyType({
	'currencyapi': lambda s: CurrencyAPIProvider(
		s.CURRENCYAPI_API_KEY, timeout=s.PROVIDER_TIMEOUT, base_currency=s.CURRENCYAPI_BASE
	),
	'fixerio': lambda s: FixerIOProvider(
		s.FIXERIO_API_KEY, timeout=s.PROVIDER_TIMEOUT, base_currency=s.FIXERIO_BASE
	),
	'openexchange': lambda s: OpenExchangeProvider(
		s.OPENEXCHANGE_APP_ID, timeout=s.PROVIDER_TIMEOUT, base_currency=s.OPENEXCHANGE_BASE
	),
})


class ProviderRegistry:
	"""Immutable table of provider handles keyed by identifier."""

	def __init__(self, providers: Mapping[str, RateSource]):
		self._providers = MappingProxyType(dict(providers))

	def list_providers(self) -> list[str]:
		return sorted(self._providers)

	def resolve(self, identifier: str) -> RateSource:
		try:
			return self._providers[identifier]
		except KeyError:
			raise UnknownProviderError(identifier) from None

	def __len__(self) -> int:
		return len(self._providers)

	async def close(self) -> None:
		for provider in self._providers.values():
			await provider.close()


def build_registry(settings: Settings) -> ProviderRegistry:
	providers = {}
	for name in settings.enabled_providers:
		factory = PROVIDER_FACTORIES.get(name)
		if factory is None:
			logger.warning(f'Ignoring unknown provider {name!r} in ENABLED_PROVIDERS')
			continue
		providers[name] = factory(settings)

	logger.info(f'Provider registry initialized with {len(providers)} providers: {sorted(providers)}')
	return ProviderRegistry(providers)
