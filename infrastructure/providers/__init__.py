from .base import MidMarketAPIProvider, RateSource
from .currencyapi import CurrencyAPIProvider
from .fixerio import FixerIOProvider
from .openexchange import OpenExchangeProvider
from .registry import PROVIDER_FACTORIES, ProviderRegistry, build_registry

__all__ = [
	'RateSource',
	'MidMarketAPIProvider',
	'CurrencyAPIProvider',
	'FixerIOProvider',
	'OpenExchangeProvider',
	'PROVIDER_FACTORIES',
	'ProviderRegistry',
	'build_registry',
]
