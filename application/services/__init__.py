from .aggregation import aggregate
from .conversion_service import ConversionService
from .orchestrator import ProviderQueryOrchestrator
from .rate_cache import FreshnessCacheLookup
from .rate_service import RateService

__all__ = [
	'aggregate',
	'ConversionService',
	'FreshnessCacheLookup',
	'ProviderQueryOrchestrator',
	'RateService',
]
