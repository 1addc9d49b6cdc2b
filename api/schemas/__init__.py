from .responses import (
	ConversionResponse,
	RateHistoryResponse,
	RateResponse,
	RateTableResponse,
	SourcesResponse,
)

__all__ = [
	'ConversionResponse',
	'RateHistoryResponse',
	'RateResponse',
	'RateTableResponse',
	'SourcesResponse',
]
