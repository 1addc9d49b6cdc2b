from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from api.dependencies import get_conversion_service, get_rate_service
from api.schemas import (
	ConversionResponse,
	RateHistoryResponse,
	RateResponse,
	RateTableResponse,
	SourcesResponse,
)
from application.services import ConversionService, RateService
from domain.models.rate import AggregationPolicy

router = APIRouter(prefix='/api', tags=['rates'])

CurrencyCode = Annotated[str, Path(min_length=1, max_length=10)]
RateType = Annotated[str | None, Query(alias='type', max_length=32)]
SourceParam = Annotated[str | None, Query(description="Provider name or one of ':any', ':highest', ...")]
MaxAgeCache = Annotated[int | None, Query(ge=0, description='Maximum cache age in seconds, 0 to bypass')]


@router.get(
	'/rate/{from_currency}/{to_currency}',
	response_model=RateResponse,
	status_code=status.HTTP_200_OK,
	summary='Get spot (latest) rate',
)
async def get_spot_rate(
	from_currency: CurrencyCode,
	to_currency: CurrencyCode,
	service: Annotated[RateService, Depends(get_rate_service)],
	rate_type: RateType = None,
	source: SourceParam = None,
	max_age_cache: MaxAgeCache = None,
) -> RateResponse:
	result = await service.lookup_spot_rate(
		from_currency.upper(),
		to_currency.upper(),
		rate_type=rate_type,
		source=source,
		max_age_cache=max_age_cache,
	)
	return RateResponse.from_cached(result)


@router.get(
	'/rates',
	response_model=RateTableResponse,
	status_code=status.HTTP_200_OK,
	summary='Get all spot rates from a source',
)
async def get_all_spot_rates(
	service: Annotated[RateService, Depends(get_rate_service)],
	source: SourceParam = None,
	max_age_cache: MaxAgeCache = None,
) -> RateTableResponse:
	results = await service.get_all_spot_rates(source, max_age_cache=max_age_cache)
	return RateTableResponse(source=source, rates=[RateResponse.from_cached(r) for r in results])


@router.get(
	'/convert/{from_currency}/{to_currency}/{amount}',
	response_model=ConversionResponse,
	status_code=status.HTTP_200_OK,
	summary='Convert currency amount',
)
async def convert_currency(
	from_currency: CurrencyCode,
	to_currency: CurrencyCode,
	amount: Annotated[Decimal, Path(gt=0)],
	service: Annotated[ConversionService, Depends(get_conversion_service)],
	rate_type: RateType = None,
	source: SourceParam = None,
	max_age_cache: MaxAgeCache = None,
) -> ConversionResponse:
	result = await service.convert(
		amount,
		from_currency.upper(),
		to_currency.upper(),
		rate_type=rate_type,
		source=source,
		max_age_cache=max_age_cache,
	)
	return ConversionResponse(**result)


@router.get(
	'/sources',
	response_model=SourcesResponse,
	status_code=status.HTTP_200_OK,
	summary='List rate sources',
)
async def list_sources(
	service: Annotated[RateService, Depends(get_rate_service)],
) -> SourcesResponse:
	policies = [f':{p.value}' for p in AggregationPolicy if p is not AggregationPolicy.SPECIFIC]
	return SourcesResponse(sources=service.list_sources(), policies=policies)


@router.get(
	'/history/{from_currency}/{to_currency}',
	response_model=RateHistoryResponse,
	status_code=status.HTTP_200_OK,
	summary='List stored rate observations for a pair',
)
async def get_rate_history(
	from_currency: CurrencyCode,
	to_currency: CurrencyCode,
	service: Annotated[RateService, Depends(get_rate_service)],
	rate_type: RateType = None,
	limit: Annotated[int, Query(ge=1, le=1000)] = 100,
) -> RateHistoryResponse:
	from_currency = from_currency.upper()
	to_currency = to_currency.upper()
	rates = await service.get_rate_history(from_currency, to_currency, rate_type=rate_type, limit=limit)
	return RateHistoryResponse(
		pair=f'{from_currency}/{to_currency}',
		rates=[RateResponse.from_observation(r, cached=True, cache_time=r.query_time) for r in rates],
	)
