import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from domain.exceptions.rate import (
	FiatXError,
	NoProvidersAvailableError,
	NoRatesFoundError,
	RequestError,
	StorageUnavailableError,
)

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
	@app.exception_handler(RequestError)
	async def request_error_handler(request: Request, exc: RequestError):
		return JSONResponse(status_code=400, content={'detail': str(exc)})

	@app.exception_handler(NoRatesFoundError)
	async def no_rates_handler(request: Request, exc: NoRatesFoundError):
		return JSONResponse(status_code=404, content={'detail': str(exc)})

	@app.exception_handler(NoProvidersAvailableError)
	async def no_providers_handler(request: Request, exc: NoProvidersAvailableError):
		logger.error(f'No providers available: {exc}')
		return JSONResponse(status_code=412, content={'detail': str(exc)})

	@app.exception_handler(StorageUnavailableError)
	async def storage_error_handler(request: Request, exc: StorageUnavailableError):
		logger.error(f'Storage error: {exc}')
		return JSONResponse(status_code=503, content={'detail': 'Rate store unavailable'})

	@app.exception_handler(FiatXError)
	async def fiatx_error_handler(request: Request, exc: FiatXError):
		logger.error(f'Rate service error: {exc}')
		return JSONResponse(status_code=500, content={'detail': str(exc)})
