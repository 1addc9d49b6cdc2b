from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	DATABASE_URL: str = 'sqlite+aiosqlite:///./fiatx.db'

	# Caching
	MAX_AGE_CACHE: int = 4 * 3600
	DEFAULT_RATE_TYPE: str = 'sell'
	DEFAULT_SOURCE: str = ':any'

	# Providers
	ENABLED_PROVIDERS: str = 'fixerio,openexchange,currencyapi'
	PROVIDER_TIMEOUT: int = 10

	FIXERIO_API_KEY: str = ''
	FIXERIO_BASE: str = 'EUR'
	OPENEXCHANGE_APP_ID: str = ''
	OPENEXCHANGE_BASE: str = 'USD'
	CURRENCYAPI_API_KEY: str = ''
	CURRENCYAPI_BASE: str = 'USD'

	# Application
	APP_NAME: str = 'FiatX Rate API'
	HOST: str = '127.0.0.1'
	PORT: int = 8000
	LOG_LEVEL: str = 'INFO'
	LOG_DIRECTORY: str = 'logs'
	LOG_JSON_FILE: bool = True

	model_config = SettingsConfigDict(env_file='.env', case_sensitive=False, extra='ignore')

	@field_validator('MAX_AGE_CACHE')
	@classmethod
	def max_age_not_negative(cls, v: int):
		if v < 0:
			raise ValueError('MAX_AGE_CACHE must not be negative')
		return v

	@property
	def enabled_providers(self) -> list[str]:
		return [name.strip() for name in self.ENABLED_PROVIDERS.split(',') if name.strip()]


@lru_cache
def get_settings() -> Settings:
	return Settings()
