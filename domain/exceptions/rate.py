class FiatXError(Exception):
	pass


class RequestError(FiatXError):
	"""Malformed or contradictory request arguments."""


class UnknownProviderError(RequestError):
	def __init__(self, identifier: str):
		self.identifier = identifier
		super().__init__(f'Unknown provider {identifier!r}')


class NotSupportedError(FiatXError):
	"""A provider declines an operation it does not offer."""


class ProviderError(FiatXError):
	pass


class NoProvidersAvailableError(FiatXError):
	def __init__(self, message: str = 'No source providers available'):
		super().__init__(message)


class NoRatesFoundError(FiatXError):
	def __init__(self, message: str = "Couldn't find any rates"):
		super().__init__(message)


class StorageUnavailableError(FiatXError):
	pass
