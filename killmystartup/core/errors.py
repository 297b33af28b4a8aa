"""Exception hierarchy for cache and provider failures."""


class IntelError(Exception):
    """Base class for service errors."""


class CacheError(IntelError):
    """The cache store could not be read or written."""


class CacheWriteError(CacheError):
    """A store() transaction was rolled back; prior cache entries are intact."""

    def __init__(self, domain: str, cache_key: str, cause: Exception) -> None:
        self.domain = domain
        self.cache_key = cache_key
        self.cause = cause
        super().__init__(f"Failed to store {domain} cache entry {cache_key[:12]}: {cause}")


class ProviderError(IntelError):
    """The external search provider failed or returned an unusable payload."""


class ProviderNotConfigured(ProviderError):
    """No API key is configured for the external search provider."""

    def __init__(self, provider: str = "perplexity") -> None:
        self.provider = provider
        super().__init__(f"{provider.capitalize()} API key not configured")


class Unauthorized(IntelError):
    """Missing or wrong bearer token on an internal endpoint."""
