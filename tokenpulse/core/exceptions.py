"""Custom exceptions for the token pulse dashboard."""


class TokenPulseError(Exception):
    """Base exception for all token pulse errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class DataSourceError(TokenPulseError):
    """A listing request failed on one route, or on all of them."""

    def __init__(
        self,
        source: str,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
        route: str | None = None,
    ):
        super().__init__(
            f"[{source}] {message}",
            {
                "source": source,
                "endpoint": endpoint,
                "status_code": status_code,
                "route": route,
            },
        )
        self.source = source
        self.reason = message
        self.endpoint = endpoint
        self.status_code = status_code
        self.route = route


class RateLimitError(DataSourceError):
    """A route answered 429."""

    def __init__(
        self,
        source: str,
        retry_after_seconds: int | None = None,
        endpoint: str | None = None,
        route: str | None = None,
    ):
        message = "Rate limit exceeded"
        if retry_after_seconds:
            message += f", retry after {retry_after_seconds}s"
        super().__init__(source, message, endpoint=endpoint, status_code=429, route=route)
        self.retry_after_seconds = retry_after_seconds


class MalformedPayloadError(DataSourceError):
    """The response body is not JSON, or not the expected shape."""


class AllRoutesFailedError(DataSourceError):
    """Every route (direct and relays) failed for one request."""

    def __init__(self, source: str, failures: list[tuple[str, str]], endpoint: str | None = None):
        summary = "; ".join(f"{route}: {reason}" for route, reason in failures)
        super().__init__(source, f"All routes failed: {summary}", endpoint=endpoint)
        self.failures = failures


class ConfigurationError(TokenPulseError):
    """Raised when configuration is invalid."""

    def __init__(self, config_key: str, message: str):
        super().__init__(f"Configuration error [{config_key}]: {message}", {"config_key": config_key})
        self.config_key = config_key
