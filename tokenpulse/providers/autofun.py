"""auto.fun token listing provider.

Fetches the full token list in one request and parses it into
TokenRecord objects. The request is tried over an ordered list of
routes: the direct URL first, then each configured relay prefix with
the target URL percent-encoded after it. The first route that returns
a JSON object wins; if every route fails a single DataSourceError
describes all of them.
"""

import logging
import time
from typing import Any
from urllib.parse import quote, urlencode

import httpx
from pydantic import ValidationError

from ..core.config import DashboardConfig, get_config
from ..core.exceptions import DataSourceError, MalformedPayloadError, RateLimitError
from ..core.models import TokenRecord
from ..core.types import DataSource
from .base import BaseProvider

logger = logging.getLogger(__name__)

DIRECT_ROUTE = "direct"


class AutoFunTokenProvider(BaseProvider):
    """Fetches token listings from the auto.fun API."""

    SOURCE = DataSource.AUTOFUN

    def __init__(
        self,
        config: DashboardConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the auto.fun provider.

        Args:
            config: Dashboard configuration (global config if omitted)
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests
        """
        self.config = config or get_config()
        super().__init__(
            rate_limit_calls=self.config.rate_limit_calls,
            rate_limit_period=self.config.rate_limit_period,
        )
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.config.timeout_seconds,
            transport=self._transport,
            headers={"Accept": "application/json"},
            follow_redirects=True,
        )

    def is_available(self) -> bool:
        """Check if any route answers a one-token request."""
        try:
            self.fetch_payload({"limit": "1", "page": "1"})
            return True
        except DataSourceError:
            return False

    def build_url(self, params: dict[str, str] | None = None) -> str:
        """Build the listing URL with query parameters."""
        query = params if params is not None else self.config.request_params()
        if not query:
            return self.config.api_url
        return f"{self.config.api_url}?{urlencode(query)}"

    def routes(self, url: str) -> list[tuple[str, str]]:
        """Ordered (route name, request URL) pairs to try."""
        routes = []
        if self.config.use_direct:
            routes.append((DIRECT_ROUTE, url))
        for prefix in self.config.proxy_prefixes:
            routes.append((prefix, prefix + quote(url, safe="")))
        return routes

    def _fetch_route(self, route: str, request_url: str, endpoint: str) -> dict[str, Any]:
        """GET one route and return the decoded JSON object."""
        self._wait_for_rate_limit()
        start_time = time.time()

        try:
            with self._client() as client:
                response = client.get(request_url)
        except httpx.RequestError as e:
            self._record_audit(
                action="fetch",
                endpoint=endpoint,
                route=route,
                success=False,
                error_message=str(e) or type(e).__name__,
                duration_ms=int((time.time() - start_time) * 1000),
            )
            raise DataSourceError(
                source=self.SOURCE.value,
                message=str(e) or type(e).__name__,
                endpoint=endpoint,
                route=route,
            )

        duration_ms = int((time.time() - start_time) * 1000)

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            self._record_audit(
                action="fetch",
                endpoint=endpoint,
                route=route,
                success=False,
                error_message="Rate limit exceeded",
                status_code=429,
                duration_ms=duration_ms,
            )
            raise RateLimitError(
                source=self.SOURCE.value,
                retry_after_seconds=int(retry_after) if retry_after and retry_after.isdigit() else None,
                endpoint=endpoint,
                route=route,
            )

        if not response.is_success:
            self._record_audit(
                action="fetch",
                endpoint=endpoint,
                route=route,
                success=False,
                error_message=f"HTTP {response.status_code}",
                status_code=response.status_code,
                duration_ms=duration_ms,
            )
            raise DataSourceError(
                source=self.SOURCE.value,
                message=f"HTTP {response.status_code}",
                endpoint=endpoint,
                status_code=response.status_code,
                route=route,
            )

        try:
            data = response.json()
        except ValueError as e:
            self._record_audit(
                action="parse",
                endpoint=endpoint,
                route=route,
                success=False,
                error_message=f"Malformed JSON: {e}",
                status_code=response.status_code,
                duration_ms=duration_ms,
            )
            raise MalformedPayloadError(
                source=self.SOURCE.value,
                message="Malformed JSON response",
                endpoint=endpoint,
                status_code=response.status_code,
                route=route,
            )

        if not isinstance(data, dict):
            self._record_audit(
                action="parse",
                endpoint=endpoint,
                route=route,
                success=False,
                error_message=f"Expected a JSON object, got {type(data).__name__}",
                status_code=response.status_code,
                duration_ms=duration_ms,
            )
            raise MalformedPayloadError(
                source=self.SOURCE.value,
                message="Response is not a JSON object",
                endpoint=endpoint,
                status_code=response.status_code,
                route=route,
            )

        self._record_audit(
            action="fetch",
            endpoint=endpoint,
            route=route,
            success=True,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        return data

    def fetch_payload(self, params: dict[str, str] | None = None) -> dict[str, Any]:
        """
        Fetch the raw listing payload, falling back across routes.

        Args:
            params: Query parameters (config defaults if omitted)

        Returns:
            Decoded JSON object from the first route that succeeds

        Raises:
            DataSourceError: If every route fails
        """
        url = self.build_url(params)
        data = self._try_routes(
            self.routes(url),
            lambda route, request_url: self._fetch_route(route, request_url, endpoint=url),
            endpoint=url,
        )
        if self.last_route != DIRECT_ROUTE:
            logger.info(f"[{self.SOURCE.value}] Fetched via relay {self.last_route}")
        return data

    def fetch_tokens(self, params: dict[str, str] | None = None) -> list[TokenRecord]:
        """
        Fetch and parse the token list.

        Records that cannot be parsed (e.g. no id) are skipped with a warning.

        Args:
            params: Query parameters (config defaults if omitted)

        Returns:
            List of TokenRecord, in API order

        Raises:
            DataSourceError: If the request fails on every route or the
                payload has no usable token list
        """
        data = self.fetch_payload(params)
        raw_tokens = data.get("tokens")
        if raw_tokens is None:
            raw_tokens = []
        if not isinstance(raw_tokens, list):
            raise MalformedPayloadError(
                source=self.SOURCE.value,
                message=f"'tokens' is a {type(raw_tokens).__name__}, expected a list",
                endpoint=self.build_url(params),
            )

        return self.parse_tokens(raw_tokens)

    def parse_tokens(self, raw_tokens: list[Any]) -> list[TokenRecord]:
        """Parse raw token dicts, skipping malformed entries."""
        tokens: list[TokenRecord] = []
        skipped = 0
        for raw in raw_tokens:
            if not isinstance(raw, dict):
                skipped += 1
                continue
            try:
                tokens.append(TokenRecord.model_validate(raw))
            except ValidationError as e:
                skipped += 1
                logger.debug(f"[{self.SOURCE.value}] Skipping token {raw.get('id')!r}: {e}")

        if skipped:
            logger.warning(f"[{self.SOURCE.value}] Skipped {skipped} malformed token records")
        logger.info(f"[{self.SOURCE.value}] Parsed {len(tokens)} tokens")
        return tokens
