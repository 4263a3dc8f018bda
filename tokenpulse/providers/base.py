"""Base class for listing providers.

Providers share three concerns: a sliding-window rate limit, a bounded
audit trail of request attempts, and ordered fallback across routes.
"""

import logging
import time
from abc import ABC, abstractmethod
from collections import deque
from typing import Callable, TypeVar

from ..core.exceptions import AllRoutesFailedError, DataSourceError
from ..core.models import AuditEntry
from ..core.types import DataSource

logger = logging.getLogger(__name__)

T = TypeVar("T")

# The dashboard refreshes indefinitely; only the latest attempts are kept
DEFAULT_AUDIT_LIMIT = 500


class BaseProvider(ABC):
    """Abstract base class for all data providers."""

    # Subclasses must define their data source
    SOURCE: DataSource = DataSource.UNKNOWN

    def __init__(
        self,
        rate_limit_calls: int = 60,
        rate_limit_period: int = 60,
        audit_limit: int = DEFAULT_AUDIT_LIMIT,
    ):
        """
        Initialize provider with rate limiting.

        Args:
            rate_limit_calls: Maximum calls per period
            rate_limit_period: Period in seconds
            audit_limit: Number of audit entries retained
        """
        self.rate_limit_calls = rate_limit_calls
        self.rate_limit_period = rate_limit_period
        self.last_route: str | None = None
        self._call_times: deque[float] = deque()
        self._audit_entries: deque[AuditEntry] = deque(maxlen=audit_limit)

    def _wait_for_rate_limit(self) -> None:
        """Sleep until another call fits in the rate window."""
        now = time.monotonic()
        while self._call_times and now - self._call_times[0] >= self.rate_limit_period:
            self._call_times.popleft()

        if len(self._call_times) >= self.rate_limit_calls:
            sleep_time = self._call_times[0] + self.rate_limit_period - now
            if sleep_time > 0:
                logger.debug(f"[{self.SOURCE.value}] Rate limit: sleeping {sleep_time:.1f}s")
                time.sleep(sleep_time)
            self._call_times.popleft()

        self._call_times.append(time.monotonic())

    def _record_audit(
        self,
        action: str,
        endpoint: str | None = None,
        route: str | None = None,
        success: bool = True,
        error_message: str | None = None,
        status_code: int | None = None,
        duration_ms: int | None = None,
        notes: str | None = None,
    ) -> AuditEntry:
        """Record one request attempt."""
        entry = AuditEntry(
            source=self.SOURCE,
            action=action,
            endpoint=endpoint,
            route=route,
            success=success,
            error_message=error_message,
            status_code=status_code,
            duration_ms=duration_ms,
            notes=notes,
        )
        self._audit_entries.append(entry)
        return entry

    def _try_routes(
        self,
        routes: list[tuple[str, str]],
        fetch: Callable[[str, str], T],
        endpoint: str,
    ) -> T:
        """
        Call ``fetch(route, url)`` for each route until one succeeds.

        Args:
            routes: Ordered (route name, request URL) pairs
            fetch: Performs one attempt; raises DataSourceError on failure
            endpoint: Logical endpoint, for the final error

        Returns:
            The first successful result

        Raises:
            AllRoutesFailedError: Listing every route's failure
        """
        failures: list[tuple[str, str]] = []
        for route, url in routes:
            try:
                result = fetch(route, url)
            except DataSourceError as e:
                logger.warning(f"[{self.SOURCE.value}] Route {route} failed: {e.reason}")
                failures.append((route, e.reason))
                continue
            self.last_route = route
            return result

        self.last_route = None
        logger.error(f"[{self.SOURCE.value}] All {len(failures)} routes failed for {endpoint}")
        raise AllRoutesFailedError(self.SOURCE.value, failures, endpoint=endpoint)

    def get_audit_trail(self) -> list[AuditEntry]:
        """Return retained audit entries, oldest first."""
        return list(self._audit_entries)

    def clear_audit_trail(self) -> None:
        self._audit_entries.clear()

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is reachable."""
        pass
