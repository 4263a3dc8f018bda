"""Dashboard controller.

Owns the single DashboardState record (tokens, sort, chart selection,
loading/error flags) and replaces it wholesale on every change. All
derived views (sorted rows, chart series) are computed from that state
plus the current time, so the presentation layer never mutates data.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from .analytics.aggregator import MetricAggregator
from .analytics.filters import filter_active, find_by_address
from .analytics.sorting import apply_sort
from .core.config import DashboardConfig, get_config
from .core.exceptions import DataSourceError
from .core.models import DashboardState, MetricSeries, SortConfig, TokenRecord
from .core.types import ChartMetric, ChartMode
from .providers.autofun import AutoFunTokenProvider

logger = logging.getLogger(__name__)


class DashboardController:
    """Coordinates fetching, filtering, sorting and charting."""

    def __init__(
        self,
        provider: AutoFunTokenProvider | None = None,
        config: DashboardConfig | None = None,
    ):
        """
        Initialize the controller.

        Args:
            provider: Token source (auto.fun provider built from config if omitted)
            config: Dashboard configuration (global config if omitted)
        """
        self.config = config or (provider.config if provider else get_config())
        self.provider = provider or AutoFunTokenProvider(config=self.config)
        self.aggregator = MetricAggregator(tz=self.config.tzinfo)

        self._state = DashboardState(
            sort=SortConfig(key=self.config.default_sort_key),
            metric=self.config.default_metric,
            mode=self.config.default_mode,
        )

    @property
    def state(self) -> DashboardState:
        """Current state snapshot."""
        return self._state

    def _update(self, **changes: Any) -> DashboardState:
        self._state = self._state.model_copy(update=changes)
        return self._state

    def refresh(self) -> DashboardState:
        """
        Fetch the token list and replace the held tokens.

        A failed fetch leaves the previous tokens untouched and records a
        user-facing error instead of raising.

        Returns:
            The new state
        """
        self._update(loading=True, error=None, last_attempt=datetime.now(timezone.utc))
        logger.info("Refreshing token list")

        try:
            raw_tokens = self.provider.fetch_tokens()
        except DataSourceError as e:
            logger.error(f"Token refresh failed: {e.message}")
            return self._update(
                loading=False,
                error=f"Failed to fetch token data: {e.message}",
            )

        return self.set_tokens(raw_tokens)

    def set_tokens(self, raw_tokens: list[TokenRecord]) -> DashboardState:
        """Replace the token list with the active subset of ``raw_tokens``."""
        tokens = filter_active(raw_tokens)
        logger.info(f"Loaded {len(tokens)} active tokens ({len(raw_tokens)} fetched)")
        return self._update(
            tokens=tokens,
            loading=False,
            error=None,
            last_updated=datetime.now(timezone.utc),
        )

    def sort_by(self, key: str) -> DashboardState:
        """Select a sort column; selecting the active one flips direction."""
        return self._update(sort=self._state.sort.toggle(key))

    def select_metric(self, metric: ChartMetric | str) -> DashboardState:
        """Switch the charted metric."""
        return self._update(metric=ChartMetric(metric))

    def select_mode(self, mode: ChartMode | str) -> DashboardState:
        """Switch between hourly and cumulative series."""
        return self._update(mode=ChartMode(mode))

    def sorted_tokens(self) -> list[TokenRecord]:
        """Active tokens in the current sort order."""
        return apply_sort(self._state.tokens, self._state.sort)

    def series(self, now: datetime | None = None) -> MetricSeries:
        """Chart series for the selected metric and mode."""
        return self.aggregator.aggregate(
            self._state.tokens,
            self._state.metric,
            self._state.mode,
            now=now,
        )

    def token_by_address(self, address: str) -> TokenRecord | None:
        """Look up a held token by its canonical address."""
        return find_by_address(self._state.tokens, address)
