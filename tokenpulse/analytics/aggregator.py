"""Metric aggregation over the rolling 24-hour timeline.

Bucket rules per metric:
- tokens:    count of tokens created in the bucket
- creators:  distinct creators among tokens created in the bucket
- volume:    sum of (volume24h | volume) / 24 over tokens created in the bucket
- marketcap: sum of (marketCapUSD | marketCap) over tokens created in the bucket
- buyers:    sum of (holders | holderCount) over every token created at or
             before the bucket start, including tokens older than 24 hours

Cumulative mode replaces the hourly series by its running prefix sum,
for every metric.
"""

import logging
from datetime import datetime, tzinfo
from typing import Callable, Iterable

from ..core.models import MetricSeries, Timeline, TokenRecord
from ..core.types import ChartMetric, ChartMode
from .filters import with_creation_time
from .timeline import build_timeline

logger = logging.getLogger(__name__)

# Daily volume is spread evenly over the hours of the day
VOLUME_HOURS = 24


def cumulative(values: Iterable[float]) -> list[float]:
    """Running prefix sum: out[i] = out[i-1] + values[i]."""
    totals: list[float] = []
    running = 0.0
    for value in values:
        running += value
        totals.append(running)
    return totals


def series_title(metric: ChartMetric, mode: ChartMode) -> str:
    """Chart title for a metric/mode pair."""
    if mode == ChartMode.CUMULATIVE:
        return "Last 24 Hours (Cumulative)"
    if metric in (ChartMetric.VOLUME, ChartMetric.MARKET_CAP):
        return "Last 24 Hours (Hourly)"
    return "Last 24 Hours"


class MetricAggregator:
    """Maps a token list onto the 24 hourly buckets for one metric."""

    def __init__(self, tz: tzinfo | None = None):
        """
        Initialize aggregator.

        Args:
            tz: Timezone for bucket labels (defaults to the timezone of ``now``)
        """
        self.tz = tz

    def aggregate(
        self,
        tokens: list[TokenRecord],
        metric: ChartMetric | str,
        mode: ChartMode | str = ChartMode.HOURLY,
        now: datetime | None = None,
    ) -> MetricSeries:
        """
        Build the series for a metric and mode.

        Never raises for bad token data: missing createdAt excludes a token
        from the series, unparseable numbers count as 0.

        Args:
            tokens: Active tokens
            metric: Which metric to chart
            mode: Hourly values or running totals
            now: End of the window (current time if omitted)

        Returns:
            MetricSeries with 24 values aligned to the timeline labels
        """
        metric = ChartMetric(metric)
        mode = ChartMode(mode)
        timeline = build_timeline(now, tz=self.tz)

        values = self.hourly_values(tokens, metric, timeline)
        if mode == ChartMode.CUMULATIVE:
            values = cumulative(values)

        logger.debug(
            f"Aggregated {metric.value}/{mode.value} over {len(tokens)} tokens, "
            f"total {sum(values) if mode == ChartMode.HOURLY else values[-1]:.2f}"
        )

        return MetricSeries(
            metric=metric,
            mode=mode,
            labels=timeline.labels,
            values=values,
            starts=timeline.starts,
            title=series_title(metric, mode),
        )

    def hourly_values(
        self,
        tokens: list[TokenRecord],
        metric: ChartMetric,
        timeline: Timeline,
    ) -> list[float]:
        """Raw per-bucket values before any cumulative transform."""
        if metric == ChartMetric.TOKENS:
            return self._sum_by_creation(tokens, timeline, lambda token: 1.0)
        if metric == ChartMetric.CREATORS:
            return self._unique_creators(tokens, timeline)
        if metric == ChartMetric.VOLUME:
            return self._sum_by_creation(
                tokens, timeline, lambda token: token.volume_value / VOLUME_HOURS
            )
        if metric == ChartMetric.MARKET_CAP:
            return self._sum_by_creation(tokens, timeline, lambda token: token.market_cap_value)
        if metric == ChartMetric.BUYERS:
            return self._holders_existing_by(tokens, timeline)
        raise ValueError(f"Unsupported metric: {metric}")

    def _sum_by_creation(
        self,
        tokens: list[TokenRecord],
        timeline: Timeline,
        value_of: Callable[[TokenRecord], float],
    ) -> list[float]:
        """Sum a per-token value into the bucket the token was created in."""
        buckets = [0.0] * len(timeline.starts)
        for token in tokens:
            index = timeline.bucket_index(token.created_at)
            if index is not None:
                buckets[index] += value_of(token)
        return buckets

    def _unique_creators(self, tokens: list[TokenRecord], timeline: Timeline) -> list[float]:
        """Count distinct creators per creation bucket."""
        creators: list[set[str]] = [set() for _ in timeline.starts]
        for token in tokens:
            if not token.creator:
                continue
            index = timeline.bucket_index(token.created_at)
            if index is not None:
                creators[index].add(token.creator)
        return [float(len(bucket)) for bucket in creators]

    def _holders_existing_by(self, tokens: list[TokenRecord], timeline: Timeline) -> list[float]:
        """Sum holders of every token created at or before each bucket start."""
        dated = sorted(
            (token.created_at, token.holder_value)
            for token in with_creation_time(tokens)
        )
        buckets: list[float] = []
        position = 0
        running = 0
        for start in timeline.starts:
            while position < len(dated) and dated[position][0] <= start:
                running += dated[position][1]
                position += 1
            buckets.append(float(running))
        return buckets


def aggregate(
    tokens: list[TokenRecord],
    metric: ChartMetric | str,
    mode: ChartMode | str = ChartMode.HOURLY,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> MetricSeries:
    """Shortcut for ``MetricAggregator(tz).aggregate(...)``."""
    return MetricAggregator(tz=tz).aggregate(tokens, metric, mode, now)
