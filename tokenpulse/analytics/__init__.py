"""Analytics: token filtering, timeline bucketing, metric aggregation and sorting."""

from .filters import filter_active
from .timeline import build_timeline
from .aggregator import MetricAggregator, aggregate
from .sorting import sort_tokens

__all__ = [
    "filter_active",
    "build_timeline",
    "MetricAggregator",
    "aggregate",
    "sort_tokens",
]
