"""Tests for the metric aggregator."""

import json

import pytest
from datetime import timedelta, timezone
from zoneinfo import ZoneInfo

from tokenpulse.analytics.aggregator import (
    MetricAggregator,
    aggregate,
    cumulative,
    series_title,
)
from tokenpulse.analytics.timeline import build_timeline
from tokenpulse.core.types import ChartMetric, ChartMode


def bucket_of(now, hours_ago):
    """Index of the bucket holding ``now - hours_ago``."""
    return build_timeline(now).bucket_index(now - timedelta(hours=hours_ago))


class TestCumulative:
    """Tests for the running-total transform."""

    def test_prefix_sum(self):
        assert cumulative([1, 0, 2, 3]) == [1, 1, 3, 6]

    def test_empty(self):
        assert cumulative([]) == []


class TestSeriesTitle:
    """Tests for chart titles."""

    def test_titles(self):
        assert series_title(ChartMetric.TOKENS, ChartMode.HOURLY) == "Last 24 Hours"
        assert series_title(ChartMetric.VOLUME, ChartMode.HOURLY) == "Last 24 Hours (Hourly)"
        assert series_title(ChartMetric.MARKET_CAP, ChartMode.HOURLY) == "Last 24 Hours (Hourly)"
        assert series_title(ChartMetric.BUYERS, ChartMode.CUMULATIVE) == "Last 24 Hours (Cumulative)"


class TestEmptyInput:
    """The aggregator never fails on an empty token list."""

    @pytest.mark.parametrize("metric", list(ChartMetric))
    @pytest.mark.parametrize("mode", list(ChartMode))
    def test_all_zeros(self, now, metric, mode):
        """Every metric and mode yields 24 zeros."""
        series = aggregate([], metric, mode, now=now)
        assert series.values == [0.0] * 24
        assert len(series.labels) == 24
        assert series.total == 0.0


class TestTokensCreated:
    """Tests for the created-count metric."""

    def test_counts_per_bucket(self, now, make_token):
        tokens = [make_token(0.5), make_token(0.6), make_token(3.2)]
        series = aggregate(tokens, ChartMetric.TOKENS, now=now)

        assert series.values[bucket_of(now, 0.5)] == 2
        assert series.values[bucket_of(now, 3.2)] == 1
        assert sum(series.values) == 3

    def test_excludes_out_of_window_and_undated(self, now, make_token):
        """Tokens older than 24h, in the future, or without createdAt are ignored."""
        tokens = [
            make_token(25),
            make_token(-1),
            make_token(None),
            make_token(2, createdAt="not a date"),
            make_token(2),
        ]
        series = aggregate(tokens, ChartMetric.TOKENS, now=now)
        assert sum(series.values) == 1

    def test_each_token_counted_once(self, now, make_token):
        """Tokens anywhere in the window land in exactly one bucket."""
        tokens = [make_token(h / 4) for h in range(0, 97)]
        series = aggregate(tokens, ChartMetric.TOKENS, now=now)
        assert sum(series.values) == len(tokens)

    def test_window_edges(self, now, make_token):
        """A token created exactly 24h ago is in bucket 0; one created now is in bucket 23."""
        series = aggregate([make_token(24), make_token(0)], ChartMetric.TOKENS, now=now)
        assert series.values[0] == 1
        assert series.values[23] == 1


class TestUniqueCreators:
    """Tests for the distinct-creator metric."""

    def test_same_creator_same_bucket(self, now, make_token):
        """Two launches by one creator in one hour: one creator, two tokens."""
        tokens = [
            make_token(1.2, creator="X"),
            make_token(1.4, creator="X"),
        ]
        index = bucket_of(now, 1.2)
        assert bucket_of(now, 1.4) == index

        creators = aggregate(tokens, ChartMetric.CREATORS, now=now)
        created = aggregate(tokens, ChartMetric.TOKENS, now=now)
        assert creators.values[index] == 1
        assert created.values[index] == 2

    def test_same_creator_different_buckets(self, now, make_token):
        tokens = [make_token(1.5, creator="X"), make_token(6.5, creator="X")]
        series = aggregate(tokens, ChartMetric.CREATORS, now=now)
        assert sum(series.values) == 2

    def test_missing_creator_not_counted(self, now, make_token):
        tokens = [make_token(1.5), make_token(1.5, creator="")]
        series = aggregate(tokens, ChartMetric.CREATORS, now=now)
        assert sum(series.values) == 0


class TestVolume:
    """Tests for the hourly volume estimate."""

    def test_one_twenty_fourth_of_daily_volume(self, now, make_token):
        """240 of daily volume puts 10 in the creation bucket."""
        series = aggregate([make_token(1, volume24h=240)], ChartMetric.VOLUME, now=now)

        index = bucket_of(now, 1)
        assert series.values[index] == 10
        assert all(value == 0 for i, value in enumerate(series.values) if i != index)

    def test_falls_back_to_volume(self, now, make_token):
        series = aggregate([make_token(1, volume="48")], ChartMetric.VOLUME, now=now)
        assert sum(series.values) == 2

    def test_unparseable_is_zero(self, now, make_token):
        tokens = [make_token(1, volume24h="n/a"), make_token(1, volume24h=24)]
        series = aggregate(tokens, ChartMetric.VOLUME, now=now)
        assert sum(series.values) == 1

    def test_oversized_integer_is_zero(self, now, make_token):
        """An integer too large for a float counts as unparseable."""
        huge = json.loads("1" + "0" * 400)
        tokens = [make_token(1, volume24h=huge), make_token(1, volume24h=48)]

        for mode in ChartMode:
            series = aggregate(tokens, ChartMetric.VOLUME, mode, now=now)
            assert series.total == 2


class TestMarketCap:
    """Tests for market cap by creation hour."""

    def test_sum_in_creation_bucket(self, now, make_token):
        tokens = [
            make_token(2.5, marketCapUSD=30_000),
            make_token(2.5, marketCap="5000"),
            make_token(30, marketCapUSD=1_000_000),
        ]
        series = aggregate(tokens, ChartMetric.MARKET_CAP, now=now)
        assert series.values[bucket_of(now, 2.5)] == 35_000
        assert sum(series.values) == 35_000

    def test_prefers_usd_value(self, now, make_token):
        series = aggregate(
            [make_token(1, marketCapUSD=100, marketCap=999)],
            ChartMetric.MARKET_CAP,
            now=now,
        )
        assert sum(series.values) == 100


class TestBuyers:
    """Tests for holders of tokens existing by each bucket start."""

    def test_existing_tokens_count_from_their_bucket_onward(self, now, make_token):
        """A token's holders appear in every bucket starting after its creation."""
        series = aggregate([make_token(5.5, holders=10)], ChartMetric.BUYERS, now=now)

        created_bucket = bucket_of(now, 5.5)
        assert series.values[created_bucket] == 0
        assert series.values[created_bucket + 1] == 10
        assert series.values[23] == 10
        assert series.values[0] == 0

    def test_old_tokens_count_everywhere(self, now, make_token):
        """Tokens older than the window contribute to every bucket."""
        series = aggregate([make_token(72, holderCount=7)], ChartMetric.BUYERS, now=now)
        assert series.values == [7.0] * 24

    def test_holders_preferred_over_holder_count(self, now, make_token):
        series = aggregate(
            [make_token(48, holders=3, holderCount=50)],
            ChartMetric.BUYERS,
            now=now,
        )
        assert series.values[0] == 3

    def test_undated_tokens_ignored(self, now, make_token):
        series = aggregate([make_token(None, holders=10)], ChartMetric.BUYERS, now=now)
        assert series.values == [0.0] * 24


class TestCumulativeMode:
    """Tests for running totals."""

    @pytest.fixture
    def tokens(self, make_token):
        return [
            make_token(0.2, creator="a", volume24h=48, marketCapUSD=1_000, holders=4),
            make_token(3.7, creator="b", volume24h=96, marketCapUSD=2_500, holders=1),
            make_token(3.9, creator="a", volume24h="12.5", marketCapUSD=700, holders=9),
            make_token(17, creator="c", marketCap="8000", holderCount=2),
            make_token(40, creator="d", holders=20),
        ]

    @pytest.mark.parametrize("metric", list(ChartMetric))
    def test_cumulative_is_prefix_sum(self, now, tokens, metric):
        """Each cumulative value equals the sum of hourly values up to it."""
        hourly = aggregate(tokens, metric, ChartMode.HOURLY, now=now)
        running = aggregate(tokens, metric, ChartMode.CUMULATIVE, now=now)
        for i in range(24):
            assert running.values[i] == sum(hourly.values[: i + 1])

    @pytest.mark.parametrize("metric", [ChartMetric.TOKENS, ChartMetric.CREATORS])
    def test_cumulative_counts_non_decreasing(self, now, tokens, metric):
        series = aggregate(tokens, metric, ChartMode.CUMULATIVE, now=now)
        for i in range(1, 24):
            assert series.values[i] >= series.values[i - 1]

    def test_cumulative_total_is_last_value(self, now, tokens):
        series = aggregate(tokens, ChartMetric.TOKENS, ChartMode.CUMULATIVE, now=now)
        assert series.total == series.values[-1] == 4


class TestMetricAggregator:
    """Tests for the aggregator object."""

    def test_labels_in_display_timezone(self, now, make_token):
        aggregator = MetricAggregator(tz=ZoneInfo("Asia/Tokyo"))
        series = aggregator.aggregate([make_token(1)], ChartMetric.TOKENS, now=now)
        # 2024-04-30 12:30 UTC is 21:30 in Tokyo
        assert series.labels[0] == "9PM"
        assert series.starts[0].astimezone(timezone.utc) == now - timedelta(hours=24)

    def test_accepts_string_metric_and_mode(self, now, make_token):
        series = MetricAggregator().aggregate([make_token(1)], "tokens", "cumulative", now=now)
        assert series.metric == ChartMetric.TOKENS
        assert series.mode == ChartMode.CUMULATIVE
        assert series.values[-1] == 1

    def test_unknown_metric_rejected(self, now):
        with pytest.raises(ValueError):
            MetricAggregator().aggregate([], "holders", now=now)

    def test_series_helpers(self, now, make_token):
        series = aggregate([make_token(1), make_token(1)], ChartMetric.TOKENS, now=now)
        index = bucket_of(now, 1)
        assert series.points()[index] == (series.labels[index], 2.0)
        assert series.tooltip(2) == "2 tokens"
        assert series.format_value(1500) == "1,500"
