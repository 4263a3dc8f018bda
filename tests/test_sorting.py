"""Tests for table sorting and the sort toggle."""

import json

import pytest

from tokenpulse.analytics.sorting import apply_sort, sort_tokens, sort_value
from tokenpulse.core.models import SortConfig, TokenRecord
from tokenpulse.core.types import SortDirection


def token(id_: str, **fields) -> TokenRecord:
    return TokenRecord.model_validate({"id": id_, "status": "active", **fields})


def ids(tokens: list[TokenRecord]) -> list[str]:
    return [t.id for t in tokens]


class TestLiquidityPercent:
    """Sorting on the derived liquidity percentage."""

    def test_explicit_then_derived_then_missing(self):
        """Explicit 40%, derived 10%, then the token with neither."""
        tokens = [
            token("missing"),
            token("derived", liquidity=10, marketCapUSD=100),
            token("explicit", liquidityPercent=40),
        ]
        result = sort_tokens(tokens, "liquidityPercent", SortDirection.DESC)
        assert ids(result) == ["explicit", "derived", "missing"]

    def test_ascending_keeps_missing_last(self):
        tokens = [
            token("explicit", liquidityPercent=40),
            token("missing"),
            token("derived", liquidity=10, marketCapUSD=100),
        ]
        result = sort_tokens(tokens, "liquidityPercent", SortDirection.ASC)
        assert ids(result) == ["derived", "explicit", "missing"]

    def test_zero_market_cap_is_missing(self):
        tokens = [token("zero", liquidity=10, marketCapUSD=0), token("ok", liquidityPercent=1)]
        assert ids(sort_tokens(tokens, "liquidityPercent")) == ["ok", "zero"]


class TestAbsencePolicy:
    """Tokens without the sort key always go last."""

    @pytest.fixture
    def mixed(self):
        return [
            token("a", marketCapUSD=300),
            token("none-1"),
            token("b", marketCapUSD=100),
            token("empty", marketCapUSD=""),
            token("c", marketCapUSD=200),
            token("none-2", marketCapUSD=None),
        ]

    @pytest.mark.parametrize("direction", [SortDirection.ASC, SortDirection.DESC])
    def test_missing_after_present(self, mixed, direction):
        result = ids(sort_tokens(mixed, "marketCapUSD", direction))
        present = {"a", "b", "c"}
        first_missing = min(i for i, t in enumerate(result) if t not in present)
        assert all(t not in present for t in result[first_missing:])
        assert set(result[:first_missing]) == present

    def test_desc_order(self, mixed):
        result = ids(sort_tokens(mixed, "marketCapUSD", "desc"))
        assert result[:3] == ["a", "c", "b"]

    def test_asc_order(self, mixed):
        result = ids(sort_tokens(mixed, "marketCapUSD", "asc"))
        assert result[:3] == ["b", "c", "a"]

    def test_missing_keep_input_order(self, mixed):
        result = ids(sort_tokens(mixed, "marketCapUSD", "desc"))
        assert result[3:] == ["none-1", "empty", "none-2"]


class TestValueTypes:
    """Numeric, string and date columns."""

    def test_numeric_strings_sort_numerically(self):
        tokens = [
            token("nine", volume24h="9"),
            token("hundred", volume24h="100"),
            token("ten", volume24h=10),
        ]
        assert ids(sort_tokens(tokens, "volume24h", "asc")) == ["nine", "ten", "hundred"]

    def test_text_sorts_case_insensitively(self):
        tokens = [token("1", name="beta"), token("2", name="Alpha"), token("3", name="gamma")]
        assert ids(sort_tokens(tokens, "name", "asc")) == ["2", "1", "3"]

    def test_created_at_desc_newest_first(self):
        tokens = [
            token("old", createdAt="2024-04-01T00:00:00Z"),
            token("new", createdAt="2024-05-01T00:00:00Z"),
            token("undated"),
        ]
        assert ids(sort_tokens(tokens, "createdAt", "desc")) == ["new", "old", "undated"]

    def test_unknown_key_all_missing(self):
        tokens = [token("a"), token("b")]
        assert ids(sort_tokens(tokens, "noSuchField", "asc")) == ["a", "b"]

    def test_extra_fields_are_sortable(self):
        tokens = [token("a", replies=3), token("b", replies=12)]
        assert ids(sort_tokens(tokens, "replies", "desc")) == ["b", "a"]


class TestStability:
    """Equal keys keep their relative order."""

    def test_ties_keep_input_order(self):
        tokens = [token(str(i), marketCapUSD=5) for i in range(5)]
        assert ids(sort_tokens(tokens, "marketCapUSD", "desc")) == ["0", "1", "2", "3", "4"]
        assert ids(sort_tokens(tokens, "marketCapUSD", "asc")) == ["0", "1", "2", "3", "4"]

    def test_input_not_modified(self):
        tokens = [token("a", marketCapUSD=1), token("b", marketCapUSD=2)]
        sort_tokens(tokens, "marketCapUSD", "desc")
        assert ids(tokens) == ["a", "b"]


class TestSortConfig:
    """Tests for the sort toggle state machine."""

    def test_default(self):
        config = SortConfig()
        assert config.key == "marketCapUSD"
        assert config.direction == SortDirection.DESC

    def test_same_key_flips(self):
        config = SortConfig(key="volume24h", direction=SortDirection.DESC)
        assert config.toggle("volume24h").direction == SortDirection.ASC
        assert config.toggle("volume24h").toggle("volume24h").direction == SortDirection.DESC

    def test_new_key_resets_to_desc(self):
        config = SortConfig(key="volume24h", direction=SortDirection.ASC)
        toggled = config.toggle("createdAt")
        assert toggled.key == "createdAt"
        assert toggled.direction == SortDirection.DESC

    def test_indicator(self):
        config = SortConfig(key="name", direction=SortDirection.ASC)
        assert config.indicator("name") == " ▲"
        assert config.toggle("name").indicator("name") == " ▼"
        assert config.indicator("ticker") == ""

    def test_describe(self):
        assert SortConfig().describe() == "marketCapUSD (descending)"

    def test_apply_sort(self):
        tokens = [token("a", holderCount=1), token("b", holderCount=5)]
        config = SortConfig(key="holderCount", direction=SortDirection.ASC)
        assert ids(apply_sort(tokens, config)) == ["a", "b"]


class TestSortValue:
    def test_nan_and_empty_are_missing(self):
        assert sort_value(token("a", marketCapUSD=float("nan")), "marketCapUSD") is None
        assert sort_value(token("b", ticker=""), "ticker") is None
        assert sort_value(token("c", liquidityPercent="12"), "liquidityPercent") == 12.0

    def test_oversized_integer_is_missing(self):
        huge = json.loads("1" + "0" * 400)
        tokens = [token("huge", volume24h=huge), token("small", volume24h=5), token("big", volume24h=50)]

        assert sort_value(tokens[0], "volume24h") is None
        assert ids(sort_tokens(tokens, "volume24h", SortDirection.DESC)) == ["big", "small", "huge"]
        assert ids(sort_tokens(tokens, "volume24h", SortDirection.ASC)) == ["small", "big", "huge"]
