"""Pydantic data models for the token pulse dashboard.

All data structures are immutable (frozen) after creation. A refresh
replaces the whole token list rather than editing records in place.
"""

import math
import re
from datetime import datetime, timezone
from typing import Any

from dateutil import parser as date_parser
from pydantic import BaseModel, Field, field_validator

from .types import (
    ACTIVE_STATUS,
    ChartMetric,
    ChartMode,
    DataSource,
    NumericLike,
    SortDirection,
)

# Leading numeric prefix, the way the listing API's web client reads "240.5abc"
_NUMBER_PREFIX = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def to_float(value: Any) -> float | None:
    """
    Parse a raw API number.

    Accepts ints, floats and numeric strings (leading numeric prefix).
    Returns None for anything unparseable, NaN, infinite or too large
    for a float.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        match = _NUMBER_PREFIX.match(value)
        if not match:
            return None
        number = float(match.group(0))
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def to_int(value: Any) -> int | None:
    """Parse a raw API count, truncating toward zero."""
    number = to_float(value)
    if number is None:
        return None
    return int(number)


def first_present(*values: Any) -> Any:
    """Return the first value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse a creation timestamp.

    ISO strings go through dateutil; numbers are epoch milliseconds.
    Naive values are taken as UTC. Unparseable input yields None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        try:
            parsed = date_parser.isoparse(value.strip())
        except (ValueError, OverflowError):
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class TokenRecord(BaseModel):
    """A token as returned by the listing API.

    Field aliases are the API's camelCase names. Fields the API adds later
    are kept as extras and stay reachable through ``get``.
    """

    id: str
    name: str | None = None
    ticker: str | None = None
    status: str | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    creator: str | None = None
    volume_24h: NumericLike = Field(default=None, alias="volume24h")
    volume: NumericLike = None
    market_cap_usd: NumericLike = Field(default=None, alias="marketCapUSD")
    market_cap: NumericLike = Field(default=None, alias="marketCap")
    holders: NumericLike = None
    holder_count: NumericLike = Field(default=None, alias="holderCount")
    liquidity: NumericLike = None
    liquidity_percent_raw: NumericLike = Field(default=None, alias="liquidityPercent")
    mint: str | None = None
    contract_address: str | None = Field(default=None, alias="contractAddress")
    image: str | None = None

    model_config = {"frozen": True, "populate_by_name": True, "extra": "allow"}

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator(
        "name", "ticker", "status", "creator", "mint", "contract_address", "image",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return None

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)

    @field_validator(
        "volume_24h", "volume", "market_cap_usd", "market_cap",
        "holders", "holder_count", "liquidity", "liquidity_percent_raw",
        mode="before",
    )
    @classmethod
    def _keep_scalar(cls, value: Any) -> Any:
        if isinstance(value, (int, float, str)) and not isinstance(value, bool):
            return value
        return None

    @property
    def is_active(self) -> bool:
        """Whether the token participates in tables and charts."""
        return self.status == ACTIVE_STATUS

    @property
    def volume_value(self) -> float:
        """Trailing volume: volume24h, else volume, else 0."""
        return to_float(first_present(self.volume_24h, self.volume)) or 0.0

    @property
    def market_cap_value(self) -> float:
        """Market cap: marketCapUSD, else marketCap, else 0."""
        return to_float(first_present(self.market_cap_usd, self.market_cap)) or 0.0

    @property
    def holder_value(self) -> int:
        """Buyer count: holders, else holderCount, else 0."""
        return to_int(first_present(self.holders, self.holder_count)) or 0

    @property
    def liquidity_percent(self) -> float | None:
        """Explicit liquidityPercent, else liquidity / marketCapUSD * 100."""
        explicit = to_float(self.liquidity_percent_raw)
        if explicit is not None:
            return explicit
        liquidity = to_float(self.liquidity)
        market_cap = to_float(self.market_cap_usd)
        if liquidity is not None and market_cap is not None and market_cap > 0:
            return liquidity / market_cap * 100
        return None

    @property
    def address(self) -> str:
        """Canonical on-chain address: mint, contractAddress, then id."""
        return self.mint or self.contract_address or self.id

    def get(self, field: str) -> Any:
        """
        Look up a raw value by API field name.

        Accepts API aliases ("marketCapUSD"), attribute names
        ("market_cap_usd") and unknown extras. The synthetic key
        "liquidityPercent" resolves through ``liquidity_percent``.
        """
        if field == "liquidityPercent":
            return self.liquidity_percent
        attribute = _FIELD_BY_ALIAS.get(field, field)
        if attribute in type(self).model_fields:
            return getattr(self, attribute)
        return (self.model_extra or {}).get(field)


_FIELD_BY_ALIAS: dict[str, str] = {
    info.alias: name
    for name, info in TokenRecord.model_fields.items()
    if info.alias
}


class Timeline(BaseModel):
    """24 contiguous one-hour buckets ending at ``end``."""

    labels: list[str]
    starts: list[datetime]
    end: datetime

    model_config = {"frozen": True}

    @property
    def start(self) -> datetime:
        """Start of the oldest bucket."""
        return self.starts[0]

    def bucket_bounds(self, index: int) -> tuple[datetime, datetime]:
        """Return (start, end) of a bucket; only the last one is closed on the right."""
        upper = self.starts[index + 1] if index < len(self.starts) - 1 else self.end
        return self.starts[index], upper

    def bucket_index(self, timestamp: datetime | None) -> int | None:
        """Index of the bucket holding ``timestamp``, or None outside the window."""
        if timestamp is None:
            return None
        last = len(self.starts) - 1
        for index in range(last + 1):
            lower, upper = self.bucket_bounds(index)
            if lower <= timestamp < upper or (index == last and timestamp == upper):
                return index
        return None


class MetricSeries(BaseModel):
    """One chart series: 24 values aligned to the timeline labels."""

    metric: ChartMetric
    mode: ChartMode
    labels: list[str]
    values: list[float]
    starts: list[datetime]
    title: str

    model_config = {"frozen": True}

    @property
    def total(self) -> float:
        """Sum of the hourly values (last value in cumulative mode)."""
        if self.mode == ChartMode.CUMULATIVE:
            return self.values[-1] if self.values else 0.0
        return sum(self.values)

    def format_value(self, value: float) -> str:
        """Format a value for the y-axis, using the metric's formatter."""
        from ..output.formatters import metric_formatter

        return metric_formatter(self.metric)(value)

    def tooltip(self, value: float) -> str:
        """Tooltip text for one point."""
        from ..output.formatters import tooltip_label

        return tooltip_label(self.metric, value)

    def points(self) -> list[tuple[str, float]]:
        """(label, value) pairs, oldest first."""
        return list(zip(self.labels, self.values))


class SortConfig(BaseModel):
    """Active table sort: key plus direction."""

    key: str = "marketCapUSD"
    direction: SortDirection = SortDirection.DESC

    model_config = {"frozen": True}

    def toggle(self, key: str) -> "SortConfig":
        """Same key flips direction; a new key starts descending."""
        if key == self.key:
            return SortConfig(key=key, direction=self.direction.flipped())
        return SortConfig(key=key, direction=SortDirection.DESC)

    def indicator(self, key: str) -> str:
        """Arrow shown next to a column header."""
        if key != self.key:
            return ""
        return " ▲" if self.direction == SortDirection.ASC else " ▼"

    def describe(self) -> str:
        """Human-readable summary, e.g. "marketCapUSD (descending)"."""
        word = "ascending" if self.direction == SortDirection.ASC else "descending"
        return f"{self.key} ({word})"


class AuditEntry(BaseModel):
    """Audit trail entry for one fetch attempt."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: DataSource
    action: str  # "fetch", "parse"
    endpoint: str | None = None
    route: str | None = None  # "direct" or the relay prefix used
    success: bool = True
    error_message: str | None = None
    status_code: int | None = None
    duration_ms: int | None = None
    notes: str | None = None

    model_config = {"frozen": True}


class DashboardState(BaseModel):
    """Everything the presentation layer renders, owned by the controller."""

    tokens: list[TokenRecord] = Field(default_factory=list)
    sort: SortConfig = Field(default_factory=SortConfig)
    metric: ChartMetric = ChartMetric.TOKENS
    mode: ChartMode = ChartMode.HOURLY
    loading: bool = False
    error: str | None = None
    last_updated: datetime | None = None
    last_attempt: datetime | None = None

    model_config = {"frozen": True}

    @property
    def token_count(self) -> int:
        """Number of active tokens held."""
        return len(self.tokens)
