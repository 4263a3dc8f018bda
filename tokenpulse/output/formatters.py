"""Value formatters and output formatters for tokens and chart series.

Provides:
- Number formatters used by the chart axis, tooltips and table cells
- JSON: machine-readable rows and series
- CSV: spreadsheet-compatible rows and series
- Table: human-readable CLI output (rich, or plain text for files)
"""

import csv
import io
import json
import logging
import math
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable

from rich.console import Console
from rich.table import Table

from ..core.models import MetricSeries, SortConfig, TokenRecord, to_float
from ..core.types import ChartMetric

logger = logging.getLogger(__name__)

# Table columns: (sort key, header, compact header)
TOKEN_COLUMNS = [
    ("name", "Token", "Token"),
    ("ticker", "Ticker", "Tick."),
    ("volume24h", "Volume", "Vol."),
    ("marketCapUSD", "Market Cap", "M.Cap"),
    ("holderCount", "Buyers", "Buy'r"),
    ("liquidityPercent", "Liquidity %", "L%"),
    ("createdAt", "Created", "Since"),
]


def _round_half_up(value: float) -> int:
    """Round half up: 2.5 -> 3, -2.5 -> -2."""
    return math.floor(value + 0.5)


def _plain_number(value: float) -> str:
    """Thousands-separated number with at most 3 decimals."""
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def format_number(value: Any) -> str:
    """Compact number: 2M, 15K, 999. Missing or unparseable values give "-"."""
    number = to_float(value)
    if number is None:
        return "-"
    if number > 1e6:
        return f"{_round_half_up(number / 1e6)}M"
    if number > 1e3:
        return f"{_round_half_up(number / 1e3)}K"
    return f"{_round_half_up(number):,}"


def format_count(value: Any) -> str:
    """Integer with thousands separators."""
    number = to_float(value)
    if number is None:
        return "-"
    return f"{_round_half_up(number):,}"


def format_usd(value: Any) -> str:
    """Compact dollar amount: $2M, $15K. Missing values give "-"."""
    formatted = format_number(value)
    return formatted if formatted == "-" else "$" + formatted


def format_market_cap_compact(value: Any) -> str:
    """Market cap with one decimal for narrow layouts: 31.1K, 2.5M."""
    number = to_float(value)
    if number is None:
        return "-"
    if abs(number) >= 1e6:
        return f"{number / 1e6:.1f}M"
    if abs(number) >= 1e3:
        return f"{number / 1e3:.1f}K"
    return _plain_number(number)


def format_market_cap(value: Any) -> str:
    """Market cap without decimals: 31K, 3M."""
    number = to_float(value)
    if number is None:
        return "-"
    if abs(number) >= 1e6:
        return f"{number / 1e6:.0f}M"
    if abs(number) >= 1e3:
        return f"{number / 1e3:.0f}K"
    return f"{math.floor(number):,}"


def format_market_cap_usd(value: Any) -> str:
    """Dollar market cap without decimals: $31K. Missing values give "-"."""
    formatted = format_market_cap(value)
    return formatted if formatted == "-" else "$" + formatted


def format_chart_axis(value: Any) -> str:
    """Minimal y-axis tick label: 3M, 15k, 250."""
    number = to_float(value)
    if number is None:
        return "-"
    if abs(number) >= 1e6:
        return f"{number / 1e6:.0f}M"
    if abs(number) >= 1e3:
        return f"{number / 1e3:.0f}k"
    return _plain_number(number)


def format_percent(value: float | None) -> str:
    """Whole percent, e.g. 40%. None gives "-"."""
    if value is None or math.isnan(value):
        return "-"
    return f"{_round_half_up(value)}%"


def _plural(count: float, word: str) -> str:
    return word if count == 1 else word + "s"


def time_ago(created_at: datetime | None, now: datetime | None = None) -> str:
    """Relative age such as "3 hours ago" or "just now"."""
    if created_at is None:
        return "-"
    now = now or datetime.now(timezone.utc)
    seconds = math.floor((now - created_at).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 30:
        months = days // 30
        return f"{months} {_plural(months, 'month')} ago"
    if days > 0:
        return f"{days} {_plural(days, 'day')} ago"
    if hours > 0:
        return f"{hours} {_plural(hours, 'hour')} ago"
    if minutes > 0:
        return f"{minutes} {_plural(minutes, 'minute')} ago"
    return "just now"


def short_time_ago(created_at: datetime | None, now: datetime | None = None) -> str:
    """Compact age: 2D, 5hr, 12min, Now."""
    if created_at is None:
        return "-"
    now = now or datetime.now(timezone.utc)
    seconds = math.floor((now - created_at).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    if days > 0:
        return f"{days}D"
    if hours > 0:
        return f"{hours}hr"
    if minutes > 0:
        return f"{minutes}min"
    return "Now"


_METRIC_FORMATTERS: dict[ChartMetric, Callable[[Any], str]] = {
    ChartMetric.TOKENS: format_count,
    ChartMetric.CREATORS: format_count,
    ChartMetric.VOLUME: format_usd,
    ChartMetric.MARKET_CAP: format_usd,
    ChartMetric.BUYERS: format_number,
}


def metric_formatter(metric: ChartMetric | str) -> Callable[[Any], str]:
    """Value formatter for a chart metric's axis and table display."""
    return _METRIC_FORMATTERS[ChartMetric(metric)]


def tooltip_label(metric: ChartMetric | str, value: float) -> str:
    """Tooltip text for one chart point, e.g. "3 tokens", "$12K"."""
    metric = ChartMetric(metric)
    if metric == ChartMetric.TOKENS:
        return f"{format_count(value)} {_plural(value, 'token')}"
    if metric == ChartMetric.CREATORS:
        return f"{format_count(value)} {_plural(value, 'creator')}"
    if metric == ChartMetric.BUYERS:
        return f"{format_number(value)} {_plural(value, 'buyer')}"
    return format_usd(value)


def token_row(token: TokenRecord, now: datetime | None = None) -> dict[str, Any]:
    """Flat, display-ready dict for one token."""
    return {
        "id": token.id,
        "name": token.name,
        "ticker": token.ticker,
        "volume24h": to_float(token.volume_24h),
        "marketCapUSD": to_float(token.market_cap_usd),
        "holderCount": to_float(buyer_count(token)),
        "liquidityPercent": token.liquidity_percent,
        "createdAt": token.created_at.isoformat() if token.created_at else None,
        "age": time_ago(token.created_at, now),
        "address": token.address,
        "image": token.image,
    }


def buyer_count(token: TokenRecord) -> Any:
    """Buyer count as shown in the table: holderCount, else holders."""
    return token.holder_count if token.holder_count is not None else token.holders


class OutputFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format_tokens(
        self,
        tokens: list[TokenRecord],
        sort: SortConfig | None = None,
        now: datetime | None = None,
    ) -> str:
        """Format a token table as a string."""
        pass

    @abstractmethod
    def format_series(self, series: MetricSeries) -> str:
        """Format a chart series as a string."""
        pass

    def format_to_file(self, content: str, filepath: str) -> None:
        """Write formatted content to a file."""
        with open(filepath, "w", encoding="utf-8", newline="") as f:
            f.write(content)


class JSONFormatter(OutputFormatter):
    """Formats tokens and series as JSON."""

    def __init__(self, indent: int = 2):
        """
        Initialize JSON formatter.

        Args:
            indent: JSON indentation level
        """
        self.indent = indent

    def format_tokens(
        self,
        tokens: list[TokenRecord],
        sort: SortConfig | None = None,
        now: datetime | None = None,
    ) -> str:
        """Format tokens as a JSON document with the sort applied."""
        data = {
            "count": len(tokens),
            "sort": sort.model_dump(mode="json") if sort else None,
            "tokens": [token_row(token, now) for token in tokens],
        }
        return json.dumps(data, indent=self.indent)

    def format_series(self, series: MetricSeries) -> str:
        """Format a series with its labels and formatted values."""
        data = {
            "metric": series.metric.value,
            "mode": series.mode.value,
            "title": series.title,
            "points": [
                {
                    "label": label,
                    "start": start.isoformat(),
                    "value": value,
                    "display": series.format_value(value),
                }
                for label, start, value in zip(series.labels, series.starts, series.values)
            ],
        }
        return json.dumps(data, indent=self.indent)


class CSVFormatter(OutputFormatter):
    """Formats tokens and series as CSV."""

    TOKEN_FIELDS = [
        "id", "name", "ticker", "volume24h", "marketCapUSD", "holderCount",
        "liquidityPercent", "createdAt", "address",
    ]

    def __init__(self, delimiter: str = ","):
        """
        Initialize CSV formatter.

        Args:
            delimiter: CSV delimiter
        """
        self.delimiter = delimiter

    def format_tokens(
        self,
        tokens: list[TokenRecord],
        sort: SortConfig | None = None,
        now: datetime | None = None,
    ) -> str:
        """Format tokens as CSV rows."""
        output = io.StringIO()
        writer = csv.DictWriter(
            output,
            fieldnames=self.TOKEN_FIELDS,
            delimiter=self.delimiter,
            extrasaction="ignore",
        )
        writer.writeheader()
        for token in tokens:
            row = token_row(token, now)
            writer.writerow({key: "" if row[key] is None else row[key] for key in self.TOKEN_FIELDS})
        return output.getvalue()

    def format_series(self, series: MetricSeries) -> str:
        """Format a series as label/start/value rows."""
        output = io.StringIO()
        writer = csv.writer(output, delimiter=self.delimiter)
        writer.writerow(["label", "bucket_start", series.metric.value])
        for label, start, value in zip(series.labels, series.starts, series.values):
            writer.writerow([label, start.isoformat(), value])
        return output.getvalue()


class TableFormatter(OutputFormatter):
    """Formats tokens and series as human-readable tables for CLI output."""

    # Below this width the token table switches to compact headers and values
    COMPACT_WIDTH = 100

    def __init__(self, use_rich: bool = True, width: int = 120):
        """
        Initialize table formatter.

        Args:
            use_rich: Colored rich tables (plain text otherwise, e.g. for files)
            width: Maximum table width
        """
        self.use_rich = use_rich
        self.width = width

    @property
    def compact(self) -> bool:
        return self.width < self.COMPACT_WIDTH

    def _cells(self, token: TokenRecord, now: datetime | None) -> list[str]:
        if self.compact:
            return [
                token.name or "-",
                token.ticker or "-",
                format_usd(token.volume_24h),
                format_market_cap_compact(token.market_cap_usd),
                format_number(buyer_count(token)),
                format_percent(token.liquidity_percent),
                short_time_ago(token.created_at, now),
            ]
        return [
            token.name or "-",
            token.ticker or "-",
            format_usd(token.volume_24h),
            format_market_cap_usd(token.market_cap_usd),
            format_number(buyer_count(token)),
            format_percent(token.liquidity_percent),
            time_ago(token.created_at, now),
        ]

    def format_tokens(
        self,
        tokens: list[TokenRecord],
        sort: SortConfig | None = None,
        now: datetime | None = None,
    ) -> str:
        """Format tokens as a table with sort indicators in the headers."""
        headers = [
            (short if self.compact else header) + (sort.indicator(key) if sort else "")
            for key, header, short in TOKEN_COLUMNS
        ]
        rows = [self._cells(token, now) for token in tokens]
        caption = f"{len(tokens)} tokens"
        if sort:
            caption += f" • Sorted by {sort.describe()}"

        if not self.use_rich:
            return self._plain_table(headers, rows, caption)

        table = Table(title="Active Tokens", caption=caption)
        for index, header in enumerate(headers):
            justify = "left" if index < 2 else "right"
            table.add_column(header, justify=justify, style="cyan" if index < 2 else "green")
        if not rows:
            table.add_row("No tokens match the current filters.", *[""] * (len(headers) - 1))
        for row in rows:
            table.add_row(*row)
        return self._render(table)

    def format_series(self, series: MetricSeries) -> str:
        """Format a series as one row per hour bucket."""
        value_header = series.metric.short_name if self.compact else series.metric.display_name
        headers = ["Hour", "Bucket Start (UTC)", value_header]
        rows = [
            [label, start.strftime("%Y-%m-%d %H:%M"), series.format_value(value)]
            for label, start, value in zip(series.labels, series.starts, series.values)
        ]
        caption = f"{series.title} • {series.mode.value}"

        if not self.use_rich:
            return self._plain_table(headers, rows, caption)

        table = Table(title=series.metric.display_name, caption=caption)
        table.add_column("Hour", style="cyan")
        table.add_column("Bucket Start (UTC)", style="dim")
        table.add_column(value_header, justify="right", style="green")
        for row in rows:
            table.add_row(*row)
        return self._render(table)

    def _render(self, table: Table) -> str:
        output = io.StringIO()
        console = Console(file=output, force_terminal=True, width=self.width)
        console.print(table)
        return output.getvalue()

    def _plain_table(self, headers: list[str], rows: list[list[str]], caption: str) -> str:
        """Plain text table without ANSI codes."""
        widths = [len(header) for header in headers]
        for row in rows:
            for index, cell in enumerate(row):
                widths[index] = max(widths[index], len(cell))

        def line(cells: list[str]) -> str:
            return "  ".join(cell.ljust(widths[i]) for i, cell in enumerate(cells)).rstrip()

        lines = [line(headers), "  ".join("-" * w for w in widths)]
        lines.extend(line(row) for row in rows)
        lines.append("")
        lines.append(caption)
        return "\n".join(lines) + "\n"
