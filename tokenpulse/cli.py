"""CLI entry point for the token pulse dashboard.

Usage:
    token-pulse tokens
    token-pulse tokens --sort liquidityPercent --asc --limit 20
    token-pulse chart --metric volume --mode cumulative --output json
    token-pulse tokens --input saved_payload.json --output csv --save out/tokens
    token-pulse audit
"""

import json
import logging
from pathlib import Path
from typing import Callable, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from .controller import DashboardController
from .core.config import DashboardConfig
from .core.exceptions import TokenPulseError
from .core.types import ChartMetric, ChartMode, SortDirection
from .output.audit_trail import AuditTrailFormatter
from .output.formatters import CSVFormatter, JSONFormatter, OutputFormatter, TableFormatter

# Initialize app
app = typer.Typer(
    name="token-pulse",
    help="auto.fun token launch analytics",
    add_completion=False,
)

console = Console()
# Logs go to stderr, command output to stdout
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
    )


def _load_config(config: Optional[Path]) -> DashboardConfig:
    try:
        return DashboardConfig.load(config_file=config)
    except TokenPulseError as e:
        console.print(f"[red]{e.message}[/]")
        raise typer.Exit(1)


def _pick_formatter(output: str) -> OutputFormatter:
    output_lower = output.lower()
    if output_lower == "json":
        return JSONFormatter()
    if output_lower == "csv":
        return CSVFormatter()
    if output_lower == "table":
        return TableFormatter(width=console.width)
    console.print(f"[red]Invalid output format: {output}. Use table, json or csv[/]")
    raise typer.Exit(1)


def _load_tokens(controller: DashboardController, input_file: Optional[Path]) -> None:
    """Fill the controller from a saved payload or a live fetch."""
    if input_file is not None:
        try:
            payload = json.loads(input_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            console.print(f"[red]Could not read {input_file}: {e}[/]")
            raise typer.Exit(1)
        raw_tokens = payload.get("tokens", []) if isinstance(payload, dict) else payload
        if not isinstance(raw_tokens, list):
            console.print(f"[red]{input_file} has no token list[/]")
            raise typer.Exit(1)
        controller.set_tokens(controller.provider.parse_tokens(raw_tokens))
        return

    with console.status("Loading tokens..."):
        state = controller.refresh()
    if state.error:
        console.print(f"[red]{state.error}[/]")
        raise typer.Exit(1)


def _emit(
    formatter: OutputFormatter,
    render: Callable[[OutputFormatter], str],
    output: str,
    save: Optional[Path],
) -> None:
    content = render(formatter)
    # Table output is already rendered with ANSI styling
    print(content, end="" if output.lower() == "table" else "\n")

    if save:
        save.parent.mkdir(parents=True, exist_ok=True)
        suffix = {"json": ".json", "csv": ".csv"}.get(output.lower(), ".txt")
        save_path = save.with_suffix(suffix)
        if isinstance(formatter, TableFormatter):
            # Files get plain text, no ANSI codes
            formatter = TableFormatter(use_rich=False)
            content = render(formatter)
        formatter.format_to_file(content, str(save_path))
        console.print(f"[green]Saved to {save_path}[/]")


@app.command()
def tokens(
    sort: Optional[str] = typer.Option(
        None,
        "--sort", "-s",
        help="Sort key, e.g. marketCapUSD, volume24h, holderCount, liquidityPercent, createdAt",
    ),
    ascending: bool = typer.Option(
        False,
        "--asc",
        help="Sort ascending (default is descending)",
    ),
    limit: Optional[int] = typer.Option(
        None,
        "--limit", "-n",
        help="Show only the first N rows",
    ),
    output: str = typer.Option(
        "table",
        "--output", "-o",
        help="Output format: table, json, csv",
    ),
    save: Optional[Path] = typer.Option(
        None,
        "--save",
        help="Save output to file",
    ),
    input_file: Optional[Path] = typer.Option(
        None,
        "--input", "-i",
        help="Read a saved API payload instead of fetching",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to YAML config file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """
    List active tokens in a sortable table.

    Tokens missing the sort field are listed last in either direction.
    """
    setup_logging(verbose)
    formatter = _pick_formatter(output)
    controller = DashboardController(config=_load_config(config))

    key = sort or controller.state.sort.key
    if key != controller.state.sort.key:
        controller.sort_by(key)
    if ascending and controller.state.sort.direction == SortDirection.DESC:
        # Selecting the active key again flips it
        controller.sort_by(key)

    _load_tokens(controller, input_file)

    rows = controller.sorted_tokens()
    if limit is not None:
        rows = rows[:limit]

    _emit(
        formatter,
        lambda f: f.format_tokens(rows, sort=controller.state.sort),
        output,
        save,
    )


@app.command()
def chart(
    metric: str = typer.Option(
        "tokens",
        "--metric", "-m",
        help="Metric: tokens, creators, volume, marketcap, buyers",
    ),
    mode: str = typer.Option(
        "hourly",
        "--mode",
        help="Mode: hourly, cumulative",
    ),
    output: str = typer.Option(
        "table",
        "--output", "-o",
        help="Output format: table, json, csv",
    ),
    save: Optional[Path] = typer.Option(
        None,
        "--save",
        help="Save output to file",
    ),
    input_file: Optional[Path] = typer.Option(
        None,
        "--input", "-i",
        help="Read a saved API payload instead of fetching",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to YAML config file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """
    Show the 24-hour series for one metric.

    Examples:
        token-pulse chart --metric creators
        token-pulse chart --metric volume --mode cumulative --output csv
    """
    setup_logging(verbose)

    try:
        chart_metric = ChartMetric(metric.lower())
        chart_mode = ChartMode(mode.lower())
    except ValueError:
        console.print(f"[red]Invalid metric or mode: {metric}/{mode}[/]")
        console.print("Metrics: tokens, creators, volume, marketcap, buyers. Modes: hourly, cumulative")
        raise typer.Exit(1)

    formatter = _pick_formatter(output)
    controller = DashboardController(config=_load_config(config))
    controller.select_metric(chart_metric)
    controller.select_mode(chart_mode)

    _load_tokens(controller, input_file)

    series = controller.series()
    _emit(formatter, lambda f: f.format_series(series), output, save)

    if output.lower() == "table":
        console.print(f"[dim]{chart_metric.description}[/]")


@app.command()
def audit(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to YAML config file",
    ),
    save: Optional[Path] = typer.Option(
        None,
        "--save",
        help="Save audit trail to file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """Fetch once and show which routes were tried."""
    setup_logging(verbose)
    controller = DashboardController(config=_load_config(config))

    with console.status("Fetching tokens..."):
        state = controller.refresh()

    audit_formatter = AuditTrailFormatter()
    entries = controller.provider.get_audit_trail()
    console.print(audit_formatter.format_summary(entries))

    if save:
        save.parent.mkdir(parents=True, exist_ok=True)
        audit_formatter.format_to_file(entries, str(save))
        console.print(f"[green]Audit trail saved to {save}[/]")

    if state.error:
        console.print(f"[red]{state.error}[/]")
        raise typer.Exit(1)
    console.print(f"[bold]{state.token_count} active tokens[/]")


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__
    console.print(f"Token Pulse v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
