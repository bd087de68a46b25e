"""
Command-line interface for the intraday direction engine.

Commands:
1. run    - Replay a CSV of bars through the strategy and list the signals
2. config - Show the effective strategy configuration

Usage:
    python -m intraday_direction.cli run --csv data/ES_1min.csv --symbol ES
    python -m intraday_direction.cli run --csv data/ES_1min.csv --symbol ES --db runs.sqlite3 --hourly
    python -m intraday_direction.cli config --session-close 15:15
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from intraday_direction.config import ConfigError, RunConfig, StrategyConfig, parse_time_of_day
from intraday_direction.diagnostics import HourlyStats
from intraday_direction.engine import Engine, LoggingSink, RunSummary
from intraday_direction.feed import load_csv_bars
from intraday_direction.logging_setup import configure_logging
from intraday_direction.models import BarValidationError
from intraday_direction.session import mark_sessions

logger = logging.getLogger("intraday_direction.cli")


def _strategy_config(args: argparse.Namespace) -> StrategyConfig:
    cfg = StrategyConfig.from_env()
    overrides = {}
    if args.momentum_period is not None:
        overrides["momentum_period"] = args.momentum_period
    if args.rsi_period is not None:
        overrides["rsi_period"] = args.rsi_period
    if args.rsi_smooth is not None:
        overrides["rsi_smooth"] = args.rsi_smooth
    if args.min_strength is not None:
        overrides["min_strength"] = args.min_strength
    if args.strength_gate:
        overrides["strength_gate"] = True
    if args.session_close is not None:
        overrides["session_close"] = parse_time_of_day(args.session_close)
    if args.close_buffer is not None:
        overrides["close_buffer_minutes"] = args.close_buffer
    return replace(cfg, **overrides).validate()


def _signals_table(summary: RunSummary) -> Table:
    table = Table(title=f"Signals {summary.symbol}", show_lines=False)
    table.add_column("time", style="bold")
    table.add_column("signal")
    table.add_column("tag")
    table.add_column("price", justify="right")
    table.add_column("direction")
    table.add_column("strength", justify="right")
    for event in summary.signals:
        style = "green" if event.signal_type.value == "ENTER_LONG" else "red" if event.signal_type.value == "ENTER_SHORT" else "yellow"
        table.add_row(
            event.timestamp.isoformat(sep=" "),
            f"[{style}]{event.signal_type.value}[/{style}]",
            event.tag,
            f"{event.price:.4f}",
            event.direction.value,
            "-" if event.strength is None else f"{event.strength:.3f}",
        )
    return table


def _hourly_table(hourly: HourlyStats) -> Table:
    table = Table(title="Mean % change by hour")
    table.add_column("hour", justify="right")
    table.add_column("mean %", justify="right")
    table.add_column("bars", justify="right")
    for hour, stat in sorted(hourly.observed().items()):
        table.add_row(f"{hour:02d}", f"{stat.mean_change:+.4f}", str(stat.count))
    return table


def cmd_run(args: argparse.Namespace) -> int:
    """Replay a CSV file through the engine."""
    console = Console()
    try:
        strategy_cfg = _strategy_config(args)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    env_cfg = RunConfig.from_env(symbol=args.symbol.upper())
    run_cfg = replace(
        env_cfg,
        db_path=args.db or env_cfg.db_path,
        strategy=strategy_cfg,
    )

    hourly = HourlyStats() if args.hourly else None
    engine = Engine(config=run_cfg, sinks=[LoggingSink()], hourly=hourly)

    try:
        bars = load_csv_bars(args.csv)
        summary = engine.run(mark_sessions(bars))
    except BarValidationError as e:
        logger.error(f"Bad input: {e}")
        return 1
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    console.print(_signals_table(summary))
    console.print(
        f"bars={summary.bars_processed} skipped={summary.bars_skipped} "
        f"position={summary.position.value} direction={summary.direction.value}"
        + (" (resumed)" if summary.resumed else "")
    )
    if engine.hourly is not None:
        console.print(_hourly_table(engine.hourly))
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Print the effective strategy configuration."""
    try:
        cfg = _strategy_config(args)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    table = Table(title="Strategy config", show_lines=True)
    table.add_column("key", style="bold")
    table.add_column("value")
    for key, value in cfg.to_dict().items():
        table.add_row(key, str(value))
    if not cfg.strength_gate:
        table.add_row("note", "min_strength is inert (strength gate disabled)")
    Console().print(table)
    return 0


def _add_strategy_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--momentum-period", type=int, help="Percent-change window [10, 50]")
    parser.add_argument("--rsi-period", type=int, help="RSI period [2, 30]")
    parser.add_argument("--rsi-smooth", type=int, help="RSI smoothing period [1, 10]")
    parser.add_argument("--min-strength", type=float, help="Minimum |strength| when the gate is on [0.1, 1.0]")
    parser.add_argument("--strength-gate", action="store_true", help="Require strength >= min-strength to enter")
    parser.add_argument("--session-close", help="Session close time HH:MM (default 16:00)")
    parser.add_argument("--close-buffer", type=float, help="Forced-exit window before close, minutes")


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Intraday trend-direction signal engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    parser.add_argument("--log-file", help="Also log to this file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Replay bars from a CSV file")
    run_parser.add_argument("--csv", required=True, help="CSV with timestamp,open,high,low,close")
    run_parser.add_argument("--symbol", "-s", default="UNKNOWN", help="Instrument symbol")
    run_parser.add_argument("--db", help="SQLite file for signals and resumable state")
    run_parser.add_argument("--hourly", action="store_true", help="Print hour-of-day diagnostics")
    _add_strategy_args(run_parser)
    run_parser.set_defaults(func=cmd_run)

    config_parser = subparsers.add_parser("config", help="Show effective configuration")
    _add_strategy_args(config_parser)
    config_parser.set_defaults(func=cmd_config)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    configure_logging(level=args.log_level, log_file=args.log_file or os.getenv("INTRADAY_LOG_FILE") or None)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
