"""CLI interface for dstat_probe."""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import time
from pathlib import Path

import yaml

from . import __version__
from .config import DStatProbeConfig, load_config


def _print_samples(samples, names: list[str]) -> None:
    for sample in samples:
        print(json.dumps(sample.to_dict(names)))
    sys.stdout.flush()


def _cmd_collect(args: argparse.Namespace, cfg: DStatProbeConfig) -> None:
    """Run dstat and print drained samples as JSON lines."""
    from .collector.dstat import DStatProbe
    from .collector.launcher import ProcessLauncher
    from .errors import ProcessLaunchFailure

    probe = DStatProbe(launcher=ProcessLauncher(timeout_seconds=cfg.probe.shutdown_timeout_seconds))
    names = probe.metadata()

    try:
        probe.start(cfg.probe)
    except ProcessLaunchFailure:
        sys.exit(1)

    stop = False

    def _handle_signal(_sig: int, _frame: object) -> None:
        nonlocal stop
        stop = True

    previous = {
        sig: signal.signal(sig, _handle_signal) for sig in (signal.SIGINT, signal.SIGTERM)
    }

    deadline = time.monotonic() + args.duration if args.duration is not None else None
    try:
        while not stop:
            if deadline is not None and time.monotonic() >= deadline:
                break
            time.sleep(cfg.reporter.drain_interval_seconds)
            _print_samples(probe.drain(), names)
    finally:
        probe.stop()
        _print_samples(probe.drain(), names)
        for sig, handler in previous.items():
            signal.signal(sig, handler)


def _cmd_parse(args: argparse.Namespace, _cfg: DStatProbeConfig) -> None:
    """Replay captured dstat output and print the samples it yields."""
    from .collector.parser import LineParser
    from .collector.schema import column_names
    from .diagnostics import LoggingSink

    path = Path(args.file)
    if not path.exists():
        print(f"No such file: {path}", file=sys.stderr)
        sys.exit(1)

    samples = []
    parser = LineParser(samples.append, LoggingSink())
    with open(path, encoding="utf-8") as fh:
        for line in fh:
            parser.feed(line.rstrip("\r\n"))

    _print_samples(samples, column_names())
    logging.getLogger(__name__).info(
        "Parsed %d samples from %d lines", len(samples), parser.lines_consumed
    )


def _cmd_columns(_args: argparse.Namespace, _cfg: DStatProbeConfig) -> None:
    """Print the column schema using Rich."""
    from rich.console import Console
    from rich.table import Table

    from .collector.schema import COLUMNS, TIME_COLUMN

    table = Table(title="dstat columns")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Section")
    table.add_column("Header label")
    table.add_column("Unit conversion")

    table.add_row("0", TIME_COLUMN, "", "", "wall clock")
    for idx, col in enumerate(COLUMNS, start=1):
        conversion = "bytes -> KB" if col.divisor != 1.0 else "as reported"
        table.add_row(str(idx), col.name, col.section, col.label, conversion)

    Console().print(table)


def _cmd_version(_args: argparse.Namespace, _cfg: DStatProbeConfig) -> None:
    print(f"dstat_probe {__version__}")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the dstat-probe CLI."""
    parser = argparse.ArgumentParser(
        prog="dstat-probe",
        description="Collect system metrics from the Linux dstat tool",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to dstat_probe.yaml")
    sub = parser.add_subparsers(dest="command")

    # collect
    collect_p = sub.add_parser("collect", help="Run dstat and print samples as JSON lines")
    collect_p.add_argument("--duration", type=float, default=None, help="Stop after this many seconds")
    collect_p.set_defaults(func=_cmd_collect)

    # parse
    parse_p = sub.add_parser("parse", help="Parse captured dstat output from a file")
    parse_p.add_argument("file", help="File holding dstat output")
    parse_p.set_defaults(func=_cmd_parse)

    # columns
    columns_p = sub.add_parser("columns", help="Show the column schema")
    columns_p.set_defaults(func=_cmd_columns)

    # version
    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        cfg = load_config(args.config)
    except yaml.YAMLError as exc:
        print(f"Invalid configuration file: {exc}", file=sys.stderr)
        sys.exit(2)

    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    args.func(args, cfg)


if __name__ == "__main__":
    main()
