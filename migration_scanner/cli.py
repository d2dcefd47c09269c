"""Command-line entry point for the migration scanner."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

from .config import ConfigError, ScannerConfig, load_config
from .engine import Engine, RuleOutcome
from .model import FatalLoadError
from .registry import build_rules
from .result import AnalysisResult, format_summary_table
from .severity import Severity
from .utils.snapshot import SnapshotProvider

DEFAULT_MODEL = "migration-model.yaml"
EXIT_FATAL_LOAD = 3
EXIT_CONFIG_ERROR = 4


def _severity(value: str) -> Severity:
    try:
        return Severity.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Scan a .NET source model for Linux container portability risks",
    )
    parser.add_argument(
        "--model",
        "-m",
        default=DEFAULT_MODEL,
        help="Path to the source-model snapshot (YAML or JSON).",
    )
    parser.add_argument(
        "--config",
        "-c",
        default=None,
        help="Path to a YAML configuration file.",
    )
    parser.add_argument(
        "--severity",
        type=_severity,
        default=None,
        help="Minimum severity to report (critical, high, medium, low, info).",
    )
    parser.add_argument(
        "--exclude",
        "-e",
        action="append",
        default=[],
        help="Regex of file paths to exclude (repeatable, comma-separated allowed).",
    )
    parser.add_argument(
        "--format",
        choices=["json"],
        default="json",
        help="Report format for file output (defaults to json).",
    )
    parser.add_argument(
        "--out",
        "--output",
        dest="output_path",
        type=str,
        default=None,
        help="Path to write the structured report (e.g., artifacts/migration.json).",
    )
    parser.add_argument(
        "--concurrent",
        action="store_true",
        help="Run rules concurrently instead of one after another.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    return parser


def print_progress(outcome: RuleOutcome) -> None:
    elapsed_ms = outcome.elapsed.total_seconds() * 1000
    if outcome.failed:
        print(f"Running {outcome.name}... failed ({len(outcome.failures)} error(s))")
        for failure in outcome.failures:
            print(f"  {failure.unit or outcome.rule_id}: {failure.message}")
    else:
        print(f"Running {outcome.name}... ok ({len(outcome.findings)} findings in {elapsed_ms:.0f}ms)")


def merge_arguments(config: ScannerConfig, args: argparse.Namespace) -> ScannerConfig:
    if args.severity is not None:
        config.min_severity = args.severity
    for value in args.exclude:
        config.exclude.extend(item.strip() for item in value.split(",") if item.strip())
    if args.concurrent:
        config.concurrent = True
    return config


def run_scan(model_path: str, config: ScannerConfig) -> AnalysisResult:
    engine = Engine(build_rules(config), concurrent=config.concurrent, on_rule_complete=print_progress)
    return engine.analyze_sync(SnapshotProvider(model_path), config.filters())


def write_output(result: AnalysisResult, output_path: str | None, report_format: str) -> None:
    summary = format_summary_table(result)
    print(summary)

    if report_format == "json":
        payload = json.dumps(result.to_dict(), indent=2)
        if output_path:
            output_file = Path(output_path)
            output_file.parent.mkdir(parents=True, exist_ok=True)
            output_file.write_text(payload, encoding="utf-8")
            print(f"\nReport written to {output_path}")
        else:
            print("\nJSON Report")
            print(payload)


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        config = merge_arguments(load_config(args.config), args)
        result = run_scan(args.model, config)
    except (ConfigError, FileNotFoundError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except FatalLoadError as exc:
        print(f"Fatal: {exc}", file=sys.stderr)
        return EXIT_FATAL_LOAD
    write_output(result, args.output_path, args.format)
    return result.exit_code()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
