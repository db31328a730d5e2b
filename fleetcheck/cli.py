"""
Command-line entry point: run one fleet report and print it as a table.

Exit codes:
  0   report produced
  1   invalid configuration in the environment
  2   directory of record could not be read
  130 interrupted by the operator
"""

import argparse
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from fleetcheck.config import LOG_LEVELS, Settings, get_settings
from fleetcheck.errors import DirectoryUnavailableError
from fleetcheck.logger import get_logger, setup_logging
from fleetcheck.services import pipeline, renderer

EXIT_OK = 0
EXIT_INVALID_CONFIG = 1
EXIT_DIRECTORY_UNAVAILABLE = 2
EXIT_INTERRUPTED = 130


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {raw!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Probe all mail servers of the directory, collect cores, RAM, "
            "utilisation and pagefile settings and compare them with the "
            "recommended sizing."
        )
    )
    parser.add_argument(
        "--json",
        dest="json_path",
        type=str,
        help="Additionally write the report as JSON to this path.",
    )
    parser.add_argument(
        "--workers",
        type=_positive_int,
        help="Number of hosts assessed in parallel (default: MAX_WORKERS or 1).",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Log level for progress output (default: LOG_LEVEL or INFO).",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Render the table without colours.",
    )
    return parser.parse_args(argv)


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.workers is not None:
        overrides["max_workers"] = args.workers
    if args.log_level:
        overrides["log_level"] = args.log_level
    if not overrides:
        return settings
    return Settings.model_validate({**settings.model_dump(), **overrides})


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        settings = _apply_overrides(get_settings(), args)
    except ValueError as exc:
        # pydantic ValidationError or a malformed number in the environment
        Console(stderr=True).print(f"[red]Invalid configuration:[/red] {escape(str(exc))}")
        return EXIT_INVALID_CONFIG
    setup_logging(settings.log_level)
    logger = get_logger(__name__)

    try:
        rows = pipeline.run_report(settings)
    except DirectoryUnavailableError as exc:
        logger.error("directory unavailable", error=exc.message)
        return EXIT_DIRECTORY_UNAVAILABLE
    except KeyboardInterrupt:
        logger.warning("report aborted by operator")
        return EXIT_INTERRUPTED

    console = Console(no_color=args.no_color)
    renderer.print_report(rows, settings, console=console)

    if args.json_path:
        json_path = Path(args.json_path)
        renderer.write_json_report(rows, json_path)
        logger.info("json report written", path=str(json_path))

    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
