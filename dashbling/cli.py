"""
cli.py

Command line entry point: validate a project's configuration and preview job
schedules.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dashbling.config import ClientConfig
from dashbling.cron import next_run_times
from dashbling.errors import ConfigLoadError, DashblingError, ValidationError
from dashbling.loader import load, resolve_config_path

DEFAULT_PROJECT = "."
DEFAULT_PREVIEW_COUNT = 5
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"

logger = logging.getLogger("dashbling")


def setup_logging(log_file: Optional[str] = None, verbose: bool = False) -> logging.Logger:
    if logger.handlers:
        return logger
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    return logger


def _load_or_report(project_path: Path) -> Optional[ClientConfig]:
    try:
        return load(project_path)
    except ValidationError as exc:
        print(f"Config invalid: {resolve_config_path(project_path)} ({len(exc.errors)} error(s))")
        return None
    except ConfigLoadError as exc:
        print(str(exc))
        return None


def command_validate(project_path: Path) -> int:
    config = _load_or_report(project_path)
    if config is None:
        return 1
    print(f"Config valid: {resolve_config_path(project_path)}")
    print(f"Total jobs: {len(config.jobs)}")
    print(f"Port: {config.port}")
    print(f"Force HTTPS: {'true' if config.force_https else 'false'}")
    print(f"Event storage: {config.event_storage_path}")
    return 0


def command_preview(project_path: Path, count: int) -> int:
    config = _load_or_report(project_path)
    if config is None:
        return 1
    if not config.jobs:
        print("No jobs configured.")
        return 0
    for idx, job in enumerate(config.jobs, start=1):
        print("=" * 80)
        print(f"Job {idx}: {job.schedule}")
        print(f"Action: {getattr(job.action, '__qualname__', repr(job.action))}")
        print(f"Next {count} run(s):")
        for run_dt in next_run_times(job.schedule, count):
            print(f"- {run_dt.isoformat()}")
    print("=" * 80)
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="dashbling project configuration tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--log-file", help="Also write log records to this file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser("validate", help="Load and validate a project configuration")
    validate_parser.add_argument(
        "project",
        nargs="?",
        default=DEFAULT_PROJECT,
        help=f"Project directory (default: {DEFAULT_PROJECT})",
    )

    preview_parser = subparsers.add_parser("preview", help="Show upcoming run times for each job")
    preview_parser.add_argument(
        "project",
        nargs="?",
        default=DEFAULT_PROJECT,
        help=f"Project directory (default: {DEFAULT_PROJECT})",
    )
    preview_parser.add_argument("--count", type=int, default=DEFAULT_PREVIEW_COUNT, help="Next run count")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(log_file=args.log_file, verbose=args.verbose)
    project_path = Path(args.project).resolve()

    try:
        if args.command == "validate":
            return command_validate(project_path)
        if args.command == "preview":
            if args.count <= 0:
                raise DashblingError("--count must be >= 1")
            return command_preview(project_path, count=args.count)
        raise DashblingError(f"Unsupported command: {args.command}")
    except DashblingError as exc:
        logger.error(str(exc))
        return 1
    except Exception as exc:  # pragma: no cover - defensive
        logger.exception("Unexpected error: %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
