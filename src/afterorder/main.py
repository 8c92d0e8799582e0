"""
Command line entry point for afterorder.

Resolves the compile order of one or more project files and writes a
``.targets`` fragment beside each of them.

Example:
    Run from the command line:
    $ afterorder src/App/App.fsproj src/Lib/Lib.fsproj
    $ python -m afterorder --no-write --log-level DEBUG App.fsproj

Exit status is 0 only when no project produced an error, 1 otherwise and 2
for usage or configuration errors.
"""

from __future__ import annotations

import argparse
import os
import sys
from dataclasses import replace
from pathlib import Path

from afterorder import __version__
from afterorder.core.config import ResolverConfig, load_config
from afterorder.core.orchestrator import ProjectResolver
from afterorder.core.reporter import report
from afterorder.utils.logger import LOGGER_NAME, VALID_LOG_LEVELS, setup_logger
from afterorder.utils.path_utils import normalize_path

EXIT_OK = 0
EXIT_ERRORS = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    """
    Construct the argument parser for the afterorder CLI.

    Returns:
        argparse.ArgumentParser: Configured parser instance.
    """
    p = argparse.ArgumentParser(
        prog="afterorder",
        description=(
            "Compute the compile order of F# projects from '// @after' "
            "annotations and write it as an MSBuild .targets file."
        ),
    )
    p.add_argument(
        "projects",
        nargs="+",
        metavar="PROJECT",
        help="Project file (e.g. App.fsproj); its directory is the project root.",
    )
    p.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON configuration file.",
    )
    p.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Thread pool size for graph construction.",
    )
    p.add_argument(
        "--no-write",
        action="store_true",
        help="Only report; do not write artifacts or touch project files.",
    )
    p.add_argument(
        "--no-color",
        action="store_true",
        help="Disable ANSI colors in reports.",
    )
    p.add_argument(
        "--log-level",
        type=str.upper,
        choices=VALID_LOG_LEVELS,
        default="WARNING",
        help="Console log level (default: WARNING).",
    )
    p.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write a detailed, rotated log to this file.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def build_config(args: argparse.Namespace) -> ResolverConfig:
    """
    Load the configuration file (if any) and apply command line overrides.

    Raises:
        FileNotFoundError: If --config points to a missing file.
        ValueError: If the resulting configuration is invalid.
    """
    config = load_config(args.config) if args.config is not None else ResolverConfig()

    overrides = {}
    if args.workers is not None:
        overrides["max_workers"] = args.workers
    if args.no_write:
        overrides["write_artifact"] = False
    if args.no_color or os.environ.get("NO_COLOR"):
        overrides["color"] = False

    config = replace(config, **overrides)
    config.validate()
    return config


def main(argv: list[str] | None = None) -> int:
    """
    Resolve every project given on the command line.

    Returns:
        Exit code (0 when no project reported an error).
    """
    args = build_parser().parse_args(argv)

    log_file = normalize_path(args.log_file) if args.log_file is not None else None
    logger = setup_logger(LOGGER_NAME, level=args.log_level, log_file=log_file)
    logger.info(f"afterorder {__version__} resolving {len(args.projects)} project(s)")

    try:
        config = build_config(args)
    except (FileNotFoundError, ValueError) as e:
        print(f"afterorder: error: {e}", file=sys.stderr)
        return EXIT_USAGE

    resolver = ProjectResolver(config)
    results = resolver.resolve_all(args.projects)

    problems = report(results, color=config.color)
    if problems:
        logger.info(f"Finished with {problems} problem(s)")
        return EXIT_ERRORS

    logger.info("Finished without errors")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
