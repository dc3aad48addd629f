"""Command line entry point for the trace locator.

This module provides the ``trace-locator`` command. It handles:
- Configuration loading
- Logging setup with secret sanitization
- Adapter instantiation
- Running one parse or resolve request and printing the JSON result
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

import structlog

from trace_locator._version import __version__

log = structlog.get_logger()


def setup_logging(debug: bool = False, log_format: str = "console") -> None:
    """Configure structured logging with secret sanitization.

    Args:
        debug: Enable debug logging if True
        log_format: Output format ("json" or "console")
    """
    from trace_locator.utils.logging import LogFormat, LogLevel, configure_logging

    level = LogLevel.DEBUG if debug else LogLevel.WARNING
    configure_logging(level=level, log_format=LogFormat(log_format.lower()))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument namespace
    """
    parser = argparse.ArgumentParser(
        prog="trace-locator",
        description="Locate the frames of a production stack trace in your working copy",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./trace-locator.yaml when present)",
    )

    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--format",
        choices=["json", "console"],
        default="console",
        help="Log output format (default: console)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_cmd = subparsers.add_parser("parse", help="Parse a stack trace")
    parse_cmd.add_argument(
        "trace_file",
        nargs="?",
        type=Path,
        help="File holding the stack trace (default: stdin)",
    )

    resolve_cmd = subparsers.add_parser(
        "resolve", help="Parse a stack trace and resolve its frames locally"
    )
    resolve_cmd.add_argument(
        "trace_file",
        nargs="?",
        type=Path,
        help="File holding the stack trace (default: stdin)",
    )
    resolve_cmd.add_argument("--repo-id", required=True, help="Repository identifier")
    resolve_cmd.add_argument("--sha", default="", help="Commit the error happened on")
    resolve_cmd.add_argument("--trace-id", default=None, help="Identifier of the error")

    position_cmd = subparsers.add_parser(
        "position", help="Resolve a single file position to the working copy"
    )
    position_cmd.add_argument("--repo-id", required=True, help="Repository identifier")
    position_cmd.add_argument("--sha", default="", help="Commit the position refers to")
    position_cmd.add_argument("--file", required=True, help="Path relative to the repository")
    position_cmd.add_argument("--line", type=int, required=True)
    position_cmd.add_argument("--column", type=int, default=0)

    return parser.parse_args(argv)


def read_trace(trace_file: Path | None) -> str:
    """Read the stack trace from a file, or stdin when no file is given."""
    if trace_file is None:
        return sys.stdin.read()
    return trace_file.read_text(encoding="utf-8")


def emit(payload: dict[str, object]) -> None:
    print(json.dumps(payload, indent=2))


async def run_command(args: argparse.Namespace) -> int:
    """Run one CLI command.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    from trace_locator.adapters import (
        ConfigRepositoryMappings,
        GitAdapter,
        OpenDocumentStore,
        WorkspaceFileIndex,
    )
    from trace_locator.config.loader import load_config_or_default
    from trace_locator.core.resolver import StackTraceResolver, parse_stack_trace
    from trace_locator.utils.async_helpers import UnresolvableTraceError
    from trace_locator.utils.logging import configure_logging
    from trace_locator.utils.safe_subprocess import GitNotFoundError

    if args.command == "parse":
        try:
            trace = parse_stack_trace(read_trace(args.trace_file))
        except UnresolvableTraceError as e:
            emit({"error": str(e)})
            return 1
        emit(trace.to_dict())
        return 1 if trace.parse_error else 0

    try:
        config = load_config_or_default(args.config)
    except FileNotFoundError as e:
        log.error("configuration_file_not_found", path=str(args.config), error=str(e))
        return 1
    except ValueError as e:
        log.error("configuration_invalid", error=str(e))
        return 1

    if not args.debug:
        configure_logging(
            level=config.logging.level,
            log_format=config.logging.format,
            file_path=config.logging.file.path if config.logging.file.enabled else None,
            file_enabled=config.logging.file.enabled,
        )

    try:
        vcs = GitAdapter(config.git, config.workspace, config.retry)
    except GitNotFoundError as e:
        log.error("git_not_found", error=str(e))
        return 1

    resolver = StackTraceResolver(
        vcs=vcs,
        mappings=ConfigRepositoryMappings(config.repositories),
        file_search=WorkspaceFileIndex(config.workspace),
        documents=OpenDocumentStore(),
    )

    if args.command == "resolve":
        result = await resolver.resolve_stack_trace(
            read_trace(args.trace_file),
            repo_id=args.repo_id,
            sha=args.sha,
            trace_id=args.trace_id,
        )
        emit(result.to_dict())
        return 0 if result.ok else 1

    position = await resolver.resolve_stack_trace_position(
        sha=args.sha,
        repo_id=args.repo_id,
        file_path=args.file,
        line=args.line,
        column=args.column,
    )
    emit(position.to_dict())
    return 0 if position.ok else 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Setup logging with CLI options
    setup_logging(debug=args.debug, log_format=args.format)

    try:
        return asyncio.run(run_command(args))
    except KeyboardInterrupt:
        log.info("interrupted")
        return 130
    except OSError as e:
        log.error("command_failed", error=str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
