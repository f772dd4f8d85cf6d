from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger
from rich.console import Console

from langsmith_fetch import __version__
from langsmith_fetch.bulk import DEFAULT_MAX_CONCURRENT, fetch_threads, fetch_traces
from langsmith_fetch.config import (
    CONFIG_FILE,
    OUTPUT_FORMATS,
    FetchConfig,
    ProjectIdCache,
    describe_config,
    load_config_file,
    resolve_config,
    resolve_project_uuid,
)
from langsmith_fetch.errors import ApiError, ConfigError, LangSmithError, UsageError
from langsmith_fetch.fetchers import fetch_thread, fetch_trace
from langsmith_fetch.formatters import format_json, format_raw, format_thread, format_trace, trace_output_data
from langsmith_fetch.logging_config import default_consumers, setup_logging
from langsmith_fetch.output import ensure_dir, looks_like_uuid, render_filename, write_output
from langsmith_fetch.progress import LazyProgress
from langsmith_fetch.transport import LangSmithClient

_PROJECT_UUID_REQUIRED = "project-uuid required. Pass --project-uuid <uuid> flag or set via config."


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from None
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {parsed}")
    return parsed


def _add_format_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--format", choices=OUTPUT_FORMATS, help="Output format: raw, json, pretty")


def _add_window_options(parser: argparse.ArgumentParser, noun: str) -> None:
    parser.add_argument("-n", "--limit", type=_positive_int, default=1, help=f"Maximum number of {noun} to fetch")
    parser.add_argument("--last-n-minutes", type=_positive_int, help=f"Only fetch {noun} from the last N minutes")
    parser.add_argument("--since", help=f"Only fetch {noun} since ISO timestamp")
    parser.add_argument("--no-progress", dest="progress", action="store_false", help="Disable progress bar")
    parser.add_argument(
        "--max-concurrent",
        type=_positive_int,
        default=DEFAULT_MAX_CONCURRENT,
        help="Maximum concurrent fetches",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="langsmith-fetch",
        description="Fetch and display LangSmith threads and traces",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    trace = subparsers.add_parser("trace", help="Fetch messages for a single trace by trace ID")
    trace.add_argument("id", help="LangSmith trace UUID")
    _add_format_option(trace)
    trace.add_argument("--file", help="Save output to file")
    trace.add_argument("--include-metadata", action="store_true", help="Include run metadata (status, timing, tokens, costs)")
    trace.add_argument("--include-feedback", action="store_true", help="Include feedback data")

    thread = subparsers.add_parser("thread", help="Fetch messages for a LangGraph thread by thread_id")
    thread.add_argument("id", help="LangGraph thread identifier")
    thread.add_argument("--project-uuid", help="LangSmith project UUID (overrides config)")
    _add_format_option(thread)
    thread.add_argument("--file", help="Save output to file")

    traces = subparsers.add_parser("traces", help="Fetch recent traces from LangSmith")
    traces.add_argument("dir", nargs="?", help="Output directory (directory mode)")
    _add_window_options(traces, "traces")
    traces.add_argument("--filename-pattern", default="{trace_id}.json", help="Filename pattern for directory mode")
    _add_format_option(traces)
    traces.add_argument("--file", help="Save output to file (stdout mode)")
    traces.add_argument("--include-metadata", action="store_true", help="Include run metadata")
    traces.add_argument("--include-feedback", action="store_true", help="Include feedback data")
    traces.add_argument("--project-uuid", help="LangSmith project UUID")

    threads = subparsers.add_parser("threads", help="Fetch recent threads from LangSmith")
    threads.add_argument("dir", nargs="?", help="Output directory (directory mode)")
    threads.add_argument("--project-uuid", help="LangSmith project UUID (required)")
    _add_window_options(threads, "threads")
    threads.add_argument("--filename-pattern", default="{thread_id}.json", help="Filename pattern for directory mode")
    _add_format_option(threads)

    config = subparsers.add_parser("config", help="Manage configuration settings")
    config_sub = config.add_subparsers(dest="config_command", required=True)
    config_sub.add_parser("show", help="Show current configuration")

    return parser


def _status(message: str) -> None:
    print(message, file=sys.stderr)


def _use_color(fmt: str, path: str | None) -> bool:
    if fmt != "pretty" or path:
        return False
    console = Console()
    return console.is_terminal and not console.no_color


def _check_time_window(args: argparse.Namespace) -> None:
    if args.last_n_minutes is not None and args.since:
        raise UsageError("--last-n-minutes and --since are mutually exclusive")


def _prepare_output_dir(dir_arg: str, noun: str, args: argparse.Namespace) -> Path:
    if looks_like_uuid(dir_arg):
        raise UsageError(
            f"'{dir_arg}' looks like a {noun} ID, not a directory path. "
            f"To fetch a specific {noun} by ID, use: langsmith-fetch {noun} <{noun}-id>"
        )
    if args.format:
        logger.warning("--format ignored in directory mode (files are always JSON)")
    return ensure_dir(dir_arg)


async def _run_trace(args: argparse.Namespace, config: FetchConfig, cache: ProjectIdCache) -> int:
    async with LangSmithClient(config.require_api_key(), config.base_url) as client:
        trace = await fetch_trace(
            client,
            args.id,
            include_metadata=args.include_metadata,
            include_feedback=args.include_feedback,
        )
    fmt = args.format or config.default_format
    write_output(format_trace(trace, fmt, color=_use_color(fmt, args.file)) + "\n", args.file)
    return 0


async def _run_thread(args: argparse.Namespace, config: FetchConfig, cache: ProjectIdCache) -> int:
    async with LangSmithClient(config.require_api_key(), config.base_url) as client:
        project_uuid = args.project_uuid or await resolve_project_uuid(config, client, cache)
        if not project_uuid:
            raise ConfigError(_PROJECT_UUID_REQUIRED)
        thread = await fetch_thread(client, args.id, project_uuid)
    write_output(format_thread(thread, args.format or config.default_format) + "\n", args.file)
    return 0


async def _run_traces(args: argparse.Namespace, config: FetchConfig, cache: ProjectIdCache) -> int:
    _check_time_window(args)
    api_key = config.require_api_key()
    output_dir = _prepare_output_dir(args.dir, "trace", args) if args.dir else None
    progress = LazyProgress(enabled=args.progress)

    async with LangSmithClient(api_key, config.base_url) as client:
        project_uuid = args.project_uuid or await resolve_project_uuid(config, client, cache)
        if output_dir is not None:
            _status(f"Fetching up to {args.limit} recent trace(s)...")
        try:
            traces = await fetch_traces(
                client,
                limit=args.limit,
                project_uuid=project_uuid,
                last_n_minutes=args.last_n_minutes,
                since=args.since,
                max_concurrent=args.max_concurrent,
                include_metadata=args.include_metadata,
                include_feedback=args.include_feedback,
                on_progress=progress.callback,
            )
        finally:
            progress.close()

    if not traces:
        _status("No traces found.")
        return 1

    if output_dir is not None:
        _status(f"Found {len(traces)} trace(s). Saving to {output_dir}/")
        for index, trace in enumerate(traces, 1):
            filename = render_filename(args.filename_pattern, "trace_id", trace.trace_id, index)
            write_output(format_json(trace_output_data(trace)), output_dir / filename)

            summary = f"{len(trace.messages)} messages"
            if trace.metadata is not None:
                summary += f", status: {trace.metadata.status or 'unknown'}"
            if trace.feedback:
                summary += f", {len(trace.feedback)} feedback"
            _status(f"  Saved {trace.trace_id} to {filename} ({summary})")
        _status(f"\nSuccessfully saved {len(traces)} trace(s) to {output_dir}/")
        return 0

    fmt = args.format or config.default_format
    if args.limit == 1 and len(traces) == 1:
        content = format_trace(traces[0], fmt, color=_use_color(fmt, args.file))
    else:
        data = [trace_output_data(trace) for trace in traces]
        content = format_raw(data) if fmt == "raw" else format_json(data)
    write_output(content + "\n", args.file)
    return 0


async def _run_threads(args: argparse.Namespace, config: FetchConfig, cache: ProjectIdCache) -> int:
    _check_time_window(args)
    progress = LazyProgress(enabled=args.progress)

    async with LangSmithClient(config.require_api_key(), config.base_url) as client:
        project_uuid = args.project_uuid or await resolve_project_uuid(config, client, cache)
        if not project_uuid:
            raise ConfigError(_PROJECT_UUID_REQUIRED)
        output_dir = _prepare_output_dir(args.dir, "thread", args) if args.dir else None
        if output_dir is not None:
            _status(f"Fetching up to {args.limit} recent thread(s)...")
        try:
            threads = await fetch_threads(
                client,
                project_uuid=project_uuid,
                limit=args.limit,
                last_n_minutes=args.last_n_minutes,
                since=args.since,
                max_concurrent=args.max_concurrent,
                on_progress=progress.callback,
            )
        finally:
            progress.close()

    if not threads:
        _status("No threads found.")
        return 1

    if output_dir is not None:
        _status(f"Found {len(threads)} thread(s). Saving to {output_dir}/")
        for index, thread in enumerate(threads, 1):
            filename = render_filename(args.filename_pattern, "thread_id", thread.thread_id, index)
            write_output(format_json(thread.messages), output_dir / filename)
            _status(f"  Saved {thread.thread_id} to {filename} ({len(thread.messages)} messages)")
        _status(f"\nSuccessfully saved {len(threads)} thread(s) to {output_dir}/")
        return 0

    fmt = args.format or config.default_format
    if args.limit == 1 and len(threads) == 1:
        content = format_thread(threads[0], fmt)
    else:
        data = [thread.to_dict() for thread in threads]
        content = format_raw(data) if fmt == "raw" else format_json(data)
    write_output(content + "\n")
    return 0


_COMMANDS: dict[str, Callable[[argparse.Namespace, FetchConfig, ProjectIdCache], Awaitable[int]]] = {
    "trace": _run_trace,
    "thread": _run_thread,
    "traces": _run_traces,
    "threads": _run_threads,
}


def _report_error(ex: Exception) -> None:
    if isinstance(ex, ConfigError):
        logger.error(f"Configuration error: {ex}")
    elif isinstance(ex, ApiError):
        logger.error(f"API error ({ex.status_code}): {ex}")
        if ex.response_body:
            logger.error(f"Response: {ex.response_body[:500]}")
    else:
        logger.error(f"Error: {ex}")


def main(argv: list[str] | None = None) -> int:
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    file_config = load_config_file()
    config = resolve_config(file_config)
    setup_logging(
        level="DEBUG" if args.verbose else config.log_level,
        consumers=default_consumers(config.log_file),
    )

    if args.command is None:
        parser.print_help(sys.stderr)
        return 1

    if args.command == "config":
        print("\n".join(describe_config(file_config, CONFIG_FILE)))
        return 0

    try:
        return asyncio.run(_COMMANDS[args.command](args, config, ProjectIdCache()))
    except LangSmithError as ex:
        _report_error(ex)
        return 1
    except Exception as ex:
        logger.opt(exception=ex).debug("Unhandled error")
        _report_error(ex)
        return 1


def run() -> None:
    sys.exit(main())
