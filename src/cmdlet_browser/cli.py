"""CLI entry and startup wiring."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path

from .catalog import build_groups, filter_commands
from .errors import CmdletBrowserError
from .export import write_commands_csv
from .host import PowerShellHost
from .logging import build_run_log_path, log_event, setup_logging
from .path_utils import map_path
from .presenters import (
    render_command_rows,
    render_error,
    render_export_status,
    render_help,
    render_module_tree,
    render_showing_status,
)
from .profile import Profile, create_profile, load_profile
from .repl import Browser, run_repl
from .service import command_types_for, fetch_commands, fetch_help


def main(argv: list[str] | None = None) -> int:
    """Application entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    started = time.perf_counter()
    logging_ready = False

    try:
        if args.command == "init":
            return _run_init(args)

        profile_path = map_path(args.profile) if args.profile else None
        profile = load_profile(profile_path)
        log_path = map_path(args.log) if args.log else None
        if log_path is None and args.command is None:
            log_path = build_run_log_path(profile.logs_path())
        setup_logging(log_path)
        logging_ready = True
        log_event(
            "app_start",
            profile_file=profile_path,
            log_file=log_path,
            host_executable=profile.host_executable,
            mode=args.command or "repl",
        )

        host = PowerShellHost(
            executable=profile.host_executable,
            arguments=profile.host_arguments,
            timeout=profile.query_timeout,
        )
        include_functions = args.functions or profile.include_functions
        include_aliases = args.aliases or profile.include_aliases

        if args.command is None:
            browser = Browser(
                host,
                rules=profile.normalizer_rules(),
                query_timeout=profile.query_timeout,
                include_functions=include_functions,
                include_aliases=include_aliases,
            )
            asyncio.run(run_repl(browser, profile.history_path()))
            exit_code = 0
        else:
            exit_code = _run_one_shot(args, host, profile, include_functions, include_aliases)

        log_event(
            "app_stop",
            reason="normal",
            uptime_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return exit_code
    except KeyboardInterrupt:
        print()
        print("Interrupted.")
        return 1
    except CmdletBrowserError as exc:
        if logging_ready:
            log_event(
                "app_stop",
                level=logging.ERROR,
                reason="error",
                error_type=type(exc).__name__,
                error=str(exc),
            )
        print(render_error(str(exc)), file=sys.stderr)
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cmdlet-browser",
        description="Browse PowerShell commands and their help.",
    )
    parser.add_argument("-p", "--profile", help="Path to profile JSON (mapped with ~ / @).")
    parser.add_argument("-l", "--log", help="Path to log file (optional).")
    parser.add_argument(
        "--functions", action="store_true", help="Include functions in the command list."
    )
    parser.add_argument(
        "--aliases", action="store_true", help="Include aliases in the command list."
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("init", help="Write a default profile to --profile.")

    list_parser = subparsers.add_parser("list", help="Print the filtered command list.")
    _add_filter_arguments(list_parser)

    subparsers.add_parser("modules", help="Print modules with command counts.")

    show_parser = subparsers.add_parser("show", help="Print normalized help for a command.")
    show_parser.add_argument("name")

    export_parser = subparsers.add_parser("export", help="Write the filtered list as CSV.")
    export_parser.add_argument("path", help="Output CSV path (mapped with ~ / @).")
    _add_filter_arguments(export_parser)
    return parser


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--module", help="Only commands from this module.")
    parser.add_argument("--search", help="Only commands whose name contains this text.")


def _run_init(args: argparse.Namespace) -> int:
    if not args.profile:
        print(render_error("-p/--profile is required for init"), file=sys.stderr)
        print("Usage: cmdlet-browser -p <profile-path> init", file=sys.stderr)
        return 1
    for line in create_profile(map_path(args.profile)):
        print(line)
    return 0


def _run_one_shot(
    args: argparse.Namespace,
    host: PowerShellHost,
    profile: Profile,
    include_functions: bool,
    include_aliases: bool,
) -> int:
    if args.command == "show":
        result = fetch_help(host, args.name, profile.normalizer_rules())
        for line in render_help(args.name, result):
            print(line)
        return 0

    types = command_types_for(
        include_functions=include_functions, include_aliases=include_aliases
    )
    commands = fetch_commands(host, types)

    if args.command == "modules":
        for line in render_module_tree(build_groups(commands)):
            print(line)
        return 0

    filtered = filter_commands(commands, args.module, args.search)
    if args.command == "list":
        for line in render_command_rows(filtered):
            print(line)
        print()
        print(render_showing_status(len(filtered)))
        return 0

    # export
    path: Path = map_path(args.path)
    count = write_commands_csv(filtered, path)
    log_event("export_written", path=path, rows=count)
    print(render_export_status(count, path))
    return 0
