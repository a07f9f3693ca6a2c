"""Query workflows: fetch the command list and load normalized help.

Each call opens its own host session and closes it before returning,
whether the query succeeded or not.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from typing import Any

from .catalog import sort_commands
from .errors import HostError
from .host import CommandHost, HostSession
from .logging import log_event, summarize_text
from .models import CommandDescriptor, CommandType, NormalizedHelp
from .normalizer import DEFAULT_RULES, NormalizerRules, error_help, finalize, normalize


def command_types_for(*, include_functions: bool, include_aliases: bool) -> list[CommandType]:
    types = [CommandType.CMDLET]
    if include_functions:
        types.append(CommandType.FUNCTION)
    if include_aliases:
        types.append(CommandType.ALIAS)
    return types


def fetch_commands(
    host: CommandHost, types: Iterable[CommandType]
) -> list[CommandDescriptor]:
    """Return the host's commands of ``types`` sorted by name.

    Raises HostError when the host cannot be queried.
    """
    selected = list(types)
    started = time.perf_counter()
    with host.session() as session:
        commands = sort_commands(session.list_commands(selected))
    log_event(
        "commands_loaded",
        count=len(commands),
        command_types=[t.value for t in selected],
        elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
    )
    return commands


def fetch_help(
    host: CommandHost, name: str, rules: NormalizerRules = DEFAULT_RULES
) -> NormalizedHelp:
    """Load and normalize help for ``name``. Never raises."""
    started = time.perf_counter()
    try:
        with host.session() as session:
            descriptor = session.get_command_info(name)
            raw_help = _get_help_record(session, name)
            result = normalize(
                descriptor,
                raw_help,
                name=name,
                syntax_fallback=lambda: session.get_syntax_text(name),
                rules=rules,
            )
    except Exception as exc:  # noqa: BLE001
        log_event(
            "help_error",
            level=logging.WARNING,
            command=name,
            error_type=type(exc).__name__,
            error=summarize_text(exc),
        )
        return finalize(error_help(exc))

    log_event(
        "help_loaded",
        command=name,
        parameter_count=len(result.parameters),
        elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
    )
    return result


def _get_help_record(session: HostSession, name: str) -> Any | None:
    """Help record for ``name``, or None when Get-Help itself fails.

    Syntax and parameters come from the command metadata, so they still
    render without a help record.
    """
    try:
        return session.get_help_full(name)
    except HostError as exc:
        log_event(
            "help_error",
            level=logging.WARNING,
            command=name,
            query="get_help_full",
            error_type=type(exc).__name__,
            error=summarize_text(exc),
        )
        return None
