"""Structured plaintext log formatter."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

DEFAULT_EVENT_KEY_ORDER = ["ts", "level"]

EVENT_KEY_ORDER: dict[str, list[str]] = {
    "app_start": ["ts", "level", "profile_file", "log_file", "host_executable", "mode"],
    "app_stop": ["ts", "level", "reason", "uptime_ms", "error_type", "error"],
    "host_session_open": ["ts", "level", "session_id", "host_executable"],
    "host_session_close": ["ts", "level", "session_id", "queries", "elapsed_ms"],
    "host_query": ["ts", "level", "session_id", "query", "target", "returncode", "elapsed_ms"],
    "host_query_error": [
        "ts",
        "level",
        "session_id",
        "query",
        "target",
        "error_type",
        "error",
    ],
    "commands_loaded": ["ts", "level", "count", "command_types", "elapsed_ms"],
    "help_loaded": ["ts", "level", "command", "parameter_count", "elapsed_ms"],
    "help_error": ["ts", "level", "command", "query", "error_type", "error"],
    "export_written": ["ts", "level", "path", "rows"],
    "command_error": ["ts", "level", "command", "args_summary", "error_type", "error"],
}


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds").replace(
        "+00:00", "Z"
    )



def _parse_event(message: str) -> dict[str, Any] | None:
    """Decode a ``log_event`` JSON payload; None for plain log messages."""
    if not (message.startswith("{") and message.endswith("}")):
        return None
    try:
        parsed = json.loads(message)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _one_line(value: Any) -> str:
    return str(value).replace("\n", "\\n")


def ordered_keys(event_name: str, fields: dict[str, Any]) -> list[str]:
    """Keys of ``fields`` to print: the event's listed keys first, the rest sorted.

    None-valued fields are omitted so optional context (profile file, error
    details) only appears when it was set.
    """
    preferred = EVENT_KEY_ORDER.get(event_name, DEFAULT_EVENT_KEY_ORDER)
    present = [k for k in preferred if fields.get(k) is not None]
    remaining = sorted(k for k, v in fields.items() if k not in preferred and v is not None)
    return present + remaining


class StructuredTextFormatter(logging.Formatter):
    """Render every record as a ``=== event ===`` block of ``key: value`` lines.

    Records produced by ``log_event`` keep their event name and fields; any
    other record becomes a block named after its logger with a ``message``
    field. Multi-line values are escaped so one field stays on one line.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._entries = 0

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        fields: dict[str, Any] = {
            "ts_utc": _utc_now_iso(),
            "level": record.levelname,
            "logger": record.name,
        }
        payload = _parse_event(message)
        if payload is None:
            fields["message"] = message
        else:
            fields.update(payload)
        event_name = str(fields.pop("event", record.name))

        lines = [f"=== {event_name} ==="]
        lines += [f"{key}: {_one_line(fields[key])}" for key in ordered_keys(event_name, fields)]
        if record.exc_info:
            lines += ["traceback:", self.formatException(record.exc_info)]

        self._entries += 1
        block = "\n".join(lines)
        # Entries are separated by one blank line; the file never ends with one.
        return block if self._entries == 1 else f"\n{block}"
