"""CSV export of the command list and online help links."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from urllib.parse import quote

from .constants import (
    CSV_ENCODING,
    CSV_HEADER,
    CSV_LINE_TERMINATOR,
    ONLINE_HELP_URL_TEMPLATE,
)
from .errors import ExportError
from .models import CommandDescriptor

_CSV_SPECIAL_CHARS = (",", '"', "\n")


def csv_field(value: str | None) -> str:
    """Quote a field containing a comma, double quote or newline."""
    if not value:
        return ""
    if any(ch in value for ch in _CSV_SPECIAL_CHARS):
        escaped = value.replace('"', '""')
        return f'"{escaped}"'
    return value


def csv_row(values: Iterable[str | None]) -> str:
    return ",".join(csv_field(v) for v in values)


def render_commands_csv(commands: Iterable[CommandDescriptor]) -> str:
    rows = [csv_row(CSV_HEADER)]
    for command in commands:
        rows.append(
            csv_row(
                (
                    command.name,
                    command.module_name,
                    command.command_type.value,
                    command.source,
                )
            )
        )
    return "".join(f"{row}{CSV_LINE_TERMINATOR}" for row in rows)


def write_commands_csv(commands: Iterable[CommandDescriptor], path: Path) -> int:
    """Write the command list to ``path``. Returns the number of data rows."""
    items = list(commands)
    text = render_commands_csv(items)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        # newline="" keeps the CRLF row terminators as written.
        with path.open("w", encoding=CSV_ENCODING, newline="") as handle:
            handle.write(text)
    except OSError as exc:
        raise ExportError(f"Export failed: {exc}") from exc
    return len(items)


def online_help_url(name: str) -> str:
    return ONLINE_HELP_URL_TEMPLATE.format(term=quote(name, safe=""))
