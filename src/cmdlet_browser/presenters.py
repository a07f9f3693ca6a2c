"""User-facing text rendering.

Plain text only: no colors, one blank line between segments, explicit
empty-state lines.
"""

from __future__ import annotations

from collections.abc import Sequence

from .constants import ALL_MODULES_LABEL
from .models import CommandDescriptor, ModuleCatalog, NormalizedHelp, ParameterRow

_LIST_SEPARATOR = " | "
_PARAMETER_HEADERS = ("Name", "Type", "Required", "Position", "Pipeline", "Aliases")
_ERROR_PREFIX = "Error:"

HELP_SECTIONS = ("synopsis", "syntax", "parameters", "examples")


def render_error(message: str) -> str:
    return f"{_ERROR_PREFIX} {message}"


def render_loaded_status(count: int) -> str:
    return f"Loaded {count:,} command(s)."


def render_showing_status(count: int) -> str:
    return f"Showing {count:,} item(s)."


def render_help_status(name: str) -> str:
    return f"Help loaded for {name}."


def render_export_status(count: int, path: object) -> str:
    return f"Exported {count:,} item(s) to '{path}'."


def render_module_tree(catalog: ModuleCatalog, selected: str | None = None) -> list[str]:
    """Render the "All Modules" root and one indented line per module."""
    root_marker = "*" if selected is None else " "
    lines = [f"{root_marker} {ALL_MODULES_LABEL} ({catalog.total})"]
    for group in catalog.groups:
        marker = "*" if group.name == selected else " "
        lines.append(f"{marker}   {group.name} ({group.count})")
    return lines


def render_command_rows(commands: Sequence[CommandDescriptor]) -> list[str]:
    if not commands:
        return ["No commands match the current filter."]
    name_width = max(len(c.name) for c in commands)
    module_width = max(len(c.module_name) for c in commands)
    rows: list[str] = []
    for command in commands:
        rows.append(
            _LIST_SEPARATOR.join(
                (
                    command.name.ljust(name_width),
                    command.module_name.ljust(module_width),
                    command.command_type.value,
                )
            ).rstrip()
        )
    return rows


def render_parameter_table(rows: Sequence[ParameterRow]) -> list[str]:
    if not rows:
        return ["No parameters."]
    cells = [
        (
            row.name,
            row.type_name,
            "true" if row.required else "false",
            row.position,
            row.pipeline,
            row.aliases,
        )
        for row in rows
    ]
    widths = [
        max(len(header), *(len(cell[i]) for cell in cells))
        for i, header in enumerate(_PARAMETER_HEADERS)
    ]
    lines = [_format_table_row(_PARAMETER_HEADERS, widths)]
    lines.append(_format_table_row(tuple("-" * w for w in widths), widths))
    lines.extend(_format_table_row(cell, widths) for cell in cells)
    return lines


def render_help(
    name: str, help_result: NormalizedHelp, sections: Sequence[str] = HELP_SECTIONS
) -> list[str]:
    """Render the selected help sections for one command."""
    lines = [name, ""]
    for section in sections:
        if section == "synopsis":
            lines += ["SYNOPSIS", help_result.synopsis, ""]
        elif section == "syntax":
            lines += ["SYNTAX", *help_result.syntax.splitlines(), ""]
        elif section == "parameters":
            lines += ["PARAMETERS", *render_parameter_table(help_result.parameters), ""]
        elif section == "examples":
            lines += ["EXAMPLES", *help_result.examples.splitlines(), ""]
        else:
            raise ValueError(f"Unknown help section: {section}")
    while lines and not lines[-1]:
        lines.pop()
    return lines


def _format_table_row(cells: Sequence[str], widths: Sequence[int]) -> str:
    return "  ".join(cell.ljust(width) for cell, width in zip(cells, widths)).rstrip()


def print_segment(
    lines: Sequence[str],
    *,
    leading_blank: bool = False,
    trailing_blank: bool = True,
) -> None:
    """Print a semantic output segment with configurable blank-line boundaries."""
    if leading_blank:
        print()
    for line in lines:
        print(line)
    if trailing_blank:
        print()
