"""Normalize host command metadata and help records into renderable help.

Every step degrades to an empty string rather than raising; ``normalize``
then fills any still-empty section with its placeholder text.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from .constants import (
    ALIAS_SEPARATOR,
    COMMON_PARAMETERS,
    DEFAULT_PLACEHOLDER_SYNOPSIS_PREFIXES,
    HELP_ERROR_PREFIX,
    NO_EXAMPLES_TEXT,
    NO_SYNOPSIS_TEXT,
    NO_SYNTAX_TEXT,
    PIPELINE_BY_PROPERTY_NAME,
    PIPELINE_BY_VALUE,
    PIPELINE_NONE,
    POSITION_NAMED,
    SWITCH_PARAMETER_LABEL,
    SYNTAX_DIVIDER,
    UNPOSITIONED_SORT_KEY,
)
from .help_record import as_list, as_text, first_text, get_field, joined_text
from .models import (
    CommandDescriptor,
    NormalizedHelp,
    ParameterRow,
    ParameterSet,
    ParameterSpec,
    PipelineInput,
    TypeRef,
)

SyntaxFallback = Callable[[], str]

_DASHES = "-–—"
_TITLE_EDGE_RE = re.compile(rf"^[{_DASHES}\s]+|[{_DASHES}\s]+$")
_TITLE_PREFIX_RE = re.compile(rf"^EXAMPLE\s*\d+\s*[{_DASHES}]?\s*", re.IGNORECASE)
_BLANK_LINE_RE = re.compile(r"\r?\n[ \t]*\r?\n")


def placeholder_prefix_predicate(prefixes: Iterable[str]) -> Callable[[str], bool]:
    """Build a predicate matching host-generated "no help found" synopses."""
    frozen = tuple(prefixes)

    def _is_placeholder(synopsis: str) -> bool:
        return any(synopsis.startswith(prefix) for prefix in frozen)

    return _is_placeholder


@dataclass(frozen=True)
class NormalizerRules:
    """Static configuration consumed by the normalizer."""

    common_parameters: frozenset[str] = COMMON_PARAMETERS
    is_placeholder_synopsis: Callable[[str], bool] = field(
        default=placeholder_prefix_predicate(DEFAULT_PLACEHOLDER_SYNOPSIS_PREFIXES)
    )
    unpositioned_sort_key: int = UNPOSITIONED_SORT_KEY

    def is_common_parameter(self, name: str) -> bool:
        return name.casefold() in self.common_parameters


DEFAULT_RULES = NormalizerRules()


def normalize(
    descriptor: CommandDescriptor | None,
    raw_help: Any | None,
    *,
    name: str | None = None,
    syntax_fallback: SyntaxFallback | None = None,
    rules: NormalizerRules = DEFAULT_RULES,
) -> NormalizedHelp:
    """Build finalized help for one command. Never raises."""
    command_name = name if name is not None else (descriptor.name if descriptor else "")
    try:
        result = NormalizedHelp(
            synopsis=extract_synopsis(raw_help, rules),
            syntax=build_syntax(descriptor, command_name, syntax_fallback, rules),
            examples=build_examples(raw_help),
            parameters=build_parameter_rows(descriptor, rules),
        )
    except Exception as exc:  # noqa: BLE001
        result = error_help(exc)
    return finalize(result)


def error_help(exc: BaseException) -> NormalizedHelp:
    """Help result carrying only a load-error synopsis."""
    return NormalizedHelp(synopsis=f"{HELP_ERROR_PREFIX}{exc}")


def finalize(result: NormalizedHelp) -> NormalizedHelp:
    """Replace blank sections with their placeholder text."""
    return result.model_copy(
        update={
            "synopsis": result.synopsis if result.synopsis.strip() else NO_SYNOPSIS_TEXT,
            "syntax": result.syntax if result.syntax.strip() else NO_SYNTAX_TEXT,
            "examples": result.examples if result.examples.strip() else NO_EXAMPLES_TEXT,
        }
    )


# ---------------------------------------------------------------------------
# Synopsis
# ---------------------------------------------------------------------------


def extract_synopsis(raw_help: Any | None, rules: NormalizerRules = DEFAULT_RULES) -> str:
    if raw_help is None:
        return ""
    synopsis = as_text(get_field(raw_help, "Synopsis"))
    if synopsis and not rules.is_placeholder_synopsis(synopsis):
        return synopsis
    return first_text(get_field(raw_help, "details", "description"))


# ---------------------------------------------------------------------------
# Syntax
# ---------------------------------------------------------------------------


def build_syntax(
    descriptor: CommandDescriptor | None,
    name: str,
    syntax_fallback: SyntaxFallback | None = None,
    rules: NormalizerRules = DEFAULT_RULES,
) -> str:
    if (
        descriptor is not None
        and descriptor.command_type.has_parameter_set_syntax
        and descriptor.parameter_sets
    ):
        try:
            return _format_parameter_sets(descriptor.parameter_sets, name, rules)
        except Exception:  # noqa: BLE001
            pass  # fall through to the host's own syntax text
    if syntax_fallback is None:
        return ""
    try:
        return format_syntax_text(syntax_fallback())
    except Exception:  # noqa: BLE001
        return ""


def format_syntax_line(
    name: str, parameter_set: ParameterSet, rules: NormalizerRules = DEFAULT_RULES
) -> str:
    ordered = sorted(parameter_set.parameters, key=lambda p: _position_sort_key(p, rules))
    tokens = [name]
    for parameter in ordered:
        if rules.is_common_parameter(parameter.name):
            continue
        tokens.append(_syntax_token(parameter))
    return " ".join(tokens)


def format_syntax_text(raw: str | None) -> str:
    """Reformat host-rendered syntax (one block per set) with numbered headers."""
    text = (raw or "").strip()
    if not text:
        return ""
    blocks = [block.strip() for block in _BLANK_LINE_RE.split(text)]
    lines: list[str] = []
    for index, block in enumerate((b for b in blocks if b), start=1):
        lines += [f"PARAMETER SET {index}", SYNTAX_DIVIDER, block, ""]
    return "\n".join(lines).strip()


def _format_parameter_sets(
    parameter_sets: list[ParameterSet], name: str, rules: NormalizerRules
) -> str:
    lines: list[str] = []
    for index, parameter_set in enumerate(parameter_sets, start=1):
        default_label = " (default)" if parameter_set.is_default else ""
        lines.append(f"PARAMETER SET {index}{default_label}: {parameter_set.name}")
        lines.append(SYNTAX_DIVIDER)
        lines.append(format_syntax_line(name, parameter_set, rules))
        lines.append("")
    return "\n".join(lines).strip()


def _position_sort_key(parameter: ParameterSpec, rules: NormalizerRules) -> int:
    return parameter.position if parameter.is_positioned else rules.unpositioned_sort_key


def _syntax_token(parameter: ParameterSpec) -> str:
    if parameter.is_switch_like:
        token = f"-{parameter.name}"
    else:
        token = f"-{parameter.name} <{parameter.type.name}>"
    return token if parameter.is_mandatory else f"[{token}]"


# ---------------------------------------------------------------------------
# Parameter table
# ---------------------------------------------------------------------------


def merge_parameters(descriptor: CommandDescriptor | None) -> dict[str, list[ParameterSpec]]:
    """Group every parameter-set occurrence by parameter name, alphabetically."""
    merged: dict[str, list[ParameterSpec]] = {}
    if descriptor is None:
        return merged
    for parameter_set in descriptor.parameter_sets:
        for parameter in parameter_set.parameters:
            merged.setdefault(parameter.name, []).append(parameter)
    return {key: merged[key] for key in sorted(merged, key=lambda k: (k.casefold(), k))}


def build_parameter_rows(
    descriptor: CommandDescriptor | None, rules: NormalizerRules = DEFAULT_RULES
) -> list[ParameterRow]:
    rows: list[ParameterRow] = []
    for name, occurrences in merge_parameters(descriptor).items():
        if rules.is_common_parameter(name):
            continue
        first = occurrences[0]
        position = next((p.position for p in occurrences if p.is_positioned), None)
        aliases = next((p.aliases for p in occurrences if p.aliases), [])
        rows.append(
            ParameterRow(
                name=name,
                type_name=friendly_type_name(first.type),
                required=any(p.is_mandatory for p in occurrences),
                position=str(position) if position is not None else POSITION_NAMED,
                pipeline=_pipeline_label(occurrences),
                aliases=ALIAS_SEPARATOR.join(aliases),
            )
        )
    return rows


def friendly_type_name(type_ref: TypeRef | None) -> str:
    if type_ref is None:
        return ""
    if type_ref.is_switch_parameter:
        return SWITCH_PARAMETER_LABEL
    if type_ref.is_array:
        return f"{friendly_type_name(type_ref.element_type)}[]"
    if type_ref.is_nullable:
        return f"{friendly_type_name(type_ref.underlying_type)}?"
    return type_ref.name


def _pipeline_label(occurrences: list[ParameterSpec]) -> str:
    inputs = {p.pipeline_input for p in occurrences}
    if PipelineInput.BY_VALUE in inputs:
        return PIPELINE_BY_VALUE
    if PipelineInput.BY_PROPERTY_NAME in inputs:
        return PIPELINE_BY_PROPERTY_NAME
    return PIPELINE_NONE


# ---------------------------------------------------------------------------
# Examples
# ---------------------------------------------------------------------------


def build_examples(raw_help: Any | None) -> str:
    if raw_help is None:
        return ""
    try:
        lines: list[str] = []
        for example in as_list(get_field(raw_help, "examples", "example")):
            if not isinstance(example, dict):
                continue
            title = clean_example_title(as_text(get_field(example, "title")))
            if title:
                lines.append(f"# {title}")
            code = as_text(get_field(example, "code"))
            if code:
                lines.append(code)
            remarks = joined_text(get_field(example, "remarks"))
            if remarks:
                lines.append(remarks)
            lines.append("")
        return "\n".join(lines).strip()
    except Exception:  # noqa: BLE001
        return ""


def clean_example_title(title: str | None) -> str:
    """Drop decorative dashes and a leading "EXAMPLE <n> -" label."""
    cleaned = _TITLE_EDGE_RE.sub("", title or "").strip()
    return _TITLE_PREFIX_RE.sub("", cleaned).strip()
