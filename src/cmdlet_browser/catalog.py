"""Module grouping and list filtering over fetched commands."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence

from .constants import ALL_MODULES_TOKENS
from .models import CommandDescriptor, ModuleCatalog, ModuleGroup


def build_groups(commands: Sequence[CommandDescriptor]) -> ModuleCatalog:
    """Count commands per module name.

    Commands without a module only count towards ``total``.
    Groups are ordered by module name.
    """
    counts = Counter(c.module_name for c in commands if c.module_name)
    groups = [ModuleGroup(name=name, count=counts[name]) for name in sorted(counts)]
    return ModuleCatalog(total=len(commands), groups=groups)


def filter_commands(
    commands: Iterable[CommandDescriptor],
    module_filter: str | None = None,
    search_text: str | None = None,
) -> list[CommandDescriptor]:
    """Return commands matching both filters, in their original order.

    ``module_filter`` matches module names exactly; None, "", "*" and "all"
    disable it. ``search_text`` is a case-insensitive substring of the name.
    """
    module = None if is_all_modules(module_filter) else module_filter
    needle = (search_text or "").strip().casefold()

    results: list[CommandDescriptor] = []
    for command in commands:
        if module is not None and command.module_name != module:
            continue
        if needle and needle not in command.name.casefold():
            continue
        results.append(command)
    return results


def is_all_modules(module_filter: str | None) -> bool:
    return module_filter is None or module_filter.strip().lower() in ALL_MODULES_TOKENS


def sort_commands(commands: Iterable[CommandDescriptor]) -> list[CommandDescriptor]:
    """Order commands by name the way the host lists them (case-insensitive)."""
    return sorted(commands, key=lambda c: (c.name.casefold(), c.name))
