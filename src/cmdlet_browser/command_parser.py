"""Command parsing and validation for REPL verbs."""

from __future__ import annotations

from dataclasses import dataclass

from .catalog import is_all_modules
from .errors import CommandParseError
from .presenters import HELP_SECTIONS

ALIASES = {
    "r": "refresh",
    "m": "modules",
    "s": "search",
    "l": "list",
    "h": "show",
    "e": "export",
    "o": "online",
}

_ON_VALUES = frozenset({"on", "true", "yes"})
_OFF_VALUES = frozenset({"off", "false", "no"})

HELP_TEXT = """\
refresh                      r          reload commands from the host
modules                      m          list modules with command counts
module <name|all>                       filter the list to one module
search [text]                s [text]   filter by name substring (empty clears)
list                         l          show the filtered command list
show <name>                  h <name>   show synopsis, syntax, parameters, examples
help <name>                             same as show
synopsis <name>
syntax <name>
parameters <name>
examples <name>
online <name>                o <name>   print the online help URL
export [path]                e [path]   write the filtered list as CSV
functions on|off                        include functions on next refresh
aliases on|off                          include aliases on next refresh

help
exit | quit"""


@dataclass(frozen=True)
class ParsedCommand:
    pass


@dataclass(frozen=True)
class HelpCommand(ParsedCommand):
    pass


@dataclass(frozen=True)
class ExitCommand(ParsedCommand):
    pass


@dataclass(frozen=True)
class RefreshCommand(ParsedCommand):
    pass


@dataclass(frozen=True)
class ModulesCommand(ParsedCommand):
    pass


@dataclass(frozen=True)
class SelectModuleCommand(ParsedCommand):
    module: str | None  # None = all modules


@dataclass(frozen=True)
class SearchCommand(ParsedCommand):
    text: str


@dataclass(frozen=True)
class ListCommand(ParsedCommand):
    pass


@dataclass(frozen=True)
class ShowCommand(ParsedCommand):
    name: str
    sections: tuple[str, ...] = HELP_SECTIONS


@dataclass(frozen=True)
class OnlineCommand(ParsedCommand):
    name: str


@dataclass(frozen=True)
class ExportCommand(ParsedCommand):
    path: str | None


@dataclass(frozen=True)
class ToggleCommand(ParsedCommand):
    option: str  # functions | aliases
    enabled: bool


def parse_command(verb: str, args: list[str]) -> ParsedCommand:
    verb = ALIASES.get(verb.lower(), verb.lower())

    if verb in ("exit", "quit"):
        _expect_no_args(verb, args)
        return ExitCommand()
    if verb == "help":
        if not args:
            return HelpCommand()
        return ShowCommand(name=_single_name(verb, args))
    if verb == "refresh":
        _expect_no_args(verb, args)
        return RefreshCommand()
    if verb == "modules":
        _expect_no_args(verb, args)
        return ModulesCommand()
    if verb == "module":
        if len(args) != 1:
            raise CommandParseError("Usage: module <name|all>")
        return SelectModuleCommand(module=None if is_all_modules(args[0]) else args[0])
    if verb == "search":
        return SearchCommand(text=" ".join(args))
    if verb == "list":
        _expect_no_args(verb, args)
        return ListCommand()
    if verb == "show":
        return ShowCommand(name=_single_name(verb, args))
    if verb in HELP_SECTIONS:
        return ShowCommand(name=_single_name(verb, args), sections=(verb,))
    if verb == "online":
        return OnlineCommand(name=_single_name(verb, args))
    if verb == "export":
        if len(args) > 1:
            raise CommandParseError("Usage: export [path]")
        return ExportCommand(path=args[0] if args else None)
    if verb in ("functions", "aliases"):
        return ToggleCommand(option=verb, enabled=_parse_switch(verb, args))

    raise CommandParseError(
        [f"Unknown command: {verb}", "Type 'help' for the list of commands."]
    )


def _expect_no_args(verb: str, args: list[str]) -> None:
    if args:
        raise CommandParseError(f"Usage: {verb}")


def _single_name(verb: str, args: list[str]) -> str:
    if len(args) != 1:
        raise CommandParseError(f"Usage: {verb} <name>")
    return args[0]


def _parse_switch(verb: str, args: list[str]) -> bool:
    if len(args) == 1:
        value = args[0].lower()
        if value in _ON_VALUES:
            return True
        if value in _OFF_VALUES:
            return False
    raise CommandParseError(f"Usage: {verb} on|off")
