"""Interactive browser loop.

Host round-trips run in a worker thread so the prompt stays responsive;
only one query runs at a time and a timed-out result is discarded.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document
from prompt_toolkit.history import FileHistory, InMemoryHistory

from .catalog import build_groups, filter_commands
from .command_parser import (
    HELP_TEXT,
    ExitCommand,
    ExportCommand,
    HelpCommand,
    ListCommand,
    ModulesCommand,
    OnlineCommand,
    ParsedCommand,
    RefreshCommand,
    SearchCommand,
    SelectModuleCommand,
    ShowCommand,
    ToggleCommand,
    parse_command,
)
from .constants import DEFAULT_EXPORT_FILENAME, HELP_QUERIES_PER_LOOKUP
from .errors import CmdletBrowserError, CommandParseError, HostTimeoutError
from .export import online_help_url, write_commands_csv
from .host import CommandHost
from .logging import log_event, summarize_text
from .models import CommandDescriptor
from .normalizer import DEFAULT_RULES, NormalizerRules
from .path_utils import map_path
from .presenters import (
    print_segment,
    render_command_rows,
    render_error,
    render_export_status,
    render_help,
    render_help_status,
    render_loaded_status,
    render_module_tree,
    render_showing_status,
)
from .service import command_types_for, fetch_commands, fetch_help

_PROMPT = "> "
_BANNER_LINES = (
    "cmdlet-browser",
    "Type 'help' for commands. Type 'exit' or 'quit' to leave.",
)

T = TypeVar("T")


@dataclass
class BrowserState:
    commands: list[CommandDescriptor] = field(default_factory=list)
    module_filter: str | None = None
    search_text: str = ""
    include_functions: bool = False
    include_aliases: bool = False

    @property
    def filtered(self) -> list[CommandDescriptor]:
        return filter_commands(self.commands, self.module_filter, self.search_text)


class CommandNameCompleter(Completer):
    """Complete REPL arguments from the currently loaded command names."""

    def __init__(self, names: Callable[[], Iterable[str]]) -> None:
        self._names = names

    def get_completions(self, document: Document, complete_event):  # type: ignore[no-untyped-def]
        text = document.text_before_cursor
        if " " not in text:
            return
        word = document.get_word_before_cursor(WORD=True)
        folded = word.casefold()
        for name in self._names():
            if name.casefold().startswith(folded):
                yield Completion(name, start_position=-len(word))


class Browser:
    """Holds browsing state and executes parsed REPL commands."""

    def __init__(
        self,
        host: CommandHost,
        *,
        rules: NormalizerRules = DEFAULT_RULES,
        query_timeout: float | None = None,
        include_functions: bool = False,
        include_aliases: bool = False,
    ) -> None:
        self.host = host
        self.rules = rules
        self.query_timeout = query_timeout
        self.state = BrowserState(
            include_functions=include_functions,
            include_aliases=include_aliases,
        )
        self._busy = False

    async def handle_line(self, line: str) -> bool:
        """Execute one input line. Returns False when the loop should end."""
        text = line.strip()
        if not text:
            return True
        try:
            tokens = shlex.split(text)
        except ValueError as exc:
            print_segment([f"Parse error: {exc}"])
            return True
        if not tokens:
            return True

        try:
            command = parse_command(tokens[0], tokens[1:])
        except CommandParseError as exc:
            print_segment(exc.lines)
            return True

        if isinstance(command, ExitCommand):
            print_segment(["Goodbye."], trailing_blank=False)
            return False

        try:
            await self.dispatch(command)
        except CmdletBrowserError as exc:
            self._log_command_error(tokens, exc)
            print_segment([render_error(str(exc))])
        except Exception as exc:  # noqa: BLE001
            self._log_command_error(tokens, exc)
            print_segment([f"Unexpected error: {exc}"])
        return True

    async def dispatch(self, command: ParsedCommand) -> None:
        if isinstance(command, HelpCommand):
            print_segment(HELP_TEXT.splitlines())
        elif isinstance(command, RefreshCommand):
            await self.refresh()
        elif isinstance(command, ModulesCommand):
            catalog = build_groups(self.state.commands)
            print_segment(render_module_tree(catalog, self.state.module_filter))
        elif isinstance(command, SelectModuleCommand):
            self.state.module_filter = command.module
            print_segment([render_showing_status(len(self.state.filtered))])
        elif isinstance(command, SearchCommand):
            self.state.search_text = command.text.strip()
            print_segment([render_showing_status(len(self.state.filtered))])
        elif isinstance(command, ListCommand):
            filtered = self.state.filtered
            print_segment([*render_command_rows(filtered), "", render_showing_status(len(filtered))])
        elif isinstance(command, ShowCommand):
            await self.show(command.name, command.sections)
        elif isinstance(command, OnlineCommand):
            print_segment([online_help_url(command.name)])
        elif isinstance(command, ExportCommand):
            self.export(command.path)
        elif isinstance(command, ToggleCommand):
            self._toggle(command)
        else:
            raise CmdletBrowserError(f"Unsupported command: {type(command).__name__}")

    async def refresh(self) -> None:
        types = command_types_for(
            include_functions=self.state.include_functions,
            include_aliases=self.state.include_aliases,
        )
        print_segment(["Loading commands..."], trailing_blank=False)
        commands = await self._run_blocking(fetch_commands, self.host, types)
        self.state.commands = commands
        print_segment(
            [render_loaded_status(len(commands)), render_showing_status(len(self.state.filtered))]
        )

    async def show(self, name: str, sections: tuple[str, ...]) -> None:
        print_segment([f"Loading help for {name}..."], trailing_blank=False)
        result = await self._run_blocking(
            fetch_help, self.host, name, self.rules, queries=HELP_QUERIES_PER_LOOKUP
        )
        print_segment([*render_help(name, result, sections), "", render_help_status(name)])

    def export(self, raw_path: str | None) -> None:
        path = map_path(raw_path) if raw_path else Path.cwd() / DEFAULT_EXPORT_FILENAME
        filtered = self.state.filtered
        count = write_commands_csv(filtered, path)
        log_event("export_written", path=path, rows=count)
        print_segment([render_export_status(count, path)])

    def command_names(self) -> list[str]:
        return [c.name for c in self.state.commands]

    def _toggle(self, command: ToggleCommand) -> None:
        if command.option == "functions":
            self.state.include_functions = command.enabled
        else:
            self.state.include_aliases = command.enabled
        state = "on" if command.enabled else "off"
        print_segment([f"{command.option.capitalize()} {state}. Run 'refresh' to reload."])

    async def _run_blocking(self, func: Callable[..., T], *args: object, queries: int = 1) -> T:
        """Run ``func`` in a worker thread within ``queries`` host timeouts."""
        if self._busy:
            raise CmdletBrowserError("Another query is still running.")
        budget = self.query_timeout * queries if self.query_timeout is not None else None
        self._busy = True
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), budget)
        except TimeoutError as exc:
            raise HostTimeoutError(f"Query did not finish within {budget:g} seconds") from exc
        finally:
            self._busy = False

    def _log_command_error(self, tokens: list[str], exc: Exception) -> None:
        log_event(
            "command_error",
            level=logging.WARNING,
            command=tokens[0],
            args_summary=summarize_text(" ".join(tokens[1:])),
            error_type=type(exc).__name__,
            error=summarize_text(exc),
        )


def create_prompt_session(browser: Browser, history_path: Path | None) -> PromptSession:
    """Create the prompt-toolkit session with file history and name completion."""
    if history_path is not None:
        history_path.parent.mkdir(parents=True, exist_ok=True)
        history = FileHistory(str(history_path))
    else:
        history = InMemoryHistory()
    return PromptSession(
        history=history,
        completer=CommandNameCompleter(browser.command_names),
        complete_while_typing=False,
    )


async def run_repl(browser: Browser, history_path: Path | None = None) -> None:
    """Run the interactive loop until exit/quit or end of input."""
    prompt_session = create_prompt_session(browser, history_path)
    print_segment(_BANNER_LINES)
    await browser.handle_line("refresh")

    while True:
        try:
            line = await prompt_session.prompt_async(_PROMPT)
        except KeyboardInterrupt:
            continue
        except EOFError:
            print_segment(["Goodbye."], leading_blank=True, trailing_blank=False)
            break
        if not await browser.handle_line(line):
            break
