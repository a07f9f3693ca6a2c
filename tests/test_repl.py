"""Interactive browser tests driven through handle_line()."""

from __future__ import annotations

import asyncio
import time
from contextlib import contextmanager
from pathlib import Path

import pytest
from prompt_toolkit.document import Document

from cmdlet_browser.errors import HostUnavailableError
from cmdlet_browser.models import CommandDescriptor, CommandType
from cmdlet_browser.repl import Browser, CommandNameCompleter


@pytest.fixture
def browser(fake_host, sample_commands) -> Browser:
    fake_host.commands = sample_commands
    return Browser(fake_host)


def run(browser: Browser, *lines: str) -> bool:
    result = True
    for line in lines:
        result = asyncio.run(browser.handle_line(line))
    return result


def test_refresh_loads_cmdlets(browser: Browser, capsys) -> None:
    assert run(browser, "refresh") is True

    out = capsys.readouterr().out
    assert "Loading commands..." in out
    assert "Loaded 5 command(s)." in out
    assert "Showing 5 item(s)." in out
    assert browser.command_names()[:2] == ["Add-Content", "ConvertTo-Json"]


def test_blank_line_does_nothing(browser: Browser, capsys) -> None:
    assert run(browser, "   ") is True
    assert capsys.readouterr().out == ""


def test_exit_ends_loop(browser: Browser, capsys) -> None:
    assert run(browser, "quit") is False
    assert capsys.readouterr().out == "Goodbye.\n"


def test_module_filter_and_list(browser: Browser, capsys) -> None:
    run(browser, "refresh", "module Microsoft.PowerShell.Utility")
    capsys.readouterr()

    run(browser, "list")

    out = capsys.readouterr().out
    assert "ConvertTo-Json" in out
    assert "Write-Output" in out
    assert "Get-Item" not in out
    assert "Showing 2 item(s)." in out


def test_module_all_clears_filter(browser: Browser, capsys) -> None:
    run(browser, "refresh", "module Microsoft.PowerShell.Utility", "module all")

    assert browser.state.module_filter is None
    assert capsys.readouterr().out.rstrip().endswith("Showing 5 item(s).")


def test_search_with_no_matches(browser: Browser, capsys) -> None:
    run(browser, "refresh", "s nothing-matches", "l")

    out = capsys.readouterr().out
    assert "No commands match the current filter." in out
    assert "Showing 0 item(s)." in out

    run(browser, "search")
    assert browser.state.search_text == ""
    assert "Showing 5 item(s)." in capsys.readouterr().out


def test_modules_prints_tree(browser: Browser, capsys) -> None:
    run(browser, "refresh")
    capsys.readouterr()

    run(browser, "modules")

    out = capsys.readouterr().out
    assert "* All Modules (5)" in out
    assert "    Microsoft.PowerShell.Management (3)" in out


def test_show_prints_help(browser: Browser, fake_host, get_item_descriptor, get_item_help, capsys) -> None:
    fake_host.infos["Get-Item"] = get_item_descriptor
    fake_host.helps["Get-Item"] = get_item_help

    run(browser, "show Get-Item")

    out = capsys.readouterr().out
    assert "SYNOPSIS\nGets the item at the specified location." in out
    assert "PARAMETER SET 2: LiteralPath" in out
    assert "LiteralPath  String[]" in out
    assert "# Get the current directory" in out
    assert "Help loaded for Get-Item." in out


def test_single_section_command(browser: Browser, fake_host, get_item_help, capsys) -> None:
    fake_host.helps["Get-Item"] = get_item_help

    run(browser, "synopsis Get-Item")

    out = capsys.readouterr().out
    assert "Gets the item at the specified location." in out
    assert "SYNTAX" not in out
    assert "EXAMPLES" not in out


def test_show_reports_help_error_in_synopsis(browser: Browser, fake_host, capsys) -> None:
    fake_host.error = HostUnavailableError("PowerShell executable not found: pwsh")

    run(browser, "show Get-Item")

    assert "Error loading help: PowerShell executable not found: pwsh" in capsys.readouterr().out


def test_refresh_error_keeps_previous_list(browser: Browser, fake_host, capsys) -> None:
    run(browser, "refresh")
    fake_host.error = HostUnavailableError("PowerShell executable not found: pwsh")
    capsys.readouterr()

    assert run(browser, "refresh") is True

    assert "Error: PowerShell executable not found: pwsh" in capsys.readouterr().out
    assert len(browser.state.commands) == 5


def test_toggle_functions_changes_next_refresh(browser: Browser, fake_host, capsys) -> None:
    run(browser, "functions on")
    assert "Functions on. Run 'refresh' to reload." in capsys.readouterr().out

    run(browser, "refresh")

    assert fake_host.calls[-1] == ("list_commands", (CommandType.CMDLET, CommandType.FUNCTION))
    assert "prompt" in browser.command_names()


def test_export_writes_filtered_list(browser: Browser, tmp_path: Path, capsys) -> None:
    target = tmp_path / "Utility.csv"
    run(browser, "refresh", "module Microsoft.PowerShell.Utility")
    capsys.readouterr()

    run(browser, f'export "{target}"')

    assert f"Exported 2 item(s) to '{target}'." in capsys.readouterr().out
    lines = target.read_text(encoding="utf-8-sig").splitlines()
    assert lines[0] == "Name,ModuleName,CommandType,Source"
    assert [line.split(",")[0] for line in lines[1:]] == ["ConvertTo-Json", "Write-Output"]


def test_export_defaults_to_working_directory(
    browser: Browser, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys
) -> None:
    monkeypatch.chdir(tmp_path)
    run(browser, "refresh", "export")

    assert (tmp_path / "Commands.csv").exists()


def test_export_rejects_relative_path(browser: Browser, capsys) -> None:
    run(browser, "export out.csv")

    assert "Error: Relative paths without prefix are not supported" in capsys.readouterr().out


def test_online_prints_url(browser: Browser, capsys) -> None:
    run(browser, "o Get-Item")

    assert "https://learn.microsoft.com/powershell/module/?term=Get-Item" in capsys.readouterr().out


def test_parse_errors_are_printed(browser: Browser, capsys) -> None:
    run(browser, "frobnicate")
    assert "Unknown command: frobnicate" in capsys.readouterr().out

    run(browser, "search 'unterminated")
    assert "Parse error:" in capsys.readouterr().out


def test_only_one_query_at_a_time(browser: Browser, capsys) -> None:
    browser._busy = True

    run(browser, "refresh")

    assert "Error: Another query is still running." in capsys.readouterr().out


def test_slow_query_times_out(capsys) -> None:
    class SlowSession:
        def list_commands(self, types):
            time.sleep(0.3)
            return []

    class SlowHost:
        @contextmanager
        def session(self):
            yield SlowSession()

    browser = Browser(SlowHost(), query_timeout=0.01)

    run(browser, "refresh")

    assert "Error: Query did not finish within 0.01 seconds" in capsys.readouterr().out
    assert browser._busy is False


def test_completer_suggests_loaded_names(browser: Browser) -> None:
    run(browser, "refresh")
    completer = CommandNameCompleter(browser.command_names)

    completions = list(completer.get_completions(Document("show get-i"), None))
    first_word = list(completer.get_completions(Document("sho"), None))

    assert [c.text for c in completions] == ["Get-Item"]
    assert first_word == []


def test_help_lookup_gets_one_timeout_per_host_call(capsys) -> None:
    class SlowHelpSession:
        def get_command_info(self, name):
            time.sleep(0.1)
            return CommandDescriptor(name=name, command_type=CommandType.ALIAS)

        def get_help_full(self, name):
            time.sleep(0.1)
            return {"Synopsis": "Slow but complete."}

        def get_syntax_text(self, name):
            time.sleep(0.1)
            return "Get-ChildItem [[-Path] <string[]>]"

    class SlowHelpHost:
        @contextmanager
        def session(self):
            yield SlowHelpSession()

    browser = Browser(SlowHelpHost(), query_timeout=0.2)

    run(browser, "show gci")

    out = capsys.readouterr().out
    assert "Slow but complete." in out
    assert "Get-ChildItem [[-Path] <string[]>]" in out
    assert "Help loaded for gci." in out
