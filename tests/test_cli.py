"""CLI behavior tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

import cmdlet_browser.cli as cli_module
from cmdlet_browser.cli import main
from cmdlet_browser.errors import HostUnavailableError
from cmdlet_browser.models import CommandType


@pytest.fixture
def patched_host(monkeypatch: pytest.MonkeyPatch, fake_host, sample_commands, tmp_path: Path):
    monkeypatch.setenv("HOME", str(tmp_path))
    fake_host.commands = sample_commands
    created: list[dict] = []

    def factory(**kwargs):
        created.append(kwargs)
        return fake_host

    monkeypatch.setattr(cli_module, "PowerShellHost", factory)
    fake_host.created = created
    return fake_host


def test_init_requires_profile_option(capsys) -> None:
    assert main(["init"]) == 1

    err = capsys.readouterr().err
    assert "Error: -p/--profile is required for init" in err
    assert "Usage: cmdlet-browser -p <profile-path> init" in err


def test_init_creates_profile(tmp_path: Path, capsys) -> None:
    profile_path = tmp_path / "profile.json"

    assert main(["-p", str(profile_path), "init"]) == 0

    assert profile_path.exists()
    assert f"Profile created: {profile_path}" in capsys.readouterr().out


def test_init_refuses_existing_profile(tmp_path: Path, capsys) -> None:
    profile_path = tmp_path / "profile.json"
    profile_path.write_text("{}", encoding="utf-8")

    assert main(["-p", str(profile_path), "init"]) == 1
    assert "Error: Profile already exists" in capsys.readouterr().err


def test_relative_profile_path_is_rejected(capsys) -> None:
    assert main(["-p", "profile.json", "list"]) == 1
    assert "Relative paths without prefix are not supported" in capsys.readouterr().err


def test_list_prints_filtered_commands(patched_host, capsys) -> None:
    assert main(["list", "--module", "Microsoft.PowerShell.Utility"]) == 0

    out = capsys.readouterr().out
    assert "ConvertTo-Json" in out
    assert "Write-Output" in out
    assert "Get-Item" not in out
    assert out.rstrip().endswith("Showing 2 item(s).")


def test_list_search_is_case_insensitive(patched_host, capsys) -> None:
    assert main(["list", "--search", "CHILD"]) == 0

    out = capsys.readouterr().out
    assert "Get-ChildItem" in out
    assert "Showing 1 item(s)." in out


def test_functions_flag_widens_command_types(patched_host, capsys) -> None:
    assert main(["--functions", "--aliases", "list"]) == 0

    assert patched_host.calls[0] == (
        "list_commands",
        (CommandType.CMDLET, CommandType.FUNCTION, CommandType.ALIAS),
    )
    assert "Showing 7 item(s)." in capsys.readouterr().out


def test_profile_settings_reach_host(patched_host, tmp_path: Path, capsys) -> None:
    profile_path = tmp_path / "profile.json"
    profile_path.write_text(
        json.dumps({"host_executable": "powershell.exe", "query_timeout": 9, "include_aliases": True}),
        encoding="utf-8",
    )

    assert main(["-p", str(profile_path), "modules"]) == 0

    assert patched_host.created[0]["executable"] == "powershell.exe"
    assert patched_host.created[0]["timeout"] == 9
    assert patched_host.calls[0] == ("list_commands", (CommandType.CMDLET, CommandType.ALIAS))
    out = capsys.readouterr().out
    assert "* All Modules (6)" in out


def test_show_prints_help(patched_host, get_item_descriptor, get_item_help, capsys) -> None:
    patched_host.infos["Get-Item"] = get_item_descriptor
    patched_host.helps["Get-Item"] = get_item_help

    assert main(["show", "Get-Item"]) == 0

    out = capsys.readouterr().out
    assert out.startswith("Get-Item\n\nSYNOPSIS\nGets the item at the specified location.")
    assert "PARAMETERS" in out


def test_export_writes_csv(patched_host, tmp_path: Path, capsys) -> None:
    target = tmp_path / "exports" / "Commands.csv"

    assert main(["export", str(target), "--search", "get-"]) == 0

    assert f"Exported 2 item(s) to '{target}'." in capsys.readouterr().out
    assert target.read_bytes().startswith(b"\xef\xbb\xbfName,ModuleName,CommandType,Source\r\n")


def test_host_failure_returns_error(patched_host, capsys) -> None:
    patched_host.error = HostUnavailableError("PowerShell executable not found: pwsh")

    assert main(["list"]) == 1
    assert "Error: PowerShell executable not found: pwsh" in capsys.readouterr().err


def test_log_file_records_run(patched_host, tmp_path: Path) -> None:
    log_file = tmp_path / "run.log"

    assert main(["-l", str(log_file), "list"]) == 0

    text = log_file.read_text(encoding="utf-8")
    assert "=== app_start ===" in text
    assert "mode: list" in text
    assert "=== commands_loaded ===" in text
    assert "=== app_stop ===" in text


def test_no_subcommand_starts_repl(
    patched_host, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    started: list[tuple[object, Path | None]] = []

    async def fake_run_repl(browser, history_path=None):
        started.append((browser, history_path))

    monkeypatch.setattr(cli_module, "run_repl", fake_run_repl)

    assert main(["--aliases"]) == 0

    (browser, history_path), = started
    assert browser.host is patched_host
    assert browser.state.include_aliases is True
    assert browser.state.include_functions is False
    assert history_path == (tmp_path / ".cmdlet-browser" / "history").resolve()
    # Interactive runs always get a log file under the default logs directory.
    assert list((tmp_path / ".cmdlet-browser" / "logs").glob("cmdlet-browser_*.log"))
