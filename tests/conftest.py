"""Pytest configuration and fixtures for cmdlet-browser tests."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

import pytest

from cmdlet_browser.errors import HostError
from cmdlet_browser.models import CommandDescriptor, CommandType, ParameterSet, ParameterSpec


class FakeSession:
    """In-memory HostSession backed by dictionaries."""

    def __init__(self, host: FakeHost) -> None:
        self._host = host
        self.closed = False

    def list_commands(self, types):
        self._host.calls.append(("list_commands", tuple(types)))
        if self._host.error is not None:
            raise self._host.error
        wanted = set(types)
        return [c for c in self._host.commands if c.command_type in wanted]

    def get_command_info(self, name: str) -> CommandDescriptor | None:
        self._host.calls.append(("get_command_info", name))
        if self._host.error is not None:
            raise self._host.error
        return self._host.infos.get(name)

    def get_help_full(self, name: str) -> Any | None:
        self._host.calls.append(("get_help_full", name))
        if name in self._host.help_errors:
            raise self._host.help_errors[name]
        return self._host.helps.get(name)

    def get_syntax_text(self, name: str) -> str:
        self._host.calls.append(("get_syntax_text", name))
        return self._host.syntax_texts.get(name, "")


class FakeHost:
    def __init__(self) -> None:
        self.commands: list[CommandDescriptor] = []
        self.infos: dict[str, CommandDescriptor] = {}
        self.helps: dict[str, Any] = {}
        self.syntax_texts: dict[str, str] = {}
        self.error: HostError | None = None
        self.help_errors: dict[str, HostError] = {}
        self.calls: list[tuple[str, Any]] = []
        self.sessions_opened = 0
        self.sessions_closed = 0

    @contextmanager
    def session(self):
        self.sessions_opened += 1
        session = FakeSession(self)
        try:
            yield session
        finally:
            session.closed = True
            self.sessions_closed += 1


def make_command(
    name: str,
    module_name: str = "",
    command_type: CommandType = CommandType.CMDLET,
    source: str | None = None,
) -> CommandDescriptor:
    return CommandDescriptor(
        name=name,
        module_name=module_name,
        command_type=command_type,
        source=module_name if source is None else source,
    )


@pytest.fixture
def fake_host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def sample_commands() -> list[CommandDescriptor]:
    return [
        make_command("Add-Content", "Microsoft.PowerShell.Management"),
        make_command("ConvertTo-Json", "Microsoft.PowerShell.Utility"),
        make_command("Get-ChildItem", "Microsoft.PowerShell.Management"),
        make_command("Get-Item", "Microsoft.PowerShell.Management"),
        make_command("gci", "", CommandType.ALIAS, ""),
        make_command("prompt", "", CommandType.FUNCTION, ""),
        make_command("Write-Output", "Microsoft.PowerShell.Utility"),
    ]


@pytest.fixture
def get_item_descriptor() -> CommandDescriptor:
    """Get-Item with two parameter sets sharing most parameters."""
    return CommandDescriptor(
        name="Get-Item",
        module_name="Microsoft.PowerShell.Management",
        command_type=CommandType.CMDLET,
        source="Microsoft.PowerShell.Management",
        parameter_sets=[
            ParameterSet(
                name="Path",
                is_default=True,
                parameters=[
                    ParameterSpec(
                        name="Path",
                        type={"name": "String[]", "element_type": {"name": "String"}},
                        is_mandatory=True,
                        position=0,
                        pipeline_input="ByValue",
                    ),
                    ParameterSpec(name="Force", type="SwitchParameter", is_switch=True),
                    ParameterSpec(name="Verbose", type="SwitchParameter", is_switch=True),
                ],
            ),
            ParameterSet(
                name="LiteralPath",
                parameters=[
                    ParameterSpec(
                        name="LiteralPath",
                        type={"name": "String[]", "element_type": {"name": "String"}},
                        is_mandatory=True,
                        pipeline_input="ByPropertyName",
                        aliases=["PSPath", "LP"],
                    ),
                    ParameterSpec(name="Force", type="SwitchParameter", is_switch=True),
                    ParameterSpec(name="ErrorAction", type="ActionPreference"),
                ],
            ),
        ],
    )


@pytest.fixture
def get_item_help() -> dict[str, Any]:
    """Shape of ``Get-Help Get-Item -Full | ConvertTo-Json``, trimmed."""
    return {
        "Name": "Get-Item",
        "Synopsis": "Gets the item at the specified location.",
        "details": {
            "name": "Get-Item",
            "description": [{"Text": "Gets the item at the specified location."}],
        },
        "examples": {
            "example": [
                {
                    "title": "--------- EXAMPLE 1 - Get the current directory ---------",
                    "code": "Get-Item .",
                    "remarks": [
                        {"Text": "This example gets the current directory."},
                        {"Text": ""},
                    ],
                },
                {
                    "title": "-------------------------- EXAMPLE 2 --------------------------",
                    "code": "Get-Item C:\\ ",
                    "remarks": ["Gets the drive root.", "  "],
                },
            ]
        },
    }


@pytest.fixture(autouse=True)
def _restore_logging():
    """Undo global logging changes made by setup_logging()."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if isinstance(handler, logging.FileHandler) and handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    logging.disable(logging.NOTSET)
