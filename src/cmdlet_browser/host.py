"""PowerShell host adapter.

Every query runs one ``pwsh`` process that prints JSON (or plain text for the
syntax fallback). A ``HostSession`` scopes a group of queries: it is opened
per user request and closed on every exit path, so no host state survives
between requests.
"""

from __future__ import annotations

import json
import logging
import subprocess
import time
import uuid
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any, Protocol

from pydantic import ValidationError

from .constants import DEFAULT_HOST_ARGUMENTS, DEFAULT_HOST_EXECUTABLE, DEFAULT_QUERY_TIMEOUT
from .errors import HostError, HostQueryError, HostTimeoutError, HostUnavailableError
from .logging import log_event, summarize_text
from .models import CommandDescriptor, CommandType

_NAME_TOKEN = "%NAME%"
_TYPES_TOKEN = "%TYPES%"

_PREAMBLE = (
    "$ProgressPreference = 'SilentlyContinue'\n"
    "$WarningPreference = 'SilentlyContinue'\n"
    "[Console]::OutputEncoding = [System.Text.Encoding]::UTF8\n"
)

_LIST_COMMANDS_SCRIPT = """\
$types = [System.Management.Automation.CommandTypes]'%TYPES%'
$items = @(Get-Command -CommandType $types -ErrorAction SilentlyContinue |
    Sort-Object Name |
    ForEach-Object {
        [ordered]@{
            name = $_.Name
            module_name = $_.ModuleName
            command_type = $_.CommandType.ToString()
            source = $_.Source
        }
    })
ConvertTo-Json -InputObject $items -Depth 3 -Compress
"""

_COMMAND_INFO_SCRIPT = """\
function ConvertTo-TypeRecord($Type) {
    if ($null -eq $Type) { return $null }
    $underlying = [Nullable]::GetUnderlyingType($Type)
    [ordered]@{
        name = $Type.Name
        full_name = $Type.FullName
        element_type = $(if ($Type.IsArray) { ConvertTo-TypeRecord $Type.GetElementType() } else { $null })
        underlying_type = $(if ($underlying) { ConvertTo-TypeRecord $underlying } else { $null })
    }
}
$command = Get-Command -Name '%NAME%' -ErrorAction SilentlyContinue | Select-Object -First 1
if ($null -eq $command) { return }
$sets = @()
try {
    $sets = @($command.ParameterSets | ForEach-Object {
        [ordered]@{
            name = $_.Name
            is_default = $_.IsDefault
            parameters = @($_.Parameters | ForEach-Object {
                [ordered]@{
                    name = $_.Name
                    type = ConvertTo-TypeRecord $_.ParameterType
                    is_mandatory = $_.IsMandatory
                    position = $_.Position
                    is_switch = ($_.ParameterType -eq [switch]) -or ($_.ParameterType -eq [bool])
                    pipeline_input = $(if ($_.ValueFromPipeline) { 'ByValue' } elseif ($_.ValueFromPipelineByPropertyName) { 'ByPropertyName' } else { 'None' })
                    aliases = @($_.Aliases)
                }
            })
        }
    })
} catch {
    $sets = @()
}
$record = [ordered]@{
    name = $command.Name
    module_name = $command.ModuleName
    command_type = $command.CommandType.ToString()
    source = $command.Source
    parameter_sets = $sets
}
ConvertTo-Json -InputObject $record -Depth 12 -Compress
"""

_HELP_FULL_SCRIPT = """\
$help = Get-Help -Name '%NAME%' -Full -ErrorAction SilentlyContinue | Select-Object -First 1
if ($null -eq $help) { return }
ConvertTo-Json -InputObject $help -Depth 8 -Compress
"""

_SYNTAX_SCRIPT = """\
Get-Command -Name '%NAME%' -Syntax -ErrorAction SilentlyContinue | Out-String -Width 4096
"""


def quote_name(name: str) -> str:
    """Escape ``name`` for use inside a single-quoted PowerShell string."""
    return name.replace("'", "''")


def command_types_argument(types: Iterable[CommandType]) -> str:
    selected = sorted({CommandType(t).value for t in types})
    if not selected:
        selected = [CommandType.CMDLET.value]
    return ", ".join(selected)


class HostSession(Protocol):
    """Queries available while a host session is open."""

    def list_commands(self, types: Iterable[CommandType]) -> list[CommandDescriptor]:
        """Return commands of the given kinds, sorted by name, without parameter sets."""

    def get_command_info(self, name: str) -> CommandDescriptor | None:
        """Return one command with its parameter sets, or None."""

    def get_help_full(self, name: str) -> Any | None:
        """Return the raw ``Get-Help -Full`` record, or None."""

    def get_syntax_text(self, name: str) -> str:
        """Return the host-rendered syntax text ("" when unavailable)."""


class CommandHost(Protocol):
    def session(self) -> Any:
        """Context manager yielding a HostSession."""


class PowerShellHost:
    """Runs queries through a PowerShell executable."""

    def __init__(
        self,
        executable: str = DEFAULT_HOST_EXECUTABLE,
        arguments: Sequence[str] = DEFAULT_HOST_ARGUMENTS,
        timeout: float | None = DEFAULT_QUERY_TIMEOUT,
    ) -> None:
        self.executable = executable
        self.arguments = list(arguments)
        self.timeout = timeout

    @contextmanager
    def session(self) -> Iterator[PowerShellSession]:
        session = PowerShellSession(self, uuid.uuid4().hex[:8])
        started = time.perf_counter()
        log_event(
            "host_session_open",
            level=logging.DEBUG,
            session_id=session.session_id,
            host_executable=self.executable,
        )
        try:
            yield session
        finally:
            session.close()
            log_event(
                "host_session_close",
                level=logging.DEBUG,
                session_id=session.session_id,
                queries=session.query_count,
                elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
            )

    def run_script(self, script: str) -> str:
        """Run ``script`` and return its stdout."""
        argv = [self.executable, *self.arguments, "-Command", _PREAMBLE + script]
        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            raise HostUnavailableError(
                f"PowerShell executable not found: {self.executable}"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise HostTimeoutError(
                f"PowerShell query timed out after {self.timeout} seconds"
            ) from exc
        except OSError as exc:
            raise HostUnavailableError(f"Could not start {self.executable}: {exc}") from exc

        if completed.returncode != 0:
            detail = summarize_text(completed.stderr) or f"exit code {completed.returncode}"
            raise HostQueryError(f"PowerShell query failed: {detail}")
        return completed.stdout or ""


class PowerShellSession:
    """One scoped group of host queries."""

    def __init__(self, host: PowerShellHost, session_id: str) -> None:
        self._host = host
        self.session_id = session_id
        self.query_count = 0
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def list_commands(self, types: Iterable[CommandType]) -> list[CommandDescriptor]:
        type_arg = command_types_argument(types)
        payload = self._query_json(
            "list_commands", type_arg, _LIST_COMMANDS_SCRIPT.replace(_TYPES_TOKEN, type_arg)
        )
        commands: list[CommandDescriptor] = []
        for item in _as_records(payload):
            try:
                commands.append(CommandDescriptor.model_validate(item))
            except ValidationError as exc:
                log_event(
                    "host_query_error",
                    level=logging.WARNING,
                    session_id=self.session_id,
                    query="list_commands",
                    target=item.get("name"),
                    error_type=type(exc).__name__,
                    error=summarize_text(exc),
                )
        return commands

    def get_command_info(self, name: str) -> CommandDescriptor | None:
        payload = self._query_json("get_command_info", name, _with_name(_COMMAND_INFO_SCRIPT, name))
        if not isinstance(payload, dict):
            return None
        try:
            return CommandDescriptor.model_validate(payload)
        except ValidationError as exc:
            raise HostQueryError(f"Unexpected command metadata for {name}: {exc}") from exc

    def get_help_full(self, name: str) -> Any | None:
        return self._query_json("get_help_full", name, _with_name(_HELP_FULL_SCRIPT, name))

    def get_syntax_text(self, name: str) -> str:
        return self._query("get_syntax_text", name, _with_name(_SYNTAX_SCRIPT, name)).strip()

    def _query_json(self, query: str, target: str, script: str) -> Any | None:
        output = self._query(query, target, script).strip()
        if not output:
            return None
        try:
            return json.loads(output)
        except json.JSONDecodeError as exc:
            error = HostQueryError(f"Could not decode {query} output: {exc}")
            self._log_error(query, target, error)
            raise error from exc

    def _query(self, query: str, target: str, script: str) -> str:
        if self.closed:
            raise HostError("Host session is closed")
        self.query_count += 1
        started = time.perf_counter()
        try:
            output = self._host.run_script(script)
        except HostError as exc:
            self._log_error(query, target, exc)
            raise
        log_event(
            "host_query",
            level=logging.INFO,
            session_id=self.session_id,
            query=query,
            target=target,
            returncode=0,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return output

    def _log_error(self, query: str, target: str, error: Exception) -> None:
        log_event(
            "host_query_error",
            level=logging.WARNING,
            session_id=self.session_id,
            query=query,
            target=target,
            error_type=type(error).__name__,
            error=summarize_text(error),
        )


def _with_name(script: str, name: str) -> str:
    return script.replace(_NAME_TOKEN, quote_name(name))


def _as_records(payload: Any) -> list[dict[str, Any]]:
    if isinstance(payload, dict):
        return [payload]
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]
    return []
