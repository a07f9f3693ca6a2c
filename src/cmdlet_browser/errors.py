"""Typed exceptions for cmdlet-browser."""


class CmdletBrowserError(Exception):
    """Base exception for cmdlet-browser failures."""


class PathMappingError(CmdletBrowserError):
    """Raised when a path argument cannot be safely mapped."""


class ProfileError(CmdletBrowserError):
    """Raised when a profile file cannot be read, validated or written."""


class HostError(CmdletBrowserError):
    """Raised when a query against the PowerShell host fails."""


class HostUnavailableError(HostError):
    """Raised when the host executable cannot be started."""


class HostTimeoutError(HostError):
    """Raised when a host query exceeds its time budget."""


class HostQueryError(HostError):
    """Raised when the host exits non-zero or emits undecodable output."""


class ExportError(CmdletBrowserError):
    """Raised when the command list cannot be written."""


class CommandParseError(CmdletBrowserError, ValueError):
    """User-facing REPL parse error with one or more output lines."""

    def __init__(self, lines: str | list[str]) -> None:
        if isinstance(lines, str):
            self.lines = [lines]
        else:
            self.lines = lines
        super().__init__("\n".join(self.lines))
