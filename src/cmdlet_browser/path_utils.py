"""Path mapping for the special prefixes accepted on the command line.

- ``~`` or ``~/...`` maps to the user home directory
- ``@`` or ``@/...`` maps to the installed package directory
- native absolute paths are used as-is
- bare relative paths are rejected to avoid depending on the working directory
"""

from __future__ import annotations

import unicodedata
from pathlib import Path

from .errors import PathMappingError


def get_app_root() -> Path:
    """Return the installed ``cmdlet_browser`` package directory."""
    return Path(__file__).resolve().parent


def map_path(path: str) -> Path:
    """Map ``path`` to an absolute, resolved Path.

    Raises:
        PathMappingError: for NUL characters, relative paths without a
            prefix, or prefixed paths that escape their base directory.
    """
    if "\x00" in path:
        raise PathMappingError("Path contains NUL character")
    text = unicodedata.normalize("NFC", path.strip())
    if not text:
        raise PathMappingError("Path is empty")

    if text == "~" or text.startswith(("~/", "~\\")):
        return _map_under(Path.home().resolve(), text[2:], text)
    if text == "@" or text.startswith(("@/", "@\\")):
        return _map_under(get_app_root(), text[2:], text)

    candidate = Path(text)
    if candidate.is_absolute():
        return candidate.resolve()
    raise PathMappingError(
        f"Relative paths without prefix are not supported: {path}. "
        "Use '~/' for home directory, '@/' for app directory, "
        "or provide an absolute path."
    )


def _map_under(base: Path, suffix: str, original: str) -> Path:
    resolved = (base / suffix.replace("\\", "/")).resolve()
    try:
        resolved.relative_to(base)
    except ValueError:
        raise PathMappingError(f"Path escapes its base directory: {original}") from None
    return resolved
