"""Profile loading and creation.

A profile is a small JSON file configuring how the host is queried. Every
key is optional; a missing profile file means all defaults.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import (
    DEFAULT_HISTORY_FILE,
    DEFAULT_HOST_ARGUMENTS,
    DEFAULT_HOST_EXECUTABLE,
    DEFAULT_LOGS_DIR,
    DEFAULT_PLACEHOLDER_SYNOPSIS_PREFIXES,
    DEFAULT_QUERY_TIMEOUT,
)
from .errors import PathMappingError, ProfileError
from .normalizer import NormalizerRules, placeholder_prefix_predicate
from .path_utils import map_path


class Profile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    host_executable: str = DEFAULT_HOST_EXECUTABLE
    host_arguments: list[str] = Field(default_factory=lambda: list(DEFAULT_HOST_ARGUMENTS))
    query_timeout: float = Field(default=DEFAULT_QUERY_TIMEOUT, gt=0)
    include_functions: bool = False
    include_aliases: bool = False
    placeholder_synopsis_prefixes: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PLACEHOLDER_SYNOPSIS_PREFIXES)
    )
    logs_dir: str = DEFAULT_LOGS_DIR
    history_file: str = DEFAULT_HISTORY_FILE

    @field_validator("host_executable")
    @classmethod
    def _require_executable(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("host_executable must not be empty")
        return value.strip()

    def normalizer_rules(self) -> NormalizerRules:
        return NormalizerRules(
            is_placeholder_synopsis=placeholder_prefix_predicate(
                self.placeholder_synopsis_prefixes
            )
        )

    def logs_path(self) -> Path:
        return _map_profile_path(self.logs_dir, "logs_dir")

    def history_path(self) -> Path:
        return _map_profile_path(self.history_file, "history_file")


def load_profile(path: Path | None) -> Profile:
    """Load and validate a profile. ``None`` or a missing file yields defaults."""
    if path is None or not path.exists():
        return Profile()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ProfileError(f"Could not read profile {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ProfileError(f"Invalid JSON in profile {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ProfileError(f"Profile must be a JSON object: {path}")
    try:
        return Profile.model_validate(data)
    except ValidationError as exc:
        raise ProfileError(f"Invalid profile {path}: {exc}") from exc


def create_profile(path: Path) -> list[str]:
    """Write a default profile to ``path``. Returns status lines to display."""
    if path.exists():
        raise ProfileError(f"Profile already exists: {path}")
    profile = Profile()
    text = json.dumps(profile.model_dump(mode="json"), indent=2, ensure_ascii=False)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text + "\n", encoding="utf-8")
    except OSError as exc:
        raise ProfileError(f"Could not write profile {path}: {exc}") from exc
    return [
        f"Profile created: {path}",
        f"Host executable: {profile.host_executable}",
        f"Logs directory:  {profile.logs_dir}",
    ]


def _map_profile_path(raw: str, field_name: str) -> Path:
    try:
        return map_path(raw)
    except PathMappingError as exc:
        raise ProfileError(f"Invalid {field_name}: {exc}") from exc
