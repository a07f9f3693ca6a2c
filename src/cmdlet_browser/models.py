"""Domain models for cmdlet-browser."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

_SWITCH_PARAMETER_FULL_NAME = "System.Management.Automation.SwitchParameter"
_SWITCH_PARAMETER_NAME = "SwitchParameter"
_BOOLEAN_FULL_NAME = "System.Boolean"
_BOOLEAN_NAMES = frozenset({"Boolean", "bool"})


class CommandType(StrEnum):
    ALIAS = "Alias"
    FUNCTION = "Function"
    FILTER = "Filter"
    CMDLET = "Cmdlet"
    EXTERNAL_SCRIPT = "ExternalScript"
    APPLICATION = "Application"
    SCRIPT = "Script"
    CONFIGURATION = "Configuration"

    @property
    def has_parameter_set_syntax(self) -> bool:
        """True for kinds whose descriptors carry structured parameter sets."""
        return self in _PARAMETER_SET_KINDS


_PARAMETER_SET_KINDS = frozenset(
    {
        CommandType.CMDLET,
        CommandType.FUNCTION,
        CommandType.FILTER,
        CommandType.CONFIGURATION,
    }
)


class PipelineInput(StrEnum):
    NONE = "None"
    BY_VALUE = "ByValue"
    BY_PROPERTY_NAME = "ByPropertyName"


class TypeRef(BaseModel):
    """Host type descriptor. Arrays carry an element type, nullables an underlying type."""

    model_config = ConfigDict(frozen=True)

    name: str
    full_name: str = ""
    element_type: TypeRef | None = None
    underlying_type: TypeRef | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_name(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data}
        return data

    @field_validator("full_name", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def is_array(self) -> bool:
        return self.element_type is not None

    @property
    def is_nullable(self) -> bool:
        return self.underlying_type is not None

    @property
    def is_switch_parameter(self) -> bool:
        if self.full_name:
            return self.full_name == _SWITCH_PARAMETER_FULL_NAME
        return self.name == _SWITCH_PARAMETER_NAME

    @property
    def is_boolean(self) -> bool:
        if self.full_name:
            return self.full_name == _BOOLEAN_FULL_NAME
        return self.name in _BOOLEAN_NAMES


class ParameterSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: TypeRef = TypeRef(name="Object")
    is_mandatory: bool = False
    position: int = -1  # -1 = unpositioned
    is_switch: bool = False
    pipeline_input: PipelineInput = PipelineInput.NONE
    aliases: list[str] = []

    @field_validator("position", mode="before")
    @classmethod
    def _none_to_unpositioned(cls, value: Any) -> Any:
        return -1 if value is None else value

    @field_validator("aliases", mode="before")
    @classmethod
    def _none_to_no_aliases(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @property
    def is_positioned(self) -> bool:
        return self.position >= 0

    @property
    def is_switch_like(self) -> bool:
        return self.is_switch or self.type.is_boolean or self.type.is_switch_parameter


class ParameterSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    is_default: bool = False
    parameters: list[ParameterSpec] = []


class CommandDescriptor(BaseModel):
    """Snapshot of one host command at query time."""

    model_config = ConfigDict(frozen=True)

    name: str
    module_name: str = ""
    command_type: CommandType = CommandType.CMDLET
    source: str = ""
    parameter_sets: list[ParameterSet] = []

    @field_validator("module_name", "source", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("parameter_sets", mode="before")
    @classmethod
    def _none_to_no_sets(cls, value: Any) -> Any:
        return [] if value is None else value


class ParameterRow(BaseModel):
    name: str
    type_name: str
    required: bool
    position: str  # "Named" or integer text
    pipeline: str
    aliases: str = ""


class NormalizedHelp(BaseModel):
    synopsis: str = ""
    syntax: str = ""
    examples: str = ""
    parameters: list[ParameterRow] = []


class ModuleGroup(BaseModel):
    name: str
    count: int


class ModuleCatalog(BaseModel):
    total: int = 0
    groups: list[ModuleGroup] = []
