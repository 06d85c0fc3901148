"""Pydantic schema for command tree definition files."""

from __future__ import annotations

import re
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from cmdgraph.core.normalize import normalize_optional_str, normalize_required_str
from cmdgraph.core.params import ParamKind, ParamValue, ValueType
from cmdgraph.core.payloads import validate_payload


class ValidateTable(BaseModel):
    """Declarative validators; applied in field order."""

    model_config = ConfigDict(extra="forbid")

    non_empty: bool = False
    unique: bool = False
    min_length: int | None = Field(default=None, ge=0)
    max_length: int | None = Field(default=None, ge=0)
    pattern: str | None = None
    min: float | None = None
    max: float | None = None

    @field_validator("pattern")
    @classmethod
    def _validate_pattern(cls, value: str | None) -> str | None:
        if value is None:
            return None
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"pattern is not a valid regular expression ({exc})") from exc
        return value

    @model_validator(mode="after")
    def _validate(self) -> ValidateTable:
        if (
            self.min_length is not None
            and self.max_length is not None
            and self.min_length > self.max_length
        ):
            raise ValueError("min_length must be <= max_length")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("min must be <= max")
        return self


class ParameterDef(BaseModel):
    """Parameter entry of a command definition."""

    model_config = ConfigDict(extra="forbid")

    key: str
    kind: ParamKind = "single"
    required: bool = False
    default: ParamValue = None
    env_key: str | None = None
    long: str | None = None
    short: str | None = None
    positional: bool = False
    value_type: ValueType = "str"
    choices: list[str] | None = None
    is_global: bool = Field(default=False, alias="global")
    help: str | None = None
    validator: str | None = None
    validate_: ValidateTable | None = Field(default=None, alias="validate")

    @field_validator("validator")
    @classmethod
    def _validate_reference(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return validate_import_reference(value, field_name="validator")


class CommandDef(BaseModel):
    """Command entry; `commands` nests subcommands."""

    model_config = ConfigDict(extra="forbid")

    name: str
    help: str | None = None
    handler: str | None = None
    parameters: list[ParameterDef] = Field(default_factory=list)
    commands: list[CommandDef] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate(self) -> CommandDef:
        self.name = normalize_required_str(self.name, field_name="name")
        self.help = normalize_optional_str(self.help, field_name="help", empty_is_none=True)
        if self.handler is not None:
            self.handler = validate_import_reference(self.handler, field_name="handler")

        seen: set[str] = set()
        for child in self.commands:
            if child.name in seen:
                raise ValueError(
                    f"duplicate command '{child.name}' under '{self.name}' "
                    "(sibling names must be unique)"
                )
            seen.add(child.name)
        return self


def validate_import_reference(value: str, *, field_name: str) -> str:
    """`package.module:attribute` references."""

    reference = normalize_required_str(value, field_name=field_name)
    module, separator, attribute = reference.partition(":")
    if not separator or not module.strip() or not attribute.strip():
        raise ValueError(f"{field_name} must look like 'package.module:attribute' (got {reference})")
    return reference


def parse_tree_payload(payload: Mapping[str, object]) -> CommandDef:
    """Validate raw tree file payload into typed model."""

    return validate_payload(CommandDef, payload)
