"""Parameter specs and resolved values."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from cmdgraph.core.normalize import (
    default_long_flag,
    normalize_optional_str,
    normalize_unique_list,
    validate_env_key,
    validate_key,
    validate_long_flag,
    validate_short_flag,
)
from cmdgraph.core.payloads import validate_payload

ParamKind = Literal["flag", "single", "multi", "choice"]
ValueSource = Literal["explicit-flag", "environment", "default"]
ValueType = Literal["str", "int", "float"]
ScalarValue = str | int | float | bool
ParamValue = ScalarValue | tuple[ScalarValue, ...] | None
Validator = Callable[[ParamValue], ParamValue]


class ParameterSpec(BaseModel):
    """Declared parameter of a command."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    key: str
    kind: ParamKind = "single"
    required: bool = False
    default: ParamValue = None
    env_key: str | None = None
    validator: Validator | None = None
    long: str | None = None
    short: str | None = None
    positional: bool = False
    value_type: ValueType = "str"
    choices: tuple[str, ...] | None = None
    is_global: bool = False
    help: str | None = None

    @field_validator("key")
    @classmethod
    def _validate_key(cls, value: str) -> str:
        return validate_key(value, field_name="key")

    @field_validator("env_key")
    @classmethod
    def _validate_env_key(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return validate_env_key(value, field_name="env_key")

    @field_validator("long")
    @classmethod
    def _validate_long(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return validate_long_flag(value, field_name="long")

    @field_validator("short")
    @classmethod
    def _validate_short(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return validate_short_flag(value, field_name="short")

    @field_validator("choices")
    @classmethod
    def _validate_choices(cls, value: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if value is None:
            return None
        return tuple(normalize_unique_list(value, field_name="choices"))

    @field_validator("help")
    @classmethod
    def _validate_help(cls, value: str | None) -> str | None:
        return normalize_optional_str(value, field_name="help", empty_is_none=True)

    @model_validator(mode="after")
    def _validate(self) -> ParameterSpec:
        if self.required and self.default is not None:
            raise ValueError(f"required parameter '{self.key}' must not declare a default")
        if self.positional and (self.long is not None or self.short is not None):
            raise ValueError(f"positional parameter '{self.key}' cannot declare long/short flags")
        if self.positional and self.is_global:
            raise ValueError(f"positional parameter '{self.key}' cannot be global")

        if self.kind == "choice":
            if not self.choices:
                raise ValueError(f"choice parameter '{self.key}' must declare choices")
        elif self.choices is not None:
            raise ValueError(f"choices are only allowed for kind=choice ('{self.key}')")

        if self.kind == "flag":
            if self.required:
                raise ValueError(f"flag '{self.key}' cannot be required")
            if self.positional:
                raise ValueError(f"flag '{self.key}' cannot be positional")

        if self.default is not None:
            _check_default_type(self)
        return self

    @property
    def option(self) -> str:
        """Long option spelling (`--key` unless overridden)."""

        return self.long if self.long is not None else default_long_flag(self.key)

    @property
    def display_name(self) -> str:
        """Name used in diagnostics."""

        if self.positional:
            return f"<{self.key}>"
        return self.option

    @property
    def takes_value(self) -> bool:
        return self.kind != "flag"


def param(key: str, **fields: object) -> ParameterSpec:
    """Build a `ParameterSpec`, reporting schema errors as `TreeDefinitionError`."""

    return validate_payload(
        ParameterSpec,
        {"key": key, **fields},
        header=f"invalid parameter '{key}':",
    )


@dataclass(frozen=True, slots=True)
class ResolvedValue:
    """Final value bound to a parameter, with provenance."""

    key: str
    value: ParamValue
    source: ValueSource
    origin: str


def plain_values(values: Mapping[str, ResolvedValue]) -> dict[str, ParamValue]:
    """Drop provenance: key -> value."""

    return {key: resolved.value for key, resolved in values.items()}


def _check_default_type(spec: ParameterSpec) -> None:
    default = spec.default
    if spec.kind == "flag":
        if not isinstance(default, bool):
            raise ValueError(f"flag '{spec.key}' default must be a boolean")
        return
    if spec.kind == "choice":
        if default not in (spec.choices or ()):
            choices = ", ".join(spec.choices or ())
            raise ValueError(
                f"default '{default}' of '{spec.key}' is not one of: {choices}"
            )
        return
    if spec.kind == "multi":
        if not isinstance(default, tuple):
            raise ValueError(f"multi parameter '{spec.key}' default must be a list")
        for item in default:
            _check_scalar_type(spec, item)
        return
    if isinstance(default, tuple):
        raise ValueError(f"single parameter '{spec.key}' default must not be a list")
    _check_scalar_type(spec, default)


def _check_scalar_type(spec: ParameterSpec, value: object) -> None:
    if isinstance(value, bool):
        ok = False
    elif spec.value_type == "int":
        ok = isinstance(value, int)
    elif spec.value_type == "float":
        ok = isinstance(value, (int, float))
    else:
        ok = isinstance(value, str)
    if not ok:
        raise ValueError(
            f"default {value!r} of '{spec.key}' does not match value_type={spec.value_type}"
        )
