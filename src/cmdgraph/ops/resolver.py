"""Merge explicit tokens, environment and defaults into resolved values."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import cast

from cmdgraph.core.errors import ErrorRecord, from_exception, wrap
from cmdgraph.core.normalize import parse_bool_token, split_env_list
from cmdgraph.core.outcome import Failure, Result, Success
from cmdgraph.core.params import (
    ParameterSpec,
    ParamValue,
    ResolvedValue,
    ScalarValue,
    ValueSource,
)

type Environment = Mapping[str, str]
type ResolvedParameters = Mapping[str, ResolvedValue]


def resolve_parameter(
    spec: ParameterSpec,
    explicit_tokens: Sequence[str],
    environment: Environment,
) -> Result[ResolvedValue]:
    """Resolve one parameter: explicit > environment > default."""

    source: ValueSource
    if explicit_tokens:
        source, origin = "explicit-flag", spec.display_name
        found = _from_explicit(spec, tuple(explicit_tokens))
    elif (raw := _environment_value(spec, environment)) is not None:
        source, origin = "environment", cast(str, spec.env_key)
        found = _from_environment(spec, raw)
    elif spec.default is not None:
        source, origin = "default", "default"
        found = Success(spec.default)
    elif spec.required:
        return Failure(_missing(spec))
    else:
        return Success(
            ResolvedValue(key=spec.key, value=_empty_value(spec), source="default", origin="default")
        )

    if isinstance(found, Failure):
        return found
    return _check_value(spec, found.payload, source=source, origin=origin)


def resolve_parameters(
    parameters: Sequence[ParameterSpec],
    bound: Mapping[str, Sequence[str]],
    environment: Environment,
) -> Result[ResolvedParameters]:
    """Resolve in declaration order; the first failure wins."""

    resolved: dict[str, ResolvedValue] = {}
    for spec in parameters:
        result = resolve_parameter(spec, bound.get(spec.key, ()), environment)
        if isinstance(result, Failure):
            return result
        resolved[spec.key] = result.payload
    return Success(MappingProxyType(resolved))


def _environment_value(spec: ParameterSpec, environment: Environment) -> str | None:
    if spec.env_key is None:
        return None
    raw = environment.get(spec.env_key)
    if raw is None or not raw.strip():
        return None
    if spec.kind == "multi" and not split_env_list(raw):
        return None
    return raw.strip()


def _from_explicit(spec: ParameterSpec, tokens: tuple[str, ...]) -> Result[ParamValue]:
    if spec.kind == "flag":
        return Success(True)
    if spec.kind == "choice":
        return Success(tokens[-1])
    if spec.kind == "multi":
        return _convert_many(spec, tokens, env_note=None)
    return _convert_one(spec, tokens[-1], env_note=None)


def _from_environment(spec: ParameterSpec, raw: str) -> Result[ParamValue]:
    env_note = f"value read from environment variable {spec.env_key}"
    if spec.kind == "flag":
        try:
            return Success(parse_bool_token(raw))
        except ValueError as exc:
            return Failure(_rejected(spec, raw, str(exc), env_note=env_note))
    if spec.kind == "choice":
        return Success(raw)
    if spec.kind == "multi":
        return _convert_many(spec, tuple(split_env_list(raw)), env_note=env_note)
    return _convert_one(spec, raw, env_note=env_note)


def _convert_many(
    spec: ParameterSpec,
    tokens: tuple[str, ...],
    *,
    env_note: str | None,
) -> Result[ParamValue]:
    values: list[ScalarValue] = []
    for token in tokens:
        converted = _convert_one(spec, token, env_note=env_note)
        if isinstance(converted, Failure):
            return converted
        values.append(cast(ScalarValue, converted.payload))
    return Success(tuple(values))


def _convert_one(spec: ParameterSpec, raw: str, *, env_note: str | None) -> Result[ParamValue]:
    try:
        if spec.value_type == "int":
            return Success(int(raw.strip()))
        if spec.value_type == "float":
            return Success(float(raw.strip()))
    except ValueError:
        expected = "an integer" if spec.value_type == "int" else "a number"
        return Failure(_rejected(spec, raw, f"expected {expected}", env_note=env_note))
    return Success(raw)


def _check_value(
    spec: ParameterSpec,
    value: ParamValue,
    *,
    source: ValueSource,
    origin: str,
) -> Result[ResolvedValue]:
    env_note = f"value read from environment variable {spec.env_key}" if source == "environment" else None

    if spec.kind == "choice" and value not in (spec.choices or ()):
        choices = ", ".join(spec.choices or ())
        return Failure(_rejected(spec, value, f"valid choices: {choices}", env_note=env_note))

    if spec.validator is not None:
        try:
            value = spec.validator(value)
        except ValueError as exc:
            return Failure(_rejected(spec, value, str(exc), env_note=env_note))
        except Exception as exc:
            return Failure(
                wrap(
                    from_exception(exc),
                    kind="source-failure",
                    message=f"validator for '{spec.display_name}' failed",
                    note=env_note,
                )
            )

    return Success(ResolvedValue(key=spec.key, value=value, source=source, origin=origin))


def _empty_value(spec: ParameterSpec) -> ParamValue:
    if spec.kind == "flag":
        return False
    if spec.kind == "multi":
        return ()
    return None


def _missing(spec: ParameterSpec) -> ErrorRecord:
    noun = "argument" if spec.positional else "option"
    message = f"missing required {noun} '{spec.display_name}'"
    if spec.env_key is not None:
        message += f" (or set environment variable {spec.env_key})"
    return ErrorRecord(kind="missing-required", message=message)


def _rejected(
    spec: ParameterSpec,
    value: ParamValue,
    reason: str,
    *,
    env_note: str | None,
) -> ErrorRecord:
    context = (env_note, reason) if env_note is not None else (reason,)
    return ErrorRecord(
        kind="validation-failed",
        message=f"invalid value {_show(value)} for '{spec.display_name}'",
        context=context,
    )


def _show(value: ParamValue) -> str:
    if isinstance(value, tuple):
        return "[" + ", ".join(str(item) for item in value) + "]"
    return f"'{value}'"
