"""Split a command's remaining tokens into explicit values per parameter key."""

from __future__ import annotations

from collections.abc import Sequence

from cmdgraph.core.constants import END_OF_OPTIONS, OPTION_PREFIX
from cmdgraph.core.errors import ErrorRecord
from cmdgraph.core.normalize import is_option_token
from cmdgraph.core.outcome import Failure, Result, Success
from cmdgraph.core.params import ParameterSpec

type BoundTokens = dict[str, tuple[str, ...]]


def bind_tokens(
    parameters: Sequence[ParameterSpec],
    tokens: Sequence[str],
) -> Result[BoundTokens]:
    """Bind `--long value`, `--long=value`, `-s value`, flags and positionals."""

    by_flag: dict[str, ParameterSpec] = {}
    for spec in parameters:
        if spec.positional:
            continue
        by_flag[spec.option] = spec
        if spec.short is not None:
            by_flag[spec.short] = spec

    collected: dict[str, list[str]] = {}
    loose: list[str] = []
    options_done = False
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1

        if options_done or not is_option_token(token):
            if not options_done and token == END_OF_OPTIONS:
                options_done = True
                continue
            loose.append(token)
            continue

        if token.startswith(OPTION_PREFIX):
            name, separator, inline_value = token.partition("=")
            has_inline = separator == "="
        else:
            name, has_inline, inline_value = token, False, ""

        spec = by_flag.get(name)
        if spec is None:
            return Failure(_unknown_option(name, parameters))

        if spec.kind == "flag":
            if has_inline:
                return Failure(_invalid(f"option '{name}' does not take a value"))
            value = name
        elif has_inline:
            value = inline_value
        else:
            if index >= len(tokens) or _starts_option(tokens[index]):
                return Failure(_invalid(f"option '{name}' expects a value"))
            value = tokens[index]
            index += 1

        values = collected.setdefault(spec.key, [])
        if values and spec.kind != "multi":
            return Failure(
                _invalid(
                    f"option '{spec.option}' was given more than once",
                    context=("only multi-value options may repeat",),
                )
            )
        values.append(value)

    leftover = _bind_positionals(parameters, loose, collected)
    if leftover:
        positional_count = sum(1 for spec in parameters if spec.positional)
        hint = (
            f"command takes at most {positional_count} positional argument(s)"
            if positional_count
            else "command takes no positional arguments"
        )
        return Failure(_invalid(f"unexpected argument '{leftover[0]}'", context=(hint,)))

    return Success({key: tuple(values) for key, values in collected.items()})


def _bind_positionals(
    parameters: Sequence[ParameterSpec],
    loose: list[str],
    collected: dict[str, list[str]],
) -> list[str]:
    cursor = 0
    for spec in parameters:
        if not spec.positional or cursor >= len(loose):
            continue
        if spec.kind == "multi":
            collected[spec.key] = loose[cursor:]
            cursor = len(loose)
        else:
            collected[spec.key] = [loose[cursor]]
            cursor += 1
    return loose[cursor:]


def _starts_option(token: str) -> bool:
    return token == END_OF_OPTIONS or is_option_token(token)


def _unknown_option(name: str, parameters: Sequence[ParameterSpec]) -> ErrorRecord:
    options = [spec.option for spec in parameters if not spec.positional]
    hint = f"valid options: {', '.join(options)}" if options else "command takes no options"
    return _invalid(f"unknown option '{name}'", context=(hint,))


def _invalid(message: str, *, context: tuple[str, ...] = ()) -> ErrorRecord:
    return ErrorRecord(kind="invalid-input", message=message, context=context)
