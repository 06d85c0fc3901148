"""Builtin handlers usable from tree definition files."""

from __future__ import annotations

from collections.abc import Mapping

from cmdgraph.core.params import ParamValue, ResolvedValue, plain_values


def echo(values: Mapping[str, ResolvedValue]) -> dict[str, ParamValue]:
    """Return the resolved values as a plain mapping."""

    return plain_values(values)


def describe(values: Mapping[str, ResolvedValue]) -> dict[str, dict[str, object]]:
    """Return each resolved value with its provenance."""

    return {
        key: {"value": resolved.value, "source": resolved.source, "origin": resolved.origin}
        for key, resolved in values.items()
    }
