"""Environment snapshots: the only place that reads `os.environ`."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from cmdgraph.core.errors import CommandFailed, ErrorRecord
from cmdgraph.core.normalize import validate_env_key


def capture_environment(
    source: Mapping[str, str] | None = None,
    *,
    overrides: Iterable[str] = (),
) -> Mapping[str, str]:
    """Immutable copy of `source` (default: process env) with `KEY=VALUE` overrides."""

    snapshot = dict(os.environ if source is None else source)
    for index, assignment in enumerate(overrides, start=1):
        key, value = parse_assignment(assignment, index=index)
        snapshot[key] = value
    return MappingProxyType(snapshot)


def parse_assignment(assignment: str, *, index: int = 1) -> tuple[str, str]:
    key, separator, value = assignment.partition("=")
    try:
        if not separator:
            raise ValueError("expected KEY=VALUE")
        clean_key = validate_env_key(key, field_name="key")
    except ValueError as exc:
        raise CommandFailed(
            ErrorRecord(
                kind="invalid-input",
                message=f"invalid environment override '{assignment}'",
                context=(f"--set-env[{index}]: {exc}",),
            )
        ) from exc
    return clean_key, value
