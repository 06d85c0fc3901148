"""Error taxonomy: immutable error records with causal chains."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, replace
from typing import Literal, cast

ErrorKind = Literal[
    "invalid-input",
    "missing-required",
    "validation-failed",
    "unknown-command",
    "source-failure",
]

USAGE_KINDS: frozenset[ErrorKind] = frozenset(
    {"invalid-input", "missing-required", "validation-failed", "unknown-command"}
)


@dataclass(frozen=True, slots=True)
class ErrorRecord:
    """Single level of an error chain."""

    kind: ErrorKind
    message: str
    context: tuple[str, ...] = ()
    cause: ErrorRecord | None = None


def annotate(record: ErrorRecord, note: str) -> ErrorRecord:
    """Return a copy of `record` with `note` appended to its context."""

    return replace(record, context=(*record.context, note))


def wrap(
    cause: ErrorRecord,
    *,
    kind: ErrorKind,
    message: str,
    note: str | None = None,
) -> ErrorRecord:
    """Create an outer record that owns `cause`."""

    context = (note,) if note is not None else ()
    return ErrorRecord(kind=kind, message=message, context=context, cause=cause)


def from_exception(exc: BaseException) -> ErrorRecord:
    """Convert an exception (and its `__cause__`/`__context__` chain) to records."""

    levels: list[BaseException] = []
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        levels.append(current)
        if isinstance(current, CommandFailed):
            break
        current = current.__cause__ or (
            None if current.__suppress_context__ else current.__context__
        )

    record: ErrorRecord | None = None
    for level in reversed(levels):
        if isinstance(level, CommandFailed):
            record = level.record
            continue
        record = ErrorRecord(
            kind="source-failure",
            message=_describe_exception(level),
            cause=record,
        )
    return cast(ErrorRecord, record)


def chain(record: ErrorRecord) -> Iterator[ErrorRecord]:
    """Yield chain levels outer to inner."""

    current: ErrorRecord | None = record
    while current is not None:
        yield current
        current = current.cause


def render(record: ErrorRecord) -> str:
    """Canonical text form: one line per chain level, outer to inner."""

    lines: list[str] = []
    for depth, level in enumerate(chain(record)):
        line = f"{level.kind}: {level.message}"
        if level.context:
            line += f" [{'; '.join(level.context)}]"
        lines.append(line if depth == 0 else f"caused by: {line}")
    return "\n".join(lines)


def exit_code_for(kind: ErrorKind) -> int:
    """Exit-code band: 2 for usage errors, 1 for execution failures."""

    return 2 if kind in USAGE_KINDS else 1


def _describe_exception(exc: BaseException) -> str:
    text = str(exc).strip()
    name = type(exc).__name__
    return f"{name}: {text}" if text else name


class CmdGraphError(Exception):
    """Base CLI error."""


class TreeDefinitionError(CmdGraphError):
    """Command tree definition is inconsistent or cannot be loaded."""


class CommandFailed(CmdGraphError):
    """Raised with a structured record attached."""

    def __init__(self, record: ErrorRecord) -> None:
        super().__init__(render(record))
        self.record = record
