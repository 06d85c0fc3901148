"""Result values returned across component boundaries."""

from __future__ import annotations

from dataclasses import dataclass

from cmdgraph.core.errors import ErrorRecord


@dataclass(frozen=True, slots=True)
class Success[T]:
    """Successful step carrying its payload."""

    payload: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Failure:
    """Failed step carrying a classified error."""

    error: ErrorRecord

    @property
    def ok(self) -> bool:
        return False


type Result[T] = Success[T] | Failure
type Outcome = Success[object] | Failure
