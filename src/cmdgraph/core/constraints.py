"""Reusable value validators.

A validator takes the resolved value and returns it (possibly normalized), or
raises `ValueError` with a message suitable for end users.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from cmdgraph.core.params import ParamValue, Validator


def min_length(limit: int) -> Validator:
    def check(value: ParamValue) -> ParamValue:
        if _length(value) < limit:
            raise ValueError(f"must be at least {limit} characters long")
        return value

    return check


def max_length(limit: int) -> Validator:
    def check(value: ParamValue) -> ParamValue:
        if _length(value) > limit:
            raise ValueError(f"must be at most {limit} characters long")
        return value

    return check


def pattern(regex: str) -> Validator:
    compiled = re.compile(regex)

    def check(value: ParamValue) -> ParamValue:
        if not isinstance(value, str) or compiled.fullmatch(value) is None:
            raise ValueError(f"must match pattern {regex}")
        return value

    return check


def at_least(bound: float) -> Validator:
    def check(value: ParamValue) -> ParamValue:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < bound:
            raise ValueError(f"must be >= {bound}")
        return value

    return check


def at_most(bound: float) -> Validator:
    def check(value: ParamValue) -> ParamValue:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value > bound:
            raise ValueError(f"must be <= {bound}")
        return value

    return check


def non_empty(value: ParamValue) -> ParamValue:
    """Reject empty strings and empty multi-value sets."""

    if value is None or (isinstance(value, (str, tuple)) and not value):
        raise ValueError("must not be empty")
    return value


def unique(value: ParamValue) -> ParamValue:
    """Reject duplicate members of a multi-value set."""

    if isinstance(value, tuple):
        seen: set[object] = set()
        for item in value:
            if item in seen:
                raise ValueError(f"has duplicates ({item})")
            seen.add(item)
    return value


def each(validator: Validator) -> Validator:
    """Apply `validator` to every member of a multi-value set."""

    def check(value: ParamValue) -> ParamValue:
        if not isinstance(value, tuple):
            return validator(value)
        checked: list[str | int | float | bool] = []
        for index, item in enumerate(value, start=1):
            try:
                normalized = validator(item)
            except ValueError as exc:
                raise ValueError(f"item {index} ({item}) {exc}") from exc
            if normalized is None or isinstance(normalized, tuple):
                raise ValueError(f"item {index} ({item}) normalized to a non-scalar value")
            checked.append(normalized)
        return tuple(checked)

    return check


def all_of(validators: Sequence[Validator]) -> Validator:
    """Run validators left to right, threading the normalized value."""

    def check(value: ParamValue) -> ParamValue:
        for validator in validators:
            value = validator(value)
        return value

    return check


def _length(value: ParamValue) -> int:
    if isinstance(value, (str, tuple)):
        return len(value)
    return len(str(value))
