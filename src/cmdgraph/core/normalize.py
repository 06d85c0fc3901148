"""Shared normalization helpers for parameter specs and raw values."""

from __future__ import annotations

import re
from collections.abc import Sequence

from cmdgraph.core.constants import (
    ENV_LIST_SEPARATOR,
    FALSE_TOKENS,
    OPTION_PREFIX,
    SHORT_PREFIX,
    TRUE_TOKENS,
)

_KEY_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")
_ENV_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_LONG_FLAG_RE = re.compile(r"^--[A-Za-z0-9][A-Za-z0-9-]*$")
_SHORT_FLAG_RE = re.compile(r"^-[A-Za-z0-9]$")


def normalize_required_str(value: str, *, field_name: str) -> str:
    """Strip and require non-empty string."""

    cleaned = value.strip()
    if not cleaned:
        raise ValueError(f"{_field_label(field_name)} must not be empty")
    return cleaned


def normalize_optional_str(
    value: str | None,
    *,
    field_name: str,
    empty_is_none: bool = False,
) -> str | None:
    """Normalize optional string with configurable empty handling."""

    if value is None:
        return None
    cleaned = value.strip()
    if cleaned:
        return cleaned
    if empty_is_none:
        return None
    raise ValueError(f"{_field_label(field_name)} must not be empty")


def normalize_unique_list(values: Sequence[str], *, field_name: str) -> list[str]:
    """Normalize string list, reject empties and duplicates."""

    cleaned: list[str] = []
    seen: set[str] = set()
    for item in values:
        normalized = normalize_required_str(item, field_name=field_name)
        if normalized in seen:
            raise ValueError(f"{_field_label(field_name)} has duplicates ({normalized})")
        seen.add(normalized)
        cleaned.append(normalized)
    if not cleaned:
        raise ValueError(f"{_field_label(field_name)} must not be empty")
    return cleaned


def validate_key(value: str, *, field_name: str) -> str:
    """Parameter keys: letters, digits, `-` and `_`, starting with a letter."""

    key = normalize_required_str(value, field_name=field_name)
    if not _KEY_RE.fullmatch(key):
        raise ValueError(
            f"{_field_label(field_name)} '{key}' is invalid (use letters, digits, -, _)"
        )
    return key


def validate_env_key(value: str, *, field_name: str) -> str:
    env_key = normalize_required_str(value, field_name=field_name)
    if not _ENV_KEY_RE.fullmatch(env_key):
        raise ValueError(
            f"{_field_label(field_name)} '{env_key}' is not a valid environment variable name"
        )
    return env_key


def validate_long_flag(value: str, *, field_name: str) -> str:
    flag = normalize_required_str(value, field_name=field_name)
    if not _LONG_FLAG_RE.fullmatch(flag):
        raise ValueError(f"{_field_label(field_name)} '{flag}' must look like --name")
    return flag


def validate_short_flag(value: str, *, field_name: str) -> str:
    flag = normalize_required_str(value, field_name=field_name)
    if not _SHORT_FLAG_RE.fullmatch(flag):
        raise ValueError(f"{_field_label(field_name)} '{flag}' must look like -x")
    return flag


def default_long_flag(key: str) -> str:
    """`dry_run` -> `--dry-run`."""

    return OPTION_PREFIX + key.replace("_", "-").lower()


def is_option_token(token: str) -> bool:
    """True for `--name`, `--name=value` and `-x`; false for `-`, `--` and `-5`."""

    if token.startswith(OPTION_PREFIX):
        return len(token) > len(OPTION_PREFIX)
    if token.startswith(SHORT_PREFIX) and len(token) > 1:
        return token[1].isalpha()
    return False


def parse_bool_token(value: str) -> bool:
    """Parse an environment-style boolean."""

    normalized = value.strip().lower()
    if normalized in TRUE_TOKENS:
        return True
    if normalized in FALSE_TOKENS:
        return False
    expected = "|".join(sorted(TRUE_TOKENS | FALSE_TOKENS))
    raise ValueError(f"expected a boolean ({expected})")


def split_env_list(raw: str) -> list[str]:
    """Split comma-separated env value, dropping empty items."""

    items: list[str] = []
    for candidate in raw.split(ENV_LIST_SEPARATOR):
        item = candidate.strip()
        if item:
            items.append(item)
    return items


def _field_label(field_name: str) -> str:
    return field_name.replace("_", "-")
