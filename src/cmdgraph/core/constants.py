"""Core constants."""

from __future__ import annotations

OPTION_PREFIX = "--"
SHORT_PREFIX = "-"
END_OF_OPTIONS = "--"

TRUE_TOKENS: frozenset[str] = frozenset({"1", "true", "yes", "on"})
FALSE_TOKENS: frozenset[str] = frozenset({"0", "false", "no", "off"})

# Multi-value parameters read from the environment use comma-separated items.
ENV_LIST_SEPARATOR = ","

ERROR_PREVIEW_LIMIT = 8
