"""Pydantic validation with flattened, user-facing error messages."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from cmdgraph.core.constants import ERROR_PREVIEW_LIMIT
from cmdgraph.core.errors import TreeDefinitionError


def validate_payload[TModel: BaseModel](
    model_type: type[TModel],
    payload: Mapping[str, object],
    *,
    header: str = "invalid command tree definition:",
) -> TModel:
    """Validate payload against pydantic model."""

    try:
        return model_type.model_validate(payload)
    except PydanticValidationError as exc:
        raise TreeDefinitionError(
            format_pydantic_validation_error(exc, header=header)
        ) from exc


def format_pydantic_validation_error(
    exc: PydanticValidationError,
    *,
    header: str,
) -> str:
    issues = exc.errors()
    if not issues:
        return header

    lines: list[str] = []
    for issue in issues[:ERROR_PREVIEW_LIMIT]:
        path = _format_error_location(issue.get("loc", ()))
        message = _normalize_issue_message(str(issue.get("msg", "invalid value")))
        lines.append(f"{path}: {message}" if path else message)

    if len(lines) == 1:
        return f"{header} {lines[0]}"

    output = [header, *[f"- {line}" for line in lines]]
    if len(issues) > ERROR_PREVIEW_LIMIT:
        output.append(f"- ... and {len(issues) - ERROR_PREVIEW_LIMIT} more")
    return "\n".join(output)


def _format_error_location(loc: object) -> str:
    if not isinstance(loc, tuple):
        return ""

    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
            continue
        if not isinstance(part, str) or part in {"__root__", "__all__"}:
            continue
        if path:
            path += f".{part}"
        else:
            path = part
    return path


def _normalize_issue_message(message: str) -> str:
    normalized = message.strip()
    prefixes = ("Value error, ", "Assertion failed, ")
    for prefix in prefixes:
        if normalized.startswith(prefix):
            return normalized[len(prefix) :]
    return normalized
