"""Consistency checks for command trees."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from cmdgraph.core.constants import ERROR_PREVIEW_LIMIT
from cmdgraph.core.errors import TreeDefinitionError
from cmdgraph.core.params import ParameterSpec
from cmdgraph.core.tree import (
    CommandNode,
    CommandPath,
    effective_parameters,
    format_path,
    iter_commands,
)


@dataclass(slots=True)
class ValidationIssue:
    """Single validation issue."""

    code: str
    path: str
    message: str


class CheckResult:
    """Validation result payload."""

    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues

    @property
    def ok(self) -> bool:
        return not self.issues


def validate_tree(root: CommandNode) -> CheckResult:
    """Run consistency checks over every command of the tree."""

    issues: list[ValidationIssue] = []
    for path, node in iter_commands(root):
        label = format_path(path)
        parameters = effective_parameters(root, path)
        # A clash is reported where it is introduced, not again in every descendant.
        own = {id(spec) for spec in node.parameters}

        issues.extend(_check_duplicate_keys(label, parameters, own))
        issues.extend(_check_duplicate_flags(label, parameters, own))
        issues.extend(_check_duplicate_env_keys(label, parameters, own))
        issues.extend(_check_positional_order(label, node.parameters))
        issues.extend(_check_dead_group(label, path, node))
    return CheckResult(issues)


def build_tree(root: CommandNode) -> CommandNode:
    """Validate `root` and return it, raising `TreeDefinitionError` on issues."""

    issues = validate_tree(root).issues
    if not issues:
        return root

    lines = [f"invalid command tree ({len(issues)} issue(s)):"]
    for issue in issues[:ERROR_PREVIEW_LIMIT]:
        lines.append(f"- {issue.code} at {issue.path}: {issue.message}")
    if len(issues) > ERROR_PREVIEW_LIMIT:
        lines.append(f"- ... and {len(issues) - ERROR_PREVIEW_LIMIT} more")
    raise TreeDefinitionError("\n".join(lines))


def _check_duplicate_keys(
    label: str,
    parameters: tuple[ParameterSpec, ...],
    own: set[int],
) -> list[ValidationIssue]:
    groups = _group(parameters, lambda spec: [spec.key])
    return [
        ValidationIssue(
            code="duplicate-parameter",
            path=label,
            message=f"parameter key '{key}' is declared more than once",
        )
        for key, specs in groups.items()
        if _is_new_clash(specs, own)
    ]


def _check_duplicate_flags(
    label: str,
    parameters: tuple[ParameterSpec, ...],
    own: set[int],
) -> list[ValidationIssue]:
    def flags(spec: ParameterSpec) -> list[str]:
        if spec.positional:
            return []
        return [spec.option] if spec.short is None else [spec.option, spec.short]

    groups = _group(parameters, flags)
    return [
        ValidationIssue(
            code="duplicate-flag",
            path=label,
            message=(
                f"option '{flag}' is bound to more than one parameter "
                f"({', '.join(spec.key for spec in specs)})"
            ),
        )
        for flag, specs in groups.items()
        if _is_new_clash(specs, own)
    ]


def _check_duplicate_env_keys(
    label: str,
    parameters: tuple[ParameterSpec, ...],
    own: set[int],
) -> list[ValidationIssue]:
    groups = _group(
        parameters,
        lambda spec: [] if spec.env_key is None else [spec.env_key],
    )
    return [
        ValidationIssue(
            code="duplicate-env-key",
            path=label,
            message=(
                f"environment variable {env_key} is shared by parameters "
                f"{', '.join(spec.key for spec in specs)} (env keys must be unique per command)"
            ),
        )
        for env_key, specs in groups.items()
        if _is_new_clash(specs, own)
    ]


def _check_positional_order(
    label: str,
    parameters: tuple[ParameterSpec, ...],
) -> list[ValidationIssue]:
    positionals = [spec for spec in parameters if spec.positional]
    issues: list[ValidationIssue] = []
    for spec in positionals[:-1]:
        if spec.kind != "multi":
            continue
        issues.append(
            ValidationIssue(
                code="positional-after-multi",
                path=label,
                message=(
                    f"multi-value positional '{spec.key}' must be the last positional "
                    "(it consumes all remaining arguments)"
                ),
            )
        )
    return issues


def _check_dead_group(
    label: str,
    path: CommandPath,
    node: CommandNode,
) -> list[ValidationIssue]:
    if not node.is_leaf or node.invokable:
        return []
    kind = "root command" if not path else "command"
    return [
        ValidationIssue(
            code="dead-group",
            path=label,
            message=f"{kind} '{node.name}' has neither subcommands nor a handler",
        )
    ]


def _group(
    parameters: tuple[ParameterSpec, ...],
    names: Callable[[ParameterSpec], list[str]],
) -> dict[str, list[ParameterSpec]]:
    groups: dict[str, list[ParameterSpec]] = {}
    for spec in parameters:
        for name in names(spec):
            groups.setdefault(name, []).append(spec)
    return groups


def _is_new_clash(specs: list[ParameterSpec], own: set[int]) -> bool:
    return len(specs) > 1 and any(id(spec) in own for spec in specs)
