"""Command graph dispatch: tokens -> leaf command + remaining tokens."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from cmdgraph.core.constants import SHORT_PREFIX
from cmdgraph.core.errors import ErrorRecord
from cmdgraph.core.outcome import Failure, Result, Success
from cmdgraph.core.tree import CommandNode, CommandPath, format_path


@dataclass(frozen=True, slots=True)
class Dispatch:
    """Resolved command and the tokens left for its parameters."""

    node: CommandNode
    path: CommandPath
    remaining: tuple[str, ...]


def resolve(root: CommandNode, tokens: Sequence[str]) -> Result[Dispatch]:
    """Walk child names left to right; exact, case-sensitive matches only."""

    captured = tuple(tokens)
    node = root
    path: list[str] = []
    index = 0
    while index < len(captured) and node.children:
        child = node.children.get(captured[index])
        if child is None:
            break
        node = child
        path.append(captured[index])
        index += 1

    next_token = captured[index] if index < len(captured) else None
    # Past the root, a bare word under a group must name one of its children.
    strays_below_group = (
        bool(path)
        and not node.is_leaf
        and next_token is not None
        and not next_token.startswith(SHORT_PREFIX)
    )
    if strays_below_group or not node.invokable:
        return Failure(_dispatch_error(node, tuple(path), next_token))
    return Success(Dispatch(node=node, path=tuple(path), remaining=captured[index:]))


def _dispatch_error(
    node: CommandNode,
    path: CommandPath,
    token: str | None,
) -> ErrorRecord:
    context: list[str] = []
    if path:
        context.append(f"matched path: {format_path(path)}")

    if node.is_leaf:
        return ErrorRecord(
            kind="unknown-command",
            message=f"command '{format_path(path)}' has no handler",
            context=tuple(context),
        )

    context.append(f"valid commands: {', '.join(node.child_names())}")
    if token is None:
        where = f" for '{format_path(path)}'" if path else ""
        message = f"missing subcommand{where}"
    else:
        message = f"unknown command '{token}'"
    return ErrorRecord(kind="unknown-command", message=message, context=tuple(context))
