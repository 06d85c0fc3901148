"""Immutable command tree."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from cmdgraph.core.errors import TreeDefinitionError
from cmdgraph.core.normalize import normalize_required_str
from cmdgraph.core.params import ParameterSpec, ResolvedValue

type CommandPath = tuple[str, ...]
Handler = Callable[[Mapping[str, ResolvedValue]], object]


@dataclass(frozen=True, slots=True, eq=False)
class CommandNode:
    """Named node of the command tree; read-only once built."""

    name: str
    children: Mapping[str, CommandNode] = field(
        default_factory=lambda: MappingProxyType({})
    )
    parameters: tuple[ParameterSpec, ...] = ()
    handler: Handler | None = None
    help: str = ""

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def invokable(self) -> bool:
        return self.handler is not None

    def child_names(self) -> list[str]:
        return list(self.children)


def command(
    name: str,
    *,
    parameters: Iterable[ParameterSpec] = (),
    handler: Handler | None = None,
    children: Iterable[CommandNode] = (),
    help: str = "",
) -> CommandNode:
    """Build a command node; sibling names must be unique."""

    try:
        clean_name = normalize_required_str(name, field_name="command name")
    except ValueError as exc:
        raise TreeDefinitionError(str(exc)) from exc
    if any(char.isspace() for char in clean_name):
        raise TreeDefinitionError(f"command name '{clean_name}' must not contain whitespace")

    by_name: dict[str, CommandNode] = {}
    for child in children:
        if child.name in by_name:
            raise TreeDefinitionError(
                f"duplicate command '{child.name}' under '{clean_name}' "
                "(sibling names must be unique)"
            )
        by_name[child.name] = child

    return CommandNode(
        name=clean_name,
        children=MappingProxyType(by_name),
        parameters=tuple(parameters),
        handler=handler,
        help=help.strip(),
    )


def iter_commands(
    root: CommandNode,
    path: CommandPath = (),
) -> Iterator[tuple[CommandPath, CommandNode]]:
    """Depth-first walk yielding (path-from-root, node); root has path ()."""

    yield path, root
    for name, child in root.children.items():
        yield from iter_commands(child, (*path, name))


def effective_parameters(root: CommandNode, path: CommandPath) -> tuple[ParameterSpec, ...]:
    """Own parameters of the node at `path`, preceded by ancestors' global ones."""

    inherited: list[ParameterSpec] = []
    node = root
    for name in path:
        inherited.extend(spec for spec in node.parameters if spec.is_global)
        node = node.children[name]
    return (*inherited, *node.parameters)


def format_path(path: CommandPath) -> str:
    return " ".join(path) if path else "<root>"
