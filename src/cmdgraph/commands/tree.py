"""`tree` command registration."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from cmdgraph.cli_options import tree_option
from cmdgraph.cli_support import CliGuard
from cmdgraph.core.params import ParameterSpec
from cmdgraph.core.tree import CommandNode
from cmdgraph.io.tree_io import load_tree


def register(app: typer.Typer, *, console: Console, guard: CliGuard) -> None:
    """Register `tree` command."""

    @app.command("tree")
    def tree_cmd(tree_path: Path = tree_option) -> None:
        """Print the command outline with parameters."""

        with guard:
            root = load_tree(tree_path)
            outline = Tree(_node_label(root))
            _add_children(outline, root)
            console.print(outline)


def _add_children(branch: Tree, node: CommandNode) -> None:
    for spec in node.parameters:
        branch.add(_parameter_label(spec))
    for child in node.children.values():
        _add_children(branch.add(_node_label(child)), child)


def _node_label(node: CommandNode) -> str:
    label = f"[bold]{escape(node.name)}[/bold]"
    if node.help:
        label += f" [dim]- {escape(node.help)}[/dim]"
    return label


def _parameter_label(spec: ParameterSpec) -> str:
    parts = [escape(spec.display_name)]
    if spec.short is not None:
        parts[0] += f", {spec.short}"
    details = [spec.kind]
    if spec.choices:
        details.append("{" + "|".join(spec.choices) + "}")
    if spec.required:
        details.append("required")
    if spec.default is not None:
        details.append(f"default={spec.default}")
    if spec.env_key is not None:
        details.append(f"env={spec.env_key}")
    if spec.is_global:
        details.append("global")
    parts.append(escape(f"({', '.join(details)})"))
    if spec.help:
        parts.append(f"[dim]{escape(spec.help)}[/dim]")
    return " ".join(parts)
