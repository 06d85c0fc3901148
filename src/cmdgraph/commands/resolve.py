"""`resolve` command registration."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from cmdgraph.cli_options import (
    TOKEN_COMMAND_SETTINGS,
    json_option,
    set_env_option,
    tokens_argument,
    tree_option,
)
from cmdgraph.cli_support import CliGuard, dump_json, render_failure
from cmdgraph.core.errors import CommandFailed
from cmdgraph.core.outcome import Failure
from cmdgraph.io.environment import capture_environment
from cmdgraph.io.tree_io import load_tree
from cmdgraph.ops.coordinator import prepare


def register(
    app: typer.Typer,
    *,
    console: Console,
    err_console: Console,
    guard: CliGuard,
) -> None:
    """Register `resolve` command."""

    @app.command("resolve", context_settings=TOKEN_COMMAND_SETTINGS)
    def resolve_cmd(
        tree_path: Path = tree_option,
        json_output: bool = json_option,
        set_env: list[str] | None = set_env_option,
        tokens: list[str] | None = tokens_argument,
    ) -> None:
        """Show how a command line resolves, without executing it."""

        with guard:
            root = load_tree(tree_path)
            try:
                environment = capture_environment(overrides=set_env or [])
            except CommandFailed as exc:
                render_failure(err_console, exc.record, json_output=json_output)
            result = prepare(root, tokens or [], environment)

        if isinstance(result, Failure):
            render_failure(err_console, result.error, json_output=json_output)

        dispatch, values = result.payload
        command_label = " ".join(dispatch.path) or root.name
        if json_output:
            payload = {
                "command": list(dispatch.path),
                "parameters": [
                    {
                        "key": resolved.key,
                        "value": resolved.value,
                        "source": resolved.source,
                        "origin": resolved.origin,
                    }
                    for resolved in values.values()
                ],
            }
            typer.echo(dump_json(payload))
            return

        table = Table(title=f"Resolve: {command_label}")
        table.add_column("Key", overflow="fold")
        table.add_column("Value", overflow="fold")
        table.add_column("Source", overflow="fold")
        table.add_column("Origin", overflow="fold")
        for resolved in values.values():
            table.add_row(resolved.key, repr(resolved.value), resolved.source, resolved.origin)
        console.print(table)
