"""`run` command registration."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

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
from cmdgraph.ops.coordinator import run


def register(app: typer.Typer, *, err_console: Console, guard: CliGuard) -> None:
    """Register `run` command."""

    @app.command("run", context_settings=TOKEN_COMMAND_SETTINGS)
    def run_cmd(
        tree_path: Path = tree_option,
        json_output: bool = json_option,
        set_env: list[str] | None = set_env_option,
        tokens: list[str] | None = tokens_argument,
    ) -> None:
        """Dispatch, resolve and execute a command line against the tree."""

        with guard:
            root = load_tree(tree_path)
            try:
                environment = capture_environment(overrides=set_env or [])
            except CommandFailed as exc:
                render_failure(err_console, exc.record, json_output=json_output)
            outcome = run(root, tokens or [], environment)

        if isinstance(outcome, Failure):
            render_failure(err_console, outcome.error, json_output=json_output)

        payload = outcome.payload
        if json_output:
            typer.echo(dump_json({"ok": True, "payload": payload}))
        elif isinstance(payload, str):
            typer.echo(payload)
        elif payload is not None:
            typer.echo(dump_json(payload))
