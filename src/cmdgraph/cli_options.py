"""Shared Typer option definitions."""

from __future__ import annotations

import typer

TOKEN_COMMAND_SETTINGS = {"ignore_unknown_options": True, "allow_interspersed_args": False}

tree_option = typer.Option(
    ...,
    "--tree",
    "-t",
    help="Path to the command tree YAML file.",
    envvar="CMDGRAPH_TREE",
    exists=True,
    readable=True,
    dir_okay=False,
)

json_option = typer.Option(
    False,
    "--json",
    help="Emit machine-readable JSON output.",
)

set_env_option = typer.Option(
    None,
    "--set-env",
    help="Override an environment variable (KEY=VALUE); repeat flag for more.",
)

tokens_argument = typer.Argument(
    None,
    help="Command line for the hosted tree; put it after `--` to pass it verbatim.",
    show_default=False,
)
