"""CLI app wiring and registration."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape

from cmdgraph.cli_support import CliGuard
from cmdgraph.commands import check as check_commands
from cmdgraph.commands import resolve as resolve_commands
from cmdgraph.commands import run as run_commands
from cmdgraph.commands import tree as tree_commands
from cmdgraph.core.errors import CmdGraphError
from cmdgraph.log import configure_logging


def build_app(
    *,
    console: Console | None = None,
    err_console: Console | None = None,
) -> typer.Typer:
    """Build Typer app with subcommands."""

    resolved_console = console or Console()
    resolved_err_console = err_console or Console(stderr=True)
    guard = CliGuard(console=resolved_err_console)

    app = typer.Typer(
        help="Resolve, check and run declarative command trees.",
        no_args_is_help=True,
    )

    check_commands.register(app, console=resolved_console, guard=guard)
    tree_commands.register(app, console=resolved_console, guard=guard)
    resolve_commands.register(
        app,
        console=resolved_console,
        err_console=resolved_err_console,
        guard=guard,
    )
    run_commands.register(app, err_console=resolved_err_console, guard=guard)

    @app.callback()
    def main_callback(
        log_level: str = typer.Option(
            "WARNING",
            "--log-level",
            envvar="CMDGRAPH_LOG_LEVEL",
            help="Log level for diagnostics on stderr: DEBUG | INFO | WARNING | ERROR.",
        ),
    ) -> None:
        """Configure logging before any command runs."""

        with guard:
            configure_logging(log_level, console=resolved_err_console)

    return app


_default_err_console = Console(stderr=True)
app = build_app(err_console=_default_err_console)


def main() -> None:
    """Console entrypoint."""

    try:
        app()
    except CmdGraphError as exc:
        _default_err_console.print(f"[red]error:[/red] {escape(str(exc))}", soft_wrap=True)
        raise SystemExit(1) from exc
