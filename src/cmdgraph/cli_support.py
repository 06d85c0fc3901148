"""Shared CLI utilities."""

from __future__ import annotations

import json
from contextlib import AbstractContextManager
from types import TracebackType
from typing import Literal, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from cmdgraph.core.errors import (
    USAGE_KINDS,
    CommandFailed,
    ErrorRecord,
    chain,
    exit_code_for,
    render,
)


def handle_error(console: Console, exc: Exception) -> NoReturn:
    """Render user-visible CLI error and exit non-zero."""

    # Commands with --json render CommandFailed themselves; the guard only prints text.
    if isinstance(exc, CommandFailed):
        render_failure(console, exc.record, json_output=False)
    console.print(f"[red]error:[/red] {escape(str(exc))}", soft_wrap=True)
    console.print("[dim]hint:[/dim] run with `--help` for command usage.")
    raise typer.Exit(code=1)


def render_failure(console: Console, record: ErrorRecord, *, json_output: bool) -> NoReturn:
    """Print a failed outcome and exit with its exit-code band."""

    code = exit_code_for(record.kind)
    if json_output:
        typer.echo(dump_json({"ok": False, "exit_code": code, "errors": chain_payload(record)}))
        raise typer.Exit(code=code)

    console.print(render(record), markup=False, highlight=False, soft_wrap=True)
    if record.kind in USAGE_KINDS:
        console.print(
            "[dim]hint:[/dim] run `cmdgraph tree` to list commands and parameters.",
            soft_wrap=True,
        )
    raise typer.Exit(code=code)


def chain_payload(record: ErrorRecord) -> list[dict[str, object]]:
    return [
        {"kind": level.kind, "message": level.message, "context": list(level.context)}
        for level in chain(record)
    ]


def dump_json(payload: object) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2, default=str)


class CliGuard(AbstractContextManager[None]):
    """Context manager for consistent command error handling."""

    def __init__(self, *, console: Console) -> None:
        self.console = console

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        del exc_type
        del traceback
        if exc is None:
            return False
        if isinstance(exc, (typer.Exit, KeyboardInterrupt)):
            return False
        if not isinstance(exc, Exception):
            return False
        handle_error(self.console, exc)
