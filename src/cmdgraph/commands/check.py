"""`check` command registration."""

from __future__ import annotations

from collections import Counter
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from cmdgraph.cli_options import json_option, tree_option
from cmdgraph.cli_support import CliGuard, dump_json
from cmdgraph.core.validators import ValidationIssue, validate_tree
from cmdgraph.io.tree_io import build_command, load_tree_definition


def register(app: typer.Typer, *, console: Console, guard: CliGuard) -> None:
    """Register `check` command."""

    @app.command("check")
    def check(
        tree_path: Path = tree_option,
        json_output: bool = json_option,
    ) -> None:
        """Load + validate a command tree file."""

        with guard:
            definition = load_tree_definition(tree_path)
            issues = validate_tree(build_command(definition)).issues
            ok = not issues

            if json_output:
                payload = {
                    "ok": ok,
                    "summary": {
                        "total": len(issues),
                        "by_code": _issues_summary(issues),
                    },
                    "issues": [
                        {
                            "code": issue.code,
                            "path": issue.path,
                            "message": issue.message,
                        }
                        for issue in issues
                    ],
                }
                typer.echo(dump_json(payload))
                if not ok:
                    raise typer.Exit(code=1)
                return

            if ok:
                console.print("check ok: 0 issues found")
                return

            table = Table(title=f"Tree issues ({len(issues)})")
            table.add_column("Code", overflow="fold")
            table.add_column("Command", overflow="fold")
            table.add_column("Message", overflow="fold")
            for issue in issues:
                table.add_row(issue.code, issue.path, issue.message)
            console.print(table)
            raise typer.Exit(code=1)


def _issues_summary(issues: list[ValidationIssue]) -> dict[str, int]:
    counter = Counter(issue.code for issue in issues)
    return dict(sorted(counter.items()))
