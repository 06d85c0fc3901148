from __future__ import annotations

from collections.abc import Mapping

import pytest

from cmdgraph.core.params import ResolvedValue, param, plain_values
from cmdgraph.core.tree import CommandNode, command
from cmdgraph.core.validators import build_tree


def _echo(values: Mapping[str, ResolvedValue]) -> dict[str, object]:
    return plain_values(values)


def server_tree() -> CommandNode:
    """`server {start,stop,deploy,greet}` with a global `--verbose` flag."""

    return build_tree(
        command(
            "server",
            parameters=[param("verbose", kind="flag", short="-v", env_key="SERVER_VERBOSE", is_global=True)],
            children=[
                command(
                    "start",
                    parameters=[
                        param("port", short="-p", value_type="int", default=8080, env_key="SERVER_PORT"),
                        param("config", short="-c", default="/etc/myapp/config", env_key="CONFIG_PATH"),
                    ],
                    handler=_echo,
                ),
                command("stop", handler=_echo),
                command(
                    "deploy",
                    parameters=[
                        param(
                            "env",
                            kind="choice",
                            choices=["staging", "prod"],
                            required=True,
                            env_key="APP_ENV",
                        ),
                        param("tags", kind="multi", env_key="DEPLOY_TAGS"),
                    ],
                    handler=_echo,
                ),
                command(
                    "greet",
                    parameters=[
                        param("names", kind="multi", positional=True, required=True),
                        param("uppercase", kind="flag", short="-u"),
                    ],
                    handler=_echo,
                ),
            ],
        )
    )


@pytest.fixture
def server() -> CommandNode:
    return server_tree()
