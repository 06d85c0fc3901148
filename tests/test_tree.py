from __future__ import annotations

import pytest

from cmdgraph.core.errors import TreeDefinitionError
from cmdgraph.core.params import param
from cmdgraph.core.tree import CommandNode, command, effective_parameters, iter_commands
from cmdgraph.core.validators import build_tree, validate_tree


def _noop(values: object) -> None:
    return None


def _codes(root: CommandNode) -> list[tuple[str, str]]:
    return [(issue.code, issue.path) for issue in validate_tree(root).issues]


def test_sibling_names_must_be_unique() -> None:
    with pytest.raises(TreeDefinitionError, match="duplicate command 'start' under 'app'"):
        command("app", children=[command("start", handler=_noop), command("start", handler=_noop)])


@pytest.mark.parametrize("name", ["", "   ", "two words"])
def test_command_names_are_single_tokens(name: str) -> None:
    with pytest.raises(TreeDefinitionError):
        command(name, handler=_noop)


def test_children_are_read_only() -> None:
    root = command("app", children=[command("start", handler=_noop)])

    with pytest.raises(TypeError):
        root.children["stop"] = command("stop", handler=_noop)  # type: ignore[index]


def test_iter_commands_is_depth_first(server: CommandNode) -> None:
    assert [path for path, _ in iter_commands(server)] == [
        (),
        ("start",),
        ("stop",),
        ("deploy",),
        ("greet",),
    ]


def test_effective_parameters_put_inherited_globals_first(server: CommandNode) -> None:
    keys = [spec.key for spec in effective_parameters(server, ("start",))]

    assert keys == ["verbose", "port", "config"]


def test_non_global_parameters_are_not_inherited() -> None:
    root = command(
        "app",
        parameters=[param("token")],
        children=[command("start", handler=_noop)],
    )

    assert effective_parameters(root, ("start",)) == ()


@pytest.mark.parametrize(
    ("fields", "fragment"),
    [
        ({"required": True, "default": "x"}, "must not declare a default"),
        ({"kind": "choice"}, "must declare choices"),
        ({"choices": ["a"]}, "choices are only allowed for kind=choice"),
        ({"kind": "flag", "required": True}, "cannot be required"),
        ({"positional": True, "short": "-n"}, "cannot declare long/short flags"),
        ({"positional": True, "is_global": True}, "cannot be global"),
        ({"value_type": "int", "default": "eighty"}, "does not match value_type=int"),
        ({"kind": "choice", "choices": ["a", "a"]}, "has duplicates (a)"),
        ({"kind": "choice", "choices": ["a", "b"], "default": "c"}, "is not one of: a, b"),
        ({"short": "-long"}, "must look like -x"),
        ({"env_key": "APP-ENV"}, "is not a valid environment variable name"),
    ],
)
def test_parameter_spec_rejects_inconsistent_fields(fields: dict[str, object], fragment: str) -> None:
    with pytest.raises(TreeDefinitionError) as exc_info:
        param("name", **fields)

    message = str(exc_info.value)
    assert message.startswith("invalid parameter 'name':")
    assert fragment in message


def test_parameter_defaults() -> None:
    spec = param("dry_run", kind="flag")

    assert spec.option == "--dry-run"
    assert spec.display_name == "--dry-run"
    assert spec.takes_value is False
    assert param("names", kind="multi", positional=True).display_name == "<names>"


def test_valid_tree_has_no_issues(server: CommandNode) -> None:
    assert validate_tree(server).ok


def test_duplicate_env_key_is_rejected() -> None:
    root = command(
        "app",
        children=[
            command(
                "start",
                parameters=[
                    param("config", env_key="APP_CONFIG"),
                    param("settings", env_key="APP_CONFIG"),
                ],
                handler=_noop,
            )
        ],
    )

    issues = validate_tree(root).issues

    assert [(issue.code, issue.path) for issue in issues] == [("duplicate-env-key", "start")]
    assert "APP_CONFIG is shared by parameters config, settings" in issues[0].message


def test_env_key_clash_with_inherited_global() -> None:
    root = command(
        "app",
        parameters=[param("verbose", kind="flag", env_key="APP_DEBUG", is_global=True)],
        children=[
            command("start", parameters=[param("debug", kind="flag", env_key="APP_DEBUG")], handler=_noop)
        ],
    )

    assert _codes(root) == [("duplicate-env-key", "start")]


def test_duplicate_short_flag() -> None:
    root = command(
        "app",
        children=[
            command(
                "start",
                parameters=[param("port", short="-p"), param("profile", short="-p")],
                handler=_noop,
            )
        ],
    )

    assert _codes(root) == [("duplicate-flag", "start")]


def test_global_redeclared_is_reported_once_where_introduced() -> None:
    root = command(
        "app",
        parameters=[param("verbose", kind="flag", is_global=True)],
        children=[
            command(
                "db",
                parameters=[param("verbose", kind="flag", is_global=True)],
                children=[command("migrate", handler=_noop)],
            )
        ],
    )

    assert _codes(root) == [("duplicate-parameter", "db"), ("duplicate-flag", "db")]


def test_multi_positional_must_be_last() -> None:
    root = command(
        "app",
        children=[
            command(
                "copy",
                parameters=[
                    param("sources", kind="multi", positional=True),
                    param("target", positional=True),
                ],
                handler=_noop,
            )
        ],
    )

    assert _codes(root) == [("positional-after-multi", "copy")]


def test_dead_group_is_reported() -> None:
    root = command("app", children=[command("empty"), command("start", handler=_noop)])

    assert _codes(root) == [("dead-group", "empty")]


def test_build_tree_raises_with_issue_list() -> None:
    root = command("app", children=[command("empty")])

    with pytest.raises(TreeDefinitionError) as exc_info:
        build_tree(root)

    assert str(exc_info.value) == (
        "invalid command tree (1 issue(s)):\n"
        "- dead-group at empty: command 'empty' has neither subcommands nor a handler"
    )


def test_build_tree_returns_valid_root(server: CommandNode) -> None:
    assert build_tree(server) is server
