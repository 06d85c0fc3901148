"""YAML loading for tree definition files."""

from __future__ import annotations

from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.error import YAMLError
from ruamel.yaml.scalarbool import ScalarBoolean

from cmdgraph.core.errors import TreeDefinitionError

type PlainNode = dict[str, PlainNode] | list[PlainNode] | str | int | float | bool | None


def build_yaml() -> YAML:
    """Round-trip YAML parser (keeps line info for diagnostics)."""

    yaml = YAML(typ="rt")
    yaml.width = 4096
    return yaml


def read_text(path: Path) -> str:
    """Read UTF-8 text file."""

    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        reason = exc.strerror or type(exc).__name__
        raise TreeDefinitionError(f"cannot read {path}: {reason}") from exc


def load_mapping(path: Path) -> CommentedMap:
    """Load a YAML file whose root must be a mapping."""

    yaml = build_yaml()
    try:
        data = yaml.load(read_text(path))
    except YAMLError as exc:
        raise TreeDefinitionError(f"yaml parse error in {path}: {exc}") from exc

    if not isinstance(data, CommentedMap):
        raise TreeDefinitionError(f"yaml root must be a mapping/object (file: {path})")
    return data


def to_plain(node: object) -> PlainNode:
    """Convert ruamel round-trip nodes into builtin containers and scalars."""

    if isinstance(node, CommentedMap):
        return {str(key): to_plain(value) for key, value in node.items()}
    if isinstance(node, (CommentedSeq, list, tuple)):
        return [to_plain(item) for item in node]
    if node is None or isinstance(node, bool):
        return node
    if isinstance(node, ScalarBoolean):
        return bool(node)
    if isinstance(node, int):
        return int(node)
    if isinstance(node, float):
        return float(node)
    if isinstance(node, str):
        return str(node)
    raise TreeDefinitionError(f"unsupported YAML value type: {type(node).__name__}")
