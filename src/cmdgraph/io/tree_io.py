"""Load command trees from YAML definition files."""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable
from pathlib import Path
from typing import cast

from cmdgraph.core import constraints
from cmdgraph.core.errors import TreeDefinitionError
from cmdgraph.core.params import ParameterSpec, Validator
from cmdgraph.core.payloads import validate_payload
from cmdgraph.core.tree import CommandNode, Handler, command
from cmdgraph.core.tree_models import CommandDef, ParameterDef, ValidateTable, parse_tree_payload
from cmdgraph.core.validators import build_tree
from cmdgraph.io.yaml_io import PlainNode, load_mapping, to_plain

logger = logging.getLogger(__name__)


def load_tree_definition(path: Path) -> CommandDef:
    """Parse and schema-check a tree file without importing handlers."""

    payload = cast(dict[str, PlainNode], to_plain(load_mapping(path)))
    return parse_tree_payload(payload)


def load_tree(path: Path) -> CommandNode:
    """Load, build and validate a command tree."""

    definition = load_tree_definition(path)
    root = build_command(definition)
    logger.info("loaded command tree '%s' from %s", root.name, path)
    return build_tree(root)


def build_command(definition: CommandDef, *, trail: str = "") -> CommandNode:
    """Turn a validated definition into an unchecked `CommandNode` tree."""

    where = f"{trail} {definition.name}".strip()
    handler: Handler | None = None
    if definition.handler is not None:
        handler = import_reference(definition.handler, where=f"{where}: handler")

    return command(
        definition.name,
        parameters=[_build_parameter(item, where=where) for item in definition.parameters],
        handler=handler,
        children=[build_command(child, trail=where) for child in definition.commands],
        help=definition.help or "",
    )


def import_reference(reference: str, *, where: str) -> Callable[..., object]:
    """Import `package.module:attribute` and require a callable."""

    module_name, _, attribute = reference.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise TreeDefinitionError(
            f"{where}: cannot import module '{module_name}' ({exc})"
        ) from exc

    target: object = module
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise TreeDefinitionError(
                f"{where}: '{module_name}' has no attribute '{attribute}'"
            ) from exc
    if not callable(target):
        raise TreeDefinitionError(f"{where}: '{reference}' is not callable")
    return target


def _build_parameter(definition: ParameterDef, *, where: str) -> ParameterSpec:
    validators: list[Validator] = []
    if definition.validate_ is not None:
        validators.extend(_compile_validate_table(definition.validate_))
    if definition.validator is not None:
        validators.append(
            import_reference(definition.validator, where=f"{where}: {definition.key}.validator")
        )

    payload: dict[str, object] = definition.model_dump(
        exclude={"validator", "validate_", "is_global"},
        exclude_none=True,
    )
    payload["is_global"] = definition.is_global
    if validators:
        payload["validator"] = validators[0] if len(validators) == 1 else constraints.all_of(validators)
    return validate_payload(
        ParameterSpec,
        payload,
        header=f"invalid parameter '{definition.key}' of command '{where}':",
    )


def _compile_validate_table(table: ValidateTable) -> list[Validator]:
    compiled: list[Validator] = []
    if table.non_empty:
        compiled.append(constraints.non_empty)
    if table.unique:
        compiled.append(constraints.unique)

    per_item: list[Validator] = []
    if table.min_length is not None:
        per_item.append(constraints.min_length(table.min_length))
    if table.max_length is not None:
        per_item.append(constraints.max_length(table.max_length))
    if table.pattern is not None:
        per_item.append(constraints.pattern(table.pattern))
    if table.min is not None:
        per_item.append(constraints.at_least(table.min))
    if table.max is not None:
        per_item.append(constraints.at_most(table.max))
    if per_item:
        compiled.append(constraints.each(constraints.all_of(per_item)))
    return compiled
