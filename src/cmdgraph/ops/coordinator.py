"""Execution coordinator: dispatch, resolve, execute, classify."""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass
from typing import Literal, cast

from cmdgraph.core.errors import ErrorRecord, annotate, from_exception, render, wrap
from cmdgraph.core.outcome import Failure, Outcome, Result, Success
from cmdgraph.core.tree import CommandNode, Handler, effective_parameters
from cmdgraph.ops.binding import bind_tokens
from cmdgraph.ops.dispatch import Dispatch, resolve
from cmdgraph.ops.resolver import Environment, ResolvedParameters, resolve_parameters

logger = logging.getLogger(__name__)

RunState = Literal["idle", "dispatching", "resolving", "executing", "done"]
_STATE_ORDER: tuple[RunState, ...] = ("idle", "dispatching", "resolving", "executing", "done")

_NESTED_LOOP = ErrorRecord(
    kind="source-failure",
    message="async handler cannot be driven from inside a running event loop",
    context=("use run_async when an event loop is already running",),
)


class CancelToken:
    """Thread-safe cancellation flag, checked between run states."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class RunStateMachine:
    """Forward-only run state tracker."""

    def __init__(self) -> None:
        self.state: RunState = "idle"
        self.history: list[RunState] = ["idle"]

    def advance(self, state: RunState) -> None:
        if _STATE_ORDER.index(state) <= _STATE_ORDER.index(self.state):
            raise RuntimeError(f"run state cannot move from {self.state} to {state}")
        logger.debug("run state %s -> %s", self.state, state)
        self.state = state
        self.history.append(state)

    def finish(self, outcome: Outcome) -> Outcome:
        self.advance("done")
        if isinstance(outcome, Failure):
            logger.debug("run failed:\n%s", render(outcome.error))
        return outcome


@dataclass(frozen=True, slots=True)
class _Prepared:
    dispatch: Dispatch
    handler: Handler
    values: ResolvedParameters
    label: str


def run(
    root: CommandNode,
    tokens: Sequence[str],
    environment: Environment,
    *,
    cancel: CancelToken | None = None,
    machine: RunStateMachine | None = None,
) -> Outcome:
    """Run one invocation synchronously; awaitable handler results are driven to completion."""

    machine = machine or RunStateMachine()
    prepared = _prepare(root, tokens, environment, cancel=cancel, machine=machine)
    if isinstance(prepared, Failure):
        return machine.finish(prepared)

    machine.advance("executing")
    try:
        result = prepared.handler(prepared.values)
        if inspect.isawaitable(result):
            if _loop_running():
                _discard(result)
                return machine.finish(Failure(_handler_failed(prepared.label, _NESTED_LOOP)))
            result = asyncio.run(_await(result))
    except Exception as exc:
        logger.debug("handler for '%s' raised %s", prepared.label, type(exc).__name__)
        return machine.finish(Failure(_handler_failed(prepared.label, from_exception(exc))))
    return machine.finish(_classify(prepared.label, result))


async def run_async(
    root: CommandNode,
    tokens: Sequence[str],
    environment: Environment,
    *,
    cancel: CancelToken | None = None,
    timeout: float | None = None,
    machine: RunStateMachine | None = None,
) -> Outcome:
    """Run one invocation on the current event loop; `timeout` bounds the whole run."""

    machine = machine or RunStateMachine()
    if timeout is None:
        return await _run_async(root, tokens, environment, cancel=cancel, machine=machine)
    try:
        async with asyncio.timeout(timeout):
            return await _run_async(root, tokens, environment, cancel=cancel, machine=machine)
    except TimeoutError:
        return machine.finish(
            Failure(
                ErrorRecord(
                    kind="source-failure",
                    message=f"run timed out after {timeout:g}s",
                    context=(f"timed out while {machine.state}",),
                )
            )
        )


async def _run_async(
    root: CommandNode,
    tokens: Sequence[str],
    environment: Environment,
    *,
    cancel: CancelToken | None,
    machine: RunStateMachine,
) -> Outcome:
    prepared = _prepare(root, tokens, environment, cancel=cancel, machine=machine)
    if isinstance(prepared, Failure):
        return machine.finish(prepared)

    machine.advance("executing")
    try:
        result = prepared.handler(prepared.values)
        if inspect.isawaitable(result):
            result = await result
    except Exception as exc:
        logger.debug("handler for '%s' raised %s", prepared.label, type(exc).__name__)
        return machine.finish(Failure(_handler_failed(prepared.label, from_exception(exc))))
    return machine.finish(_classify(prepared.label, result))


def prepare(
    root: CommandNode,
    tokens: Sequence[str],
    environment: Environment,
) -> Result[tuple[Dispatch, ResolvedParameters]]:
    """Dispatch and resolve without executing (used for dry-run inspection)."""

    prepared = _prepare(root, tokens, environment, cancel=None, machine=RunStateMachine())
    if isinstance(prepared, Failure):
        return prepared
    return Success((prepared.dispatch, prepared.values))


def _prepare(
    root: CommandNode,
    tokens: Sequence[str],
    environment: Environment,
    *,
    cancel: CancelToken | None,
    machine: RunStateMachine,
) -> _Prepared | Failure:
    if cancelled := _cancelled(cancel, "dispatching"):
        return cancelled
    machine.advance("dispatching")
    dispatched = resolve(root, tokens)
    if isinstance(dispatched, Failure):
        return dispatched
    dispatch = dispatched.payload
    label = " ".join(dispatch.path) or root.name

    if cancelled := _cancelled(cancel, "resolving"):
        return cancelled
    machine.advance("resolving")
    note = f"while resolving parameters for '{label}'"
    parameters = effective_parameters(root, dispatch.path)
    bound = bind_tokens(parameters, dispatch.remaining)
    if isinstance(bound, Failure):
        return Failure(annotate(bound.error, note))
    resolved = resolve_parameters(parameters, bound.payload, environment)
    if isinstance(resolved, Failure):
        return Failure(annotate(resolved.error, note))

    if cancelled := _cancelled(cancel, "executing"):
        return cancelled
    return _Prepared(
        dispatch=dispatch,
        handler=cast(Handler, dispatch.node.handler),
        values=resolved.payload,
        label=label,
    )


def _cancelled(cancel: CancelToken | None, next_state: RunState) -> Failure | None:
    if cancel is None or not cancel.cancelled:
        return None
    return Failure(
        ErrorRecord(
            kind="source-failure",
            message="run cancelled",
            context=(f"cancelled before {next_state}",),
        )
    )


def _classify(label: str, result: object) -> Outcome:
    if isinstance(result, Failure):
        return Failure(_handler_failed(label, result.error))
    if isinstance(result, Success):
        return result
    return Success(result)


def _handler_failed(label: str, cause: ErrorRecord) -> ErrorRecord:
    return wrap(
        cause,
        kind="source-failure",
        message=f"command '{label}' failed",
        note=f"while executing command '{label}'",
    )


async def _await[T](awaitable: Awaitable[T]) -> T:
    return await awaitable


def _loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def _discard(awaitable: Awaitable[object]) -> None:
    if inspect.iscoroutine(awaitable):
        awaitable.close()
