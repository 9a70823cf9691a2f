"""
QueryBuilder Kernel -- Assembly Layer

Sits between the pure reducer and the outside world (the owning application
and the drag library). Coordinates one editing session over a controlled
tree value.

Operations: mount, notify, relocate, structural edits, flush, settle

The owner supplies the tree once and gets exactly one new whole-tree value
per gesture through the `input` listeners. Groups that changed announce
their own value through the `query-update` listeners, deepest first.

Cross-group drags arrive as two notifications. The assembly holds the first
half until its counterpart shows up or the event loop turns over; a half
left alone at that point is applied on its own. Without a running loop the
caller closes the cycle with flush().
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from querybuilder.kernel.events import change_from_dict
from querybuilder.kernel.reconciler import MoveReconciler
from querybuilder.kernel.reducer import apply_gesture, replay
from querybuilder.kernel.registry import QueryBuilderConfig
from querybuilder.kernel.tree import clone, validate_tree
from querybuilder.kernel.types import (
    AddGroup,
    AddRule,
    Change,
    Gesture,
    GestureResult,
    GroupUpdate,
    Path,
    Relocate,
    RemoveChild,
    Reorder,
    RuleSet,
    SetOperator,
    UpdateRule,
    Warning,
    format_path,
    tree_from_dict,
)

logger = logging.getLogger(__name__)

InputListener = Callable[[RuleSet], None]
UpdateListener = Callable[[GroupUpdate], None]


class TreeAssembly:
    """
    One editing session over a caller-owned query tree.
    Coordinates reconciler + reducer + listeners.
    """

    def __init__(
        self,
        value: RuleSet | dict[str, Any],
        config: QueryBuilderConfig | dict[str, Any],
        *,
        on_input: InputListener | None = None,
        on_query_update: UpdateListener | None = None,
    ):
        self._value = tree_from_dict(value) if isinstance(value, dict) else clone(value)
        self._config = config if isinstance(config, QueryBuilderConfig) else QueryBuilderConfig.model_validate(config)
        self._reconciler = MoveReconciler()
        self._flush_handle: asyncio.Handle | None = None
        self._input_listeners: list[InputListener] = [on_input] if on_input else []
        self._update_listeners: list[UpdateListener] = [on_query_update] if on_query_update else []
        self._origin = clone(self._value)
        self._applied: list[Gesture] = []

    # -- lifecycle --

    def mount(self) -> TreeAssembly:
        """
        Check the tree against the registries.
        Raises UnknownOperator / UnknownRuleIdentifier.
        """
        validate_tree(self._value, self._config)
        return self

    @property
    def value(self) -> RuleSet:
        """The committed tree. A copy; mutating it does not touch the session."""
        return clone(self._value)

    @property
    def config(self) -> QueryBuilderConfig:
        return self._config

    @property
    def pending(self) -> bool:
        """True while half of a cross-group move is waiting for its counterpart."""
        return self._reconciler.pending

    def set_value(self, value: RuleSet | dict[str, Any]) -> None:
        """The owner re-supplies the authoritative tree."""
        if self._reconciler.pending:
            logger.warning("assembly: new value supplied mid-gesture, dropping pending halves")
            self._reconciler.drain()
            self._cancel_flush()
        self._value = tree_from_dict(value) if isinstance(value, dict) else clone(value)
        self._origin = clone(self._value)
        self._applied = []

    def on_input(self, listener: InputListener) -> None:
        self._input_listeners.append(listener)

    def on_query_update(self, listener: UpdateListener) -> None:
        self._update_listeners.append(listener)

    # -- drag notifications --

    def notify(self, path: Path, change: Change | dict[str, Any]) -> GestureResult | None:
        """
        Entry point for the drag library: `change` was reported against the
        group at `path` (pre-gesture coordinates).

        Returns the committed result, or None while a half is held or when the
        notification is ignored.
        """
        if isinstance(change, dict):
            change = change_from_dict(change)

        if not self._config.drag_enabled:
            logger.warning("assembly: dragging is disabled, ignoring %s at %s", change.kind, format_path(path))
            return None

        kind = change.kind
        if kind is None:
            return None

        if kind == "moved":
            moved = change.moved
            return self._command([Reorder(path=path, old_index=moved.old_index, new_index=moved.new_index)])

        self._reconciler.record(path, change)
        if self._reconciler.complete:
            return self.flush()
        self._schedule_flush()
        return None

    def relocate(self, from_path: Path, from_index: int, to_path: Path, to_index: int) -> GestureResult:
        """Atomic cross-group move, for collaborators that know both endpoints."""
        return self._command([Relocate(from_path=from_path, from_index=from_index, to_path=to_path, to_index=to_index)])

    def flush(self) -> GestureResult | None:
        """Close the reconciliation cycle and apply whatever was collected."""
        self._cancel_flush()
        if not self._reconciler.pending:
            return None
        return self._run(self._reconciler.drain())

    async def settle(self) -> None:
        """Let the event loop turn until no reconciliation cycle is open."""
        while self._flush_handle is not None:
            await asyncio.sleep(0)

    # -- structural edits --

    def add_rule(self, path: Path, identifier: str) -> GestureResult:
        return self._command([AddRule(path=path, identifier=identifier)])

    def add_group(self, path: Path, operator_identifier: str | None = None) -> GestureResult:
        return self._command([AddGroup(path=path, operator_identifier=operator_identifier)])

    def remove_child(self, path: Path, index: int) -> GestureResult:
        return self._command([RemoveChild(path=path, index=index)])

    def set_operator(self, path: Path, operator_identifier: str) -> GestureResult:
        return self._command([SetOperator(path=path, operator_identifier=operator_identifier)])

    def update_rule(self, path: Path, index: int, value: Any) -> GestureResult:
        return self._command([UpdateRule(path=path, index=index, value=value)])

    # -- integrity --

    def integrity_check(self) -> tuple[bool, list[str]]:
        """Verify the committed tree matches a replay of the session's gestures."""
        replayed = replay(self._origin, self._applied, self._config)
        if replayed == self._value:
            return True, []
        return False, ["Committed tree does not match gesture replay"]

    # -- internals --

    def _command(self, gestures: list[Gesture]) -> GestureResult:
        """
        Run a self-contained gesture. Halves still held were reported against
        the tree as it was before this gesture, so they are applied first.
        """
        if self._reconciler.pending:
            self.flush()
        return self._run(gestures)

    def _run(self, gestures: list[Gesture]) -> GestureResult:
        """
        Apply the gestures of one user action and commit them together.
        Any rejection aborts the lot: nothing is committed or emitted.
        """
        tree = self._value
        updates: list[GroupUpdate] = []
        warnings: list[Warning] = []

        for gesture in gestures:
            result = apply_gesture(tree, gesture, self._config)
            if not result.applied:
                return GestureResult(tree=clone(self._value), applied=False, error=result.error)
            tree = result.tree
            updates.extend(result.updates)
            warnings.extend(result.warnings)

        updates = _dedupe(updates)
        self._value = tree
        self._applied.extend(gestures)
        self._emit(updates, tree)
        return GestureResult(tree=clone(tree), applied=True, updates=updates, warnings=warnings)

    def _emit(self, updates: list[GroupUpdate], tree: RuleSet) -> None:
        for update in updates:
            logger.debug("assembly: query-update at %s", format_path(update.path))
            for listener in self._update_listeners:
                listener(GroupUpdate(path=update.path, group=clone(update.group)))
        logger.info("assembly: emitting new tree (%d group update(s))", len(updates))
        for listener in self._input_listeners:
            listener(clone(tree))

    def _schedule_flush(self) -> None:
        if self._flush_handle is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return  # no loop: the caller flushes explicitly
        self._flush_handle = loop.call_soon(self._scheduled_flush)

    def _scheduled_flush(self) -> None:
        self._flush_handle = None
        self.flush()

    def _cancel_flush(self) -> None:
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None


def _dedupe(updates: list[GroupUpdate]) -> list[GroupUpdate]:
    """Keep the last update per path; deepest first, root last."""
    latest: dict[Path, GroupUpdate] = {}
    for update in updates:
        latest[update.path] = update
    return sorted(latest.values(), key=lambda u: len(u.path), reverse=True)
