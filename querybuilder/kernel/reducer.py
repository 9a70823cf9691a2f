"""
QueryBuilder Kernel -- Reducer

Pure function: (tree, gesture) -> GestureResult
No side effects. No IO. Deterministic.

The input tree is never modified; every applied gesture returns a new,
independent tree plus the local group updates it caused, deepest first and
ending with the root. A gesture that fails structurally is rejected whole:
the result carries the input tree unchanged and no updates.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from querybuilder.config import settings
from querybuilder.kernel.errors import (
    ConfigurationError,
    EngineError,
    InvalidMove,
    NodeTypeMismatch,
    UnknownOperator,
    UnknownRuleIdentifier,
)
from querybuilder.kernel.group import check_index, insert_at, move_within, remove_at
from querybuilder.kernel.reconciler import correct_destination, shift_after_insert
from querybuilder.kernel.registry import QueryBuilderConfig
from querybuilder.kernel.tree import clone, get_group, height, replace_group
from querybuilder.kernel.types import (
    AddGroup,
    AddRule,
    Attach,
    Detach,
    Gesture,
    GestureResult,
    GroupUpdate,
    Path,
    Relocate,
    RemoveChild,
    Reorder,
    Rule,
    RuleSet,
    SetOperator,
    TreeNode,
    UpdateRule,
    Warning,
    format_path,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def apply_gesture(
    tree: RuleSet,
    gesture: Gesture,
    config: QueryBuilderConfig | None = None,
) -> GestureResult:
    """
    Apply one gesture to the current tree.
    Returns new tree + applied flag + group updates + warnings/errors.

    `config` is only needed for gestures that consult the registries
    (adding rules or groups, changing operators) and for the depth limit.
    """
    handler = _HANDLERS.get(type(gesture))
    if handler is None:
        return GestureResult(
            tree=tree,
            applied=False,
            error=f"UNKNOWN_GESTURE: {type(gesture).__name__}",
        )

    # Work on a copy so a failure half way through can't leak into the input
    snap = copy.deepcopy(tree)
    try:
        return handler(snap, gesture, config)
    except EngineError as e:
        logger.warning("reducer: %s rejected: %s: %s", type(gesture).__name__, e.code, e)
        return GestureResult(tree=tree, applied=False, error=f"{e.code}: {e}")


def replay(
    tree: RuleSet,
    gestures: list[Gesture],
    config: QueryBuilderConfig | None = None,
) -> RuleSet:
    """
    Fold gestures over a tree, skipping rejected ones.
    replay(t, [g1, g2]) == apply(apply(t, g1).tree, g2).tree
    """
    for gesture in gestures:
        result = apply_gesture(tree, gesture, config)
        if result.applied:
            tree = result.tree
    return tree


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _ok(tree: RuleSet, changed: list[Path], warnings: list[Warning] | None = None) -> GestureResult:
    return GestureResult(
        tree=tree,
        applied=True,
        updates=_collect_updates(tree, changed),
        warnings=warnings or [],
    )


def _collect_updates(tree: RuleSet, changed: list[Path]) -> list[GroupUpdate]:
    """
    Every changed group plus all of its ancestors, each once, deepest first.
    The root is always last.
    """
    seen: set[Path] = set()
    paths: list[Path] = []
    for path in changed:
        for depth in range(len(path), -1, -1):
            p = path[:depth]
            if p not in seen:
                seen.add(p)
                paths.append(p)
    paths.sort(key=len, reverse=True)
    return [GroupUpdate(path=p, group=clone(get_group(tree, p))) for p in paths]


def _with_children(group: RuleSet, children: list[TreeNode]) -> RuleSet:
    return RuleSet(operator_identifier=group.operator_identifier, children=children)


def _max_depth(config: QueryBuilderConfig | None) -> int | None:
    if config is not None and config.max_depth is not None:
        return config.max_depth
    return settings.default_max_depth


def _check_depth(config: QueryBuilderConfig | None, parent: Path, node: TreeNode) -> None:
    """The root group is depth 1; a group under `parent` sits at len(parent) + 2."""
    limit = _max_depth(config)
    if limit is None or not isinstance(node, RuleSet):
        return
    deepest = len(parent) + 1 + height(node)
    if deepest > limit:
        raise InvalidMove(f"nesting under {format_path(parent)} would reach depth {deepest}, limit is {limit}")


def _require_config(config: QueryBuilderConfig | None, what: str) -> QueryBuilderConfig:
    if config is None:
        raise ConfigurationError(f"{what} needs the operator and rule registries")
    return config


# ---------------------------------------------------------------------------
# Drag gestures
# ---------------------------------------------------------------------------


def _handle_reorder(tree: RuleSet, g: Reorder, config: QueryBuilderConfig | None) -> GestureResult:
    group = get_group(tree, g.path)
    children = move_within(group.children, g.old_index, g.new_index)
    tree = replace_group(tree, g.path, _with_children(group, children))
    return _ok(tree, [g.path])


def _handle_relocate(tree: RuleSet, g: Relocate, config: QueryBuilderConfig | None) -> GestureResult:
    warnings: list[Warning] = []

    if g.from_path == g.to_path:
        return _handle_reorder(tree, Reorder(path=g.from_path, old_index=g.from_index, new_index=g.to_index), config)

    # 1. Remove from the source
    source = get_group(tree, g.from_path)
    remaining, node = remove_at(source.children, g.from_index)

    if g.element is not None and g.element != node:
        msg = (
            f"destination {format_path(g.to_path)} reported a different element than "
            f"the one removed at {format_path((*g.from_path, g.from_index))}"
        )
        if settings.STRICT_ELEMENT_MATCH:
            raise InvalidMove(msg)
        logger.warning("reducer: %s; keeping the removed node", msg)
        warnings.append(Warning(code="ELEMENT_MISMATCH", message=msg))

    # 2. Re-address the destination against the post-removal tree
    to_path = correct_destination(g.from_path, g.from_index, g.to_path)
    tree = replace_group(tree, g.from_path, _with_children(source, remaining))

    # 3. Insert into the destination
    destination = get_group(tree, to_path)
    _check_depth(config, to_path, node)
    children = insert_at(destination.children, g.to_index, node)
    tree = replace_group(tree, to_path, _with_children(destination, children))

    from_path = shift_after_insert(g.from_path, to_path, g.to_index)
    return _ok(tree, [from_path, to_path], warnings)


def _handle_detach(tree: RuleSet, g: Detach, config: QueryBuilderConfig | None) -> GestureResult:
    group = get_group(tree, g.path)
    children, _ = remove_at(group.children, g.old_index)
    tree = replace_group(tree, g.path, _with_children(group, children))
    return _ok(tree, [g.path])


def _handle_attach(tree: RuleSet, g: Attach, config: QueryBuilderConfig | None) -> GestureResult:
    group = get_group(tree, g.path)
    _check_depth(config, g.path, g.element)
    children = insert_at(group.children, g.new_index, g.element)
    tree = replace_group(tree, g.path, _with_children(group, children))
    return _ok(tree, [g.path])


# ---------------------------------------------------------------------------
# Structural edits
# ---------------------------------------------------------------------------


def _handle_add_rule(tree: RuleSet, g: AddRule, config: QueryBuilderConfig | None) -> GestureResult:
    config = _require_config(config, "rule.add")
    definition = config.rule_definition(g.identifier)
    if definition is None:
        raise UnknownRuleIdentifier(g.identifier)

    group = get_group(tree, g.path)
    rule = Rule(identifier=definition.identifier, value=copy.deepcopy(definition.initial_value))
    children = insert_at(group.children, len(group.children), rule)
    tree = replace_group(tree, g.path, _with_children(group, children))
    return _ok(tree, [g.path])


def _handle_add_group(tree: RuleSet, g: AddGroup, config: QueryBuilderConfig | None) -> GestureResult:
    config = _require_config(config, "group.add")
    operator = g.operator_identifier or config.operators[0].identifier
    if operator not in config.operator_ids():
        raise UnknownOperator(operator)

    group = get_group(tree, g.path)
    new_group = RuleSet(operator_identifier=operator, children=[])
    _check_depth(config, g.path, new_group)
    children = insert_at(group.children, len(group.children), new_group)
    tree = replace_group(tree, g.path, _with_children(group, children))
    return _ok(tree, [g.path])


def _handle_remove_child(tree: RuleSet, g: RemoveChild, config: QueryBuilderConfig | None) -> GestureResult:
    group = get_group(tree, g.path)
    children, _ = remove_at(group.children, g.index)
    tree = replace_group(tree, g.path, _with_children(group, children))
    return _ok(tree, [g.path])


def _handle_set_operator(tree: RuleSet, g: SetOperator, config: QueryBuilderConfig | None) -> GestureResult:
    if config is not None and g.operator_identifier not in config.operator_ids():
        raise UnknownOperator(g.operator_identifier)

    group = get_group(tree, g.path)
    updated = RuleSet(operator_identifier=g.operator_identifier, children=[clone(c) for c in group.children])
    tree = replace_group(tree, g.path, updated)
    return _ok(tree, [g.path])


def _handle_update_rule(tree: RuleSet, g: UpdateRule, config: QueryBuilderConfig | None) -> GestureResult:
    group = get_group(tree, g.path)
    check_index("index", g.index, len(group.children) - 1)
    target = group.children[g.index]
    if not isinstance(target, Rule):
        raise NodeTypeMismatch(f"{format_path((*g.path, g.index))} is a group, not a rule")

    children = [clone(c) for c in group.children]
    children[g.index] = Rule(identifier=target.identifier, value=copy.deepcopy(g.value))
    tree = replace_group(tree, g.path, _with_children(group, children))
    return _ok(tree, [g.path])


# ---------------------------------------------------------------------------
# Handler dispatch table
# ---------------------------------------------------------------------------

_HANDLERS: dict[type, Any] = {
    Reorder: _handle_reorder,
    Relocate: _handle_relocate,
    Detach: _handle_detach,
    Attach: _handle_attach,
    AddRule: _handle_add_rule,
    AddGroup: _handle_add_group,
    RemoveChild: _handle_remove_child,
    SetOperator: _handle_set_operator,
    UpdateRule: _handle_update_rule,
}
