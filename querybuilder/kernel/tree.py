"""
QueryBuilder Kernel -- Tree Helpers

Addressing, cloning and bottom-up propagation over the immutable tree.

Nothing in here mutates its inputs. `replace_group` is the propagation step:
it substitutes one group and rebuilds every ancestor up to a fresh root.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator

from querybuilder.kernel.errors import GroupNotFound, UnknownOperator, UnknownRuleIdentifier
from querybuilder.kernel.registry import QueryBuilderConfig
from querybuilder.kernel.types import (
    ROOT_PATH,
    Path,
    Rule,
    RuleSet,
    TreeNode,
    format_path,
)


def clone(node: TreeNode) -> TreeNode:
    """Deep, independent copy of a node."""
    return copy.deepcopy(node)


def get_group(tree: RuleSet, path: Path) -> RuleSet:
    """Resolve a path to a group. Raises GroupNotFound."""
    node: TreeNode = tree
    for depth, index in enumerate(path):
        if not isinstance(node, RuleSet) or not 0 <= index < len(node.children):
            raise GroupNotFound(format_path(path[: depth + 1]))
        node = node.children[index]
    if not isinstance(node, RuleSet):
        raise GroupNotFound(f"{format_path(path)} is a rule, not a group")
    return node


def replace_group(tree: RuleSet, path: Path, group: RuleSet) -> RuleSet:
    """
    Return a new tree where the group at `path` is `group`.

    Walks from the target upward: each ancestor is rebuilt with the updated
    child substituted at its index, until the root.
    """
    if path == ROOT_PATH:
        return clone(group)

    # Collect the ancestor chain top-down so it can be rebuilt bottom-up
    chain: list[RuleSet] = []
    node = tree
    for index in path[:-1]:
        chain.append(node)
        node = get_group(node, (index,))
    chain.append(node)
    get_group(tree, path)  # the target itself must exist

    updated: TreeNode = clone(group)
    for parent, index in zip(reversed(chain), reversed(path)):
        children = [clone(c) for c in parent.children]
        children[index] = updated
        updated = RuleSet(operator_identifier=parent.operator_identifier, children=children)
    return updated  # type: ignore[return-value]


def iter_groups(tree: RuleSet, path: Path = ROOT_PATH) -> Iterator[tuple[Path, RuleSet]]:
    """Yield (path, group) for every group, parents before children."""
    yield path, tree
    for i, child in enumerate(tree.children):
        if isinstance(child, RuleSet):
            yield from iter_groups(child, (*path, i))


def height(node: TreeNode) -> int:
    """Number of group levels in a subtree. A rule has height 0."""
    if isinstance(node, Rule):
        return 0
    return 1 + max((height(c) for c in node.children), default=0)


def validate_tree(tree: RuleSet, config: QueryBuilderConfig) -> None:
    """
    Check every structural reference against the registries.
    Raises UnknownOperator / UnknownRuleIdentifier on the first miss.
    """
    operators = config.operator_ids()
    rules = config.rule_ids()

    for path, group in iter_groups(tree):
        if group.operator_identifier not in operators:
            raise UnknownOperator(f"'{group.operator_identifier}' at {format_path(path)}")
        for i, child in enumerate(group.children):
            if isinstance(child, Rule) and child.identifier not in rules:
                raise UnknownRuleIdentifier(f"'{child.identifier}' at {format_path((*path, i))}")
