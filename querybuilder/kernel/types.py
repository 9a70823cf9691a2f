"""
QueryBuilder Kernel -- Shared Types

Data classes used across the group controller, reconciler, reducer and assembly.
These are the contracts that bind the kernel together.

Tree model:
- `Rule` is a leaf: a rule-type identifier plus an opaque value
- `RuleSet` is a group: an operator identifier plus ordered children
- Groups are addressed by `Path`, the tuple of child indices from the root

Notifications (what the drag library reports against one group):
- `Moved`, `Removed`, `Added`, wrapped in a `Change`

Gestures (what the reducer applies):
- `Reorder`, `Relocate`, `Detach`, `Attach` (drag)
- `AddRule`, `AddGroup`, `RemoveChild`, `SetOperator`, `UpdateRule` (structural)
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from querybuilder.kernel.errors import MalformedTree

Path = tuple[int, ...]

ROOT_PATH: Path = ()


# ---------------------------------------------------------------------------
# Tree model
# ---------------------------------------------------------------------------


@dataclass
class Rule:
    """A leaf node. `value` is opaque to the engine."""

    identifier: str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"identifier": self.identifier, "value": copy.deepcopy(self.value)}


@dataclass
class RuleSet:
    """
    A group node combining its children with one operator.
    Child order is the displayed and evaluated order.
    """

    operator_identifier: str
    children: list[TreeNode] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "operatorIdentifier": self.operator_identifier,
            "children": [child.to_dict() for child in self.children],
        }


TreeNode = Rule | RuleSet


def node_from_dict(d: dict[str, Any]) -> TreeNode:
    """
    Parse the owner's wire shape into a tagged node.

    {"operatorIdentifier": ..., "children": [...]} -> RuleSet
    {"identifier": ..., "value": ...}              -> Rule
    """
    if not isinstance(d, dict):
        raise MalformedTree(f"expected an object, got {type(d).__name__}")
    if "operatorIdentifier" in d:
        children = d.get("children", [])
        if not isinstance(children, list):
            raise MalformedTree("'children' must be a list")
        return RuleSet(
            operator_identifier=d["operatorIdentifier"],
            children=[node_from_dict(c) for c in children],
        )
    if "identifier" in d:
        return Rule(identifier=d["identifier"], value=copy.deepcopy(d.get("value")))
    raise MalformedTree(f"node has neither 'operatorIdentifier' nor 'identifier': {sorted(d)}")


def tree_from_dict(d: dict[str, Any]) -> RuleSet:
    """Parse a whole tree. The root must be a group."""
    node = node_from_dict(d)
    if not isinstance(node, RuleSet):
        raise MalformedTree("the root of a query must be a group")
    return node


# ---------------------------------------------------------------------------
# Drag notifications (component-local, as the drag library reports them)
# ---------------------------------------------------------------------------


@dataclass
class Moved:
    """In-group reorder."""

    element: TreeNode
    old_index: int
    new_index: int


@dataclass
class Removed:
    """The element left this group for another one."""

    element: TreeNode
    old_index: int


@dataclass
class Added:
    """The element arrived from another group."""

    element: TreeNode
    new_index: int


@dataclass
class Change:
    """
    One change notification from the drag library for one group.
    At most one of the three fields is populated.
    """

    moved: Moved | None = None
    added: Added | None = None
    removed: Removed | None = None

    @property
    def kind(self) -> str | None:
        if self.moved is not None:
            return "moved"
        if self.added is not None:
            return "added"
        if self.removed is not None:
            return "removed"
        return None


# ---------------------------------------------------------------------------
# Gestures (what the reducer applies to a whole tree)
# ---------------------------------------------------------------------------


@dataclass
class Reorder:
    path: Path
    old_index: int
    new_index: int


@dataclass
class Relocate:
    """
    A single atomic cross-group move. Indices are as the drag library reports
    them: `from_index` in the source before removal, `to_index` in the
    destination after removal.
    """

    from_path: Path
    from_index: int
    to_path: Path
    to_index: int
    element: TreeNode | None = None  # what the destination observed, if anything


@dataclass
class Detach:
    """A removal with no counterpart: the element vanishes."""

    path: Path
    old_index: int


@dataclass
class Attach:
    """An addition with no counterpart: the element appears."""

    path: Path
    new_index: int
    element: TreeNode


@dataclass
class AddRule:
    path: Path
    identifier: str


@dataclass
class AddGroup:
    path: Path
    operator_identifier: str | None = None  # defaults to the first registered operator


@dataclass
class RemoveChild:
    path: Path
    index: int


@dataclass
class SetOperator:
    path: Path
    operator_identifier: str


@dataclass
class UpdateRule:
    path: Path
    index: int
    value: Any


Gesture = (
    Reorder | Relocate | Detach | Attach | AddRule | AddGroup | RemoveChild | SetOperator | UpdateRule
)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class GroupUpdate:
    """
    The local "children changed" signal of one group.
    `group` is that group's value inside the new tree.
    """

    path: Path
    group: RuleSet

    def to_dict(self) -> dict[str, Any]:
        return self.group.to_dict()


@dataclass
class Warning:
    """A non-fatal issue encountered while applying a gesture."""

    code: str
    message: str
    details: dict[str, Any] | None = None


@dataclass
class GestureResult:
    """
    Result of applying one gesture to a tree.
    The reducer never throws for engine errors -- it always returns one of these.
    """

    tree: RuleSet
    applied: bool
    updates: list[GroupUpdate] = field(default_factory=list)
    warnings: list[Warning] = field(default_factory=list)
    error: str | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_ancestor(ancestor: Path, descendant: Path) -> bool:
    """True if `ancestor` is a proper prefix of `descendant`."""
    return len(ancestor) < len(descendant) and descendant[: len(ancestor)] == ancestor


def format_path(path: Path) -> str:
    """Human-readable path for messages: () -> "root", (0, 3) -> "root/0/3"."""
    return "/".join(["root", *(str(i) for i in path)])
