"""
QueryBuilder Kernel -- Group Node Controller

Per-group child list mutations for the three drag notifications.

Each function takes the group's current children and returns a new list.
The input list is never modified. Out-of-range indices raise IndexOutOfRange
instead of silently corrupting the sequence.

  moved    -- remove at old_index, insert at new_index of the shortened list
  removed  -- remove at old_index
  added    -- insert a deep copy at new_index

A move whose indices look like a no-op still goes through remove + insert.
"""

from __future__ import annotations

from querybuilder.kernel.errors import IndexOutOfRange
from querybuilder.kernel.tree import clone
from querybuilder.kernel.types import TreeNode


def check_index(name: str, index: int, upper: int) -> None:
    """Valid range is [0, upper]."""
    if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index <= upper:
        raise IndexOutOfRange(f"{name}={index!r} outside [0, {upper}]")


def remove_at(children: list[TreeNode], old_index: int) -> tuple[list[TreeNode], TreeNode]:
    """Return (children without the node, the removed node)."""
    check_index("oldIndex", old_index, len(children) - 1)
    result = [clone(c) for c in children]
    node = result.pop(old_index)
    return result, node


def insert_at(children: list[TreeNode], new_index: int, node: TreeNode) -> list[TreeNode]:
    check_index("newIndex", new_index, len(children))
    result = [clone(c) for c in children]
    result.insert(new_index, clone(node))
    return result


def move_within(children: list[TreeNode], old_index: int, new_index: int) -> list[TreeNode]:
    """Remove at old_index, then insert at new_index of the shortened list."""
    check_index("oldIndex", old_index, len(children) - 1)
    check_index("newIndex", new_index, len(children) - 1)
    shortened, node = remove_at(children, old_index)
    return insert_at(shortened, new_index, node)
