"""
QueryBuilder Kernel -- Change Construction

Factory functions for building well-formed drag notifications.
Used by the assembly to parse what the drag library reports,
and by tests to build notifications concisely.
"""

from __future__ import annotations

from typing import Any

from querybuilder.kernel.notifications import validate_change
from querybuilder.kernel.types import Added, Change, Moved, Removed, TreeNode, node_from_dict


def make_moved(element: TreeNode, old_index: int, new_index: int) -> Change:
    return Change(moved=Moved(element=element, old_index=old_index, new_index=new_index))


def make_removed(element: TreeNode, old_index: int) -> Change:
    return Change(removed=Removed(element=element, old_index=old_index))


def make_added(element: TreeNode, new_index: int) -> Change:
    return Change(added=Added(element=element, new_index=new_index))


def change_from_dict(payload: dict[str, Any]) -> Change:
    """
    Build a Change from the drag library's camelCase payload.

    Raises ValueError listing every structural problem when the payload
    does not validate.
    """
    errors = validate_change(payload)
    if errors:
        raise ValueError("; ".join(errors))

    if payload.get("moved") is not None:
        body = payload["moved"]
        return make_moved(node_from_dict(body["element"]), body["oldIndex"], body["newIndex"])
    if payload.get("removed") is not None:
        body = payload["removed"]
        return make_removed(node_from_dict(body["element"]), body["oldIndex"])
    if payload.get("added") is not None:
        body = payload["added"]
        return make_added(node_from_dict(body["element"]), body["newIndex"])
    return Change()
