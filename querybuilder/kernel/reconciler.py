"""
QueryBuilder Kernel -- Move Reconciler

A drag that crosses a group boundary reaches the engine as two independent
notifications: `removed` on the source group and `added` on the destination.
The reconciler correlates them into one Relocate gesture.

Paths are always pre-gesture coordinates, i.e. where each group sat when the
drag library reported against it. The relocation is applied as
remove-then-insert, so the destination has to be re-addressed against the
post-removal tree:

  unrelated groups            -- nothing to correct
  destination is an ancestor  -- removal below it shifts nothing; apply directly
  destination is a descendant -- removal in the source shortens the sibling
                                 list that holds the destination branch; the
                                 branch index drops by one when it sat after
                                 the removed element

A lone half is a complete edit: the element vanishes (Detach) or appears
(Attach). That is what a cancelled drag or a drop outside any tracked group
looks like, and it is not an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from querybuilder.kernel.errors import InvalidMove
from querybuilder.kernel.types import (
    Attach,
    Change,
    Detach,
    Gesture,
    Path,
    Relocate,
    Reorder,
    format_path,
    is_ancestor,
)

logger = logging.getLogger(__name__)


@dataclass
class PendingHalf:
    """One half of a cross-group move, waiting for its counterpart."""

    path: Path
    change: Change


# ---------------------------------------------------------------------------
# Index / path correction
# ---------------------------------------------------------------------------


def correct_destination(from_path: Path, from_index: int, to_path: Path) -> Path:
    """
    Re-address the destination group after the element at
    `from_path[from_index]` has been removed.
    """
    if to_path == from_path or not is_ancestor(from_path, to_path):
        return to_path

    depth = len(from_path)
    branch = to_path[depth]
    if branch == from_index:
        raise InvalidMove(
            f"cannot move {format_path((*from_path, from_index))} into its own subtree {format_path(to_path)}"
        )
    if branch > from_index:
        return (*to_path[:depth], branch - 1, *to_path[depth + 1 :])
    return to_path


def shift_after_insert(path: Path, to_path: Path, to_index: int) -> Path:
    """
    Where a group at `path` (post-removal coordinates) ends up after a node is
    inserted at `to_path[to_index]`.
    """
    if not is_ancestor(to_path, path):
        return path
    depth = len(to_path)
    branch = path[depth]
    if to_index <= branch:
        return (*path[:depth], branch + 1, *path[depth + 1 :])
    return path


# ---------------------------------------------------------------------------
# Pairing
# ---------------------------------------------------------------------------


def pair(halves: list[PendingHalf]) -> list[Gesture]:
    """
    Turn the halves collected in one reconciliation cycle into gestures.

    The first added half is paired with the removed half that carries the same
    element, or with the first removed half when none does. Every other half is
    applied on its own. Halves that arrived before the pair was complete were
    reported against the tree without them, so they are applied first; later
    ones follow the relocation.
    """
    removed = [(i, h) for i, h in enumerate(halves) if h.change.removed is not None]
    added = [(i, h) for i, h in enumerate(halves) if h.change.added is not None]

    paired: Gesture | None = None
    completed_at = len(halves)
    if removed and added:
        dst_pos, dst = added.pop(0)
        ad = dst.change.added
        match = next((k for k, (_, h) in enumerate(removed) if h.change.removed.element == ad.element), 0)
        src_pos, src = removed.pop(match)
        rm = src.change.removed
        completed_at = max(src_pos, dst_pos)
        if src.path == dst.path:
            # Both halves on one group is just a reorder
            paired = Reorder(path=src.path, old_index=rm.old_index, new_index=ad.new_index)
        else:
            paired = Relocate(
                from_path=src.path,
                from_index=rm.old_index,
                to_path=dst.path,
                to_index=ad.new_index,
                element=ad.element,
            )

    leftovers: list[tuple[int, Gesture]] = []
    for pos, half in removed:
        logger.warning("reconciler: unpaired removal at %s, accepting as-is", format_path(half.path))
        leftovers.append((pos, Detach(path=half.path, old_index=half.change.removed.old_index)))
    for pos, half in added:
        logger.warning("reconciler: unpaired addition at %s, accepting as-is", format_path(half.path))
        leftovers.append(
            (pos, Attach(path=half.path, new_index=half.change.added.new_index, element=half.change.added.element))
        )
    leftovers.sort(key=lambda item: item[0])

    gestures = [g for pos, g in leftovers if pos < completed_at]
    if paired is not None:
        gestures.append(paired)
    gestures.extend(g for pos, g in leftovers if pos > completed_at)
    return gestures


class MoveReconciler:
    """
    Holds the halves of the gesture in flight.

    The assembly records every removed/added notification here and drains the
    reconciler once both halves are in, or once a turn passes without the
    counterpart.
    """

    def __init__(self) -> None:
        self._pending: list[PendingHalf] = []

    def record(self, path: Path, change: Change) -> None:
        if change.removed is None and change.added is None:
            raise ValueError("only removed/added notifications are reconciled")
        self._pending.append(PendingHalf(path=path, change=change))

    @property
    def pending(self) -> bool:
        return bool(self._pending)

    @property
    def complete(self) -> bool:
        """True once a removed half and an added half are both held."""
        has_removed = any(h.change.removed is not None for h in self._pending)
        has_added = any(h.change.added is not None for h in self._pending)
        return has_removed and has_added

    def drain(self) -> list[Gesture]:
        halves, self._pending = self._pending, []
        return pair(halves)
