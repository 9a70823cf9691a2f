"""
QueryBuilder Reconciler -- Pairing and Correction Tests

Covers:
  - Destination re-addressing for every ancestor/descendant relation
  - Source re-addressing after the insertion
  - Pairing halves into Relocate / Reorder / Detach / Attach
  - MoveReconciler completion tracking
"""

import pytest

from querybuilder.kernel.errors import InvalidMove
from querybuilder.kernel.events import make_added, make_moved, make_removed
from querybuilder.kernel.reconciler import (
    MoveReconciler,
    PendingHalf,
    correct_destination,
    pair,
    shift_after_insert,
)
from querybuilder.kernel.types import Attach, Detach, Relocate, Reorder, Rule

A, B, Z = Rule("txt", "A"), Rule("txt", "B"), Rule("txt", "Z")


class TestCorrectDestination:
    def test_unrelated(self):
        assert correct_destination((0,), 1, (1,)) == (1,)

    def test_destination_is_ancestor(self):
        assert correct_destination((0, 3), 0, (0,)) == (0,)

    def test_destination_after_removed_element(self):
        assert correct_destination((0,), 0, (0, 3)) == (0, 2)

    def test_destination_before_removed_element(self):
        assert correct_destination((), 1, (0, 3)) == (0, 3)

    def test_only_the_branch_segment_shifts(self):
        assert correct_destination((0,), 1, (0, 3, 2, 1)) == (0, 2, 2, 1)

    def test_same_group(self):
        assert correct_destination((0,), 1, (0,)) == (0,)

    def test_into_own_subtree(self):
        with pytest.raises(InvalidMove):
            correct_destination((0,), 3, (0, 3, 2))

    def test_into_itself(self):
        with pytest.raises(InvalidMove):
            correct_destination((0,), 3, (0, 3))


class TestShiftAfterInsert:
    def test_insert_before_branch(self):
        assert shift_after_insert((0, 3), (0,), 3) == (0, 4)

    def test_insert_after_branch(self):
        assert shift_after_insert((0, 3), (0,), 4) == (0, 3)

    def test_unrelated(self):
        assert shift_after_insert((0,), (1,), 0) == (0,)

    def test_deeper_segments_kept(self):
        assert shift_after_insert((0, 3, 2), (), 0) == (1, 3, 2)


class TestPair:
    def test_removed_then_added(self):
        halves = [
            PendingHalf((0,), make_removed(B, 1)),
            PendingHalf((1,), make_added(B, 3)),
        ]
        assert pair(halves) == [Relocate(from_path=(0,), from_index=1, to_path=(1,), to_index=3, element=B)]

    def test_added_then_removed(self):
        halves = [
            PendingHalf((1,), make_added(B, 3)),
            PendingHalf((0,), make_removed(B, 1)),
        ]
        assert pair(halves) == [Relocate(from_path=(0,), from_index=1, to_path=(1,), to_index=3, element=B)]

    def test_same_group_becomes_reorder(self):
        halves = [
            PendingHalf((1,), make_removed(B, 0)),
            PendingHalf((1,), make_added(B, 2)),
        ]
        assert pair(halves) == [Reorder(path=(1,), old_index=0, new_index=2)]

    def test_lone_removal(self):
        assert pair([PendingHalf((0,), make_removed(B, 1))]) == [Detach(path=(0,), old_index=1)]

    def test_lone_addition(self):
        assert pair([PendingHalf((1,), make_added(B, 0))]) == [Attach(path=(1,), new_index=0, element=B)]

    def test_extra_halves_stay_separate(self):
        halves = [
            PendingHalf((0,), make_removed(B, 1)),
            PendingHalf((1,), make_added(B, 3)),
            PendingHalf((0,), make_removed(A, 0)),
        ]
        assert pair(halves) == [
            Relocate(from_path=(0,), from_index=1, to_path=(1,), to_index=3, element=B),
            Detach(path=(0,), old_index=0),
        ]

    def test_pairs_by_element_not_arrival(self):
        """A stray removal left open by a cancelled drag must not steal the pair."""
        halves = [
            PendingHalf((1,), make_removed(Z, 3)),
            PendingHalf((0,), make_removed(B, 1)),
            PendingHalf((1,), make_added(B, 3)),
        ]
        assert pair(halves) == [
            Detach(path=(1,), old_index=3),
            Relocate(from_path=(0,), from_index=1, to_path=(1,), to_index=3, element=B),
        ]

    def test_falls_back_to_arrival_order(self):
        halves = [
            PendingHalf((0,), make_removed(A, 0)),
            PendingHalf((0,), make_removed(B, 1)),
            PendingHalf((1,), make_added(Z, 0)),
        ]
        assert pair(halves) == [
            Detach(path=(0,), old_index=1),
            Relocate(from_path=(0,), from_index=0, to_path=(1,), to_index=0, element=Z),
        ]


class TestMoveReconciler:
    def test_half_is_pending_not_complete(self):
        r = MoveReconciler()
        r.record((0,), make_removed(B, 1))
        assert r.pending
        assert not r.complete

    def test_complete_after_both(self):
        r = MoveReconciler()
        r.record((0,), make_removed(B, 1))
        r.record((1,), make_added(B, 3))
        assert r.complete

    def test_drain_clears(self):
        r = MoveReconciler()
        r.record((0,), make_removed(B, 1))
        assert r.drain() == [Detach(path=(0,), old_index=1)]
        assert not r.pending
        assert r.drain() == []

    def test_moved_is_not_reconciled(self):
        with pytest.raises(ValueError):
            MoveReconciler().record((0,), make_moved(B, 0, 1))
