"""
QueryBuilder Group Controller -- Child List Tests

The three per-group mutations and their bounds checks.
"""

import pytest

from querybuilder.kernel.errors import IndexOutOfRange
from querybuilder.kernel.group import insert_at, move_within, remove_at
from querybuilder.kernel.types import Rule, RuleSet

D, E, F = Rule("txt", "D"), Rule("txt", "E"), Rule("txt", "F")


@pytest.fixture
def children():
    return [D, E, F]


class TestMoveWithin:
    def test_first_to_last(self, children):
        assert move_within(children, 0, 2) == [E, F, D]

    def test_last_to_first(self, children):
        assert move_within(children, 2, 0) == [F, D, E]

    def test_same_position(self, children):
        result = move_within(children, 1, 1)
        assert result == [D, E, F]
        assert result is not children

    def test_new_index_counts_in_shortened_list(self, children):
        with pytest.raises(IndexOutOfRange):
            move_within(children, 0, 3)

    def test_input_untouched(self, children):
        move_within(children, 0, 2)
        assert children == [D, E, F]


class TestRemoveAt:
    def test_returns_node(self, children):
        remaining, node = remove_at(children, 1)
        assert remaining == [D, F]
        assert node == E

    @pytest.mark.parametrize("index", [-1, 3, 100])
    def test_out_of_range(self, children, index):
        with pytest.raises(IndexOutOfRange):
            remove_at(children, index)

    def test_bool_is_not_an_index(self, children):
        with pytest.raises(IndexOutOfRange):
            remove_at(children, True)

    def test_empty(self):
        with pytest.raises(IndexOutOfRange):
            remove_at([], 0)


class TestInsertAt:
    def test_append_position_is_valid(self, children):
        g = RuleSet("AND", [])
        assert insert_at(children, 3, g) == [D, E, F, g]

    def test_inserts_a_copy(self, children):
        g = RuleSet("AND", [Rule("txt", "Q")])
        result = insert_at(children, 0, g)
        assert result[0] == g
        assert result[0] is not g

    def test_into_empty(self):
        assert insert_at([], 0, D) == [D]

    def test_past_end(self, children):
        with pytest.raises(IndexOutOfRange):
            insert_at(children, 4, D)
