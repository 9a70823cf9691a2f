"""
QueryBuilder Registry -- Config Model Tests

The owner's config as it arrives (camelCase keys, optional dragging block).
"""

import pytest
from pydantic import ValidationError

from querybuilder.kernel.registry import DraggingConfig, QueryBuilderConfig

OPERATORS = [{"name": "AND", "identifier": "AND"}, {"name": "OR", "identifier": "OR"}]


class TestQueryBuilderConfig:
    def test_camel_case_keys(self, config):
        assert config.rule_definition("num").initial_value == 10
        assert config.dragging.ghost_class == "ghost"

    def test_snake_case_keys(self):
        config = QueryBuilderConfig(
            operators=OPERATORS,
            rules=[{"identifier": "txt", "name": "Text", "initial_value": ""}],
            max_depth=4,
        )
        assert config.rule_definition("txt").initial_value == ""
        assert config.max_depth == 4

    def test_dragging_is_optional(self, config_without_dragging):
        assert config_without_dragging.dragging is None
        assert config_without_dragging.drag_enabled

    def test_disabled_dragging(self):
        config = QueryBuilderConfig(operators=OPERATORS, dragging=DraggingConfig(disabled=True))
        assert not config.drag_enabled

    def test_lookups(self, config):
        assert config.operator_ids() == {"AND", "OR"}
        assert config.rule_ids() == {"txt", "num"}
        assert config.rule_definition("date") is None

    def test_component_passes_through(self):
        editor = object()
        config = QueryBuilderConfig(
            operators=OPERATORS,
            rules=[{"identifier": "txt", "name": "Text", "component": editor}],
        )
        assert config.rules[0].component is editor


class TestRejectedConfig:
    def test_needs_an_operator(self):
        with pytest.raises(ValidationError):
            QueryBuilderConfig(operators=[])

    def test_unknown_key(self):
        with pytest.raises(ValidationError):
            QueryBuilderConfig(operators=OPERATORS, colors={"AND": "red"})

    def test_max_depth_positive(self):
        with pytest.raises(ValidationError):
            QueryBuilderConfig(operators=OPERATORS, maxDepth=0)
