"""Operator and rule-type registries supplied by the owning application."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class OperatorDefinition(BaseModel):
    """One selectable operator, e.g. AND / OR."""

    model_config = {"extra": "forbid"}

    identifier: str = Field(min_length=1)
    name: str


class RuleDefinition(BaseModel):
    """
    One rule type. The engine only reads `identifier` and `initial_value`;
    `component` is the owner's editor and is carried through untouched.
    """

    model_config = {"extra": "forbid", "populate_by_name": True, "arbitrary_types_allowed": True}

    identifier: str = Field(min_length=1)
    name: str
    initial_value: Any = Field(default=None, alias="initialValue")
    component: Any = None


class DraggingConfig(BaseModel):
    """Drag tuning passed through to the drag library."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    animation: int = 300
    disabled: bool = False
    ghost_class: str = Field(default="ghost", alias="ghostClass")


class QueryBuilderConfig(BaseModel):
    """What the owner mounts the builder with."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    operators: list[OperatorDefinition] = Field(min_length=1)
    rules: list[RuleDefinition] = Field(default_factory=list)
    dragging: DraggingConfig | None = None
    max_depth: int | None = Field(default=None, ge=1, alias="maxDepth")

    def operator_ids(self) -> set[str]:
        return {op.identifier for op in self.operators}

    def rule_ids(self) -> set[str]:
        return {rule.identifier for rule in self.rules}

    def rule_definition(self, identifier: str) -> RuleDefinition | None:
        for rule in self.rules:
            if rule.identifier == identifier:
                return rule
        return None

    @property
    def drag_enabled(self) -> bool:
        """Missing drag configuration means dragging is on with library defaults."""
        return self.dragging is None or not self.dragging.disabled
