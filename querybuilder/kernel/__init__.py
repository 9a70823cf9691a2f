"""
QueryBuilder Kernel -- the pure engine.

Four components:
  group       -- per-group child list mutations (moved / removed / added)
  reconciler  -- pairs removed + added halves into one relocation
  reducer     -- (tree, gesture) -> tree  (pure, deterministic)
  assembly    -- one editing session: pairing window, propagation, emission

Registries:
  QueryBuilderConfig, OperatorDefinition, RuleDefinition, DraggingConfig
"""

from querybuilder.kernel.assembly import TreeAssembly
from querybuilder.kernel.errors import (
    ConfigurationError,
    EngineError,
    GroupNotFound,
    IndexOutOfRange,
    InvalidMove,
    UnknownOperator,
    UnknownRuleIdentifier,
)
from querybuilder.kernel.events import change_from_dict
from querybuilder.kernel.reducer import apply_gesture, replay
from querybuilder.kernel.registry import (
    DraggingConfig,
    OperatorDefinition,
    QueryBuilderConfig,
    RuleDefinition,
)
from querybuilder.kernel.types import Rule, RuleSet, tree_from_dict

__all__ = [
    "TreeAssembly",
    "apply_gesture",
    "replay",
    "change_from_dict",
    "tree_from_dict",
    "Rule",
    "RuleSet",
    "QueryBuilderConfig",
    "OperatorDefinition",
    "RuleDefinition",
    "DraggingConfig",
    "EngineError",
    "IndexOutOfRange",
    "GroupNotFound",
    "InvalidMove",
    "ConfigurationError",
    "UnknownOperator",
    "UnknownRuleIdentifier",
]
