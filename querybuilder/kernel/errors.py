"""
QueryBuilder Kernel -- Errors

Raised by the group controller, reconciler and tree helpers.
The reducer catches EngineError and reports it as a rejected GestureResult.
ConfigurationError subclasses surface at mount time, not during drag handling.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for structural failures of a single gesture."""

    code = "ENGINE_ERROR"


class IndexOutOfRange(EngineError):
    """A notification references an index not present in the children sequence."""

    code = "INDEX_OUT_OF_RANGE"


class GroupNotFound(EngineError):
    """A path does not address a group in the current tree."""

    code = "GROUP_NOT_FOUND"


class InvalidMove(EngineError):
    """A relocation would put a group inside itself or exceed the depth limit."""

    code = "INVALID_MOVE"


class MalformedTree(EngineError):
    """A wire dict is neither a rule nor a group."""

    code = "MALFORMED_TREE"


class NodeTypeMismatch(EngineError):
    """A rule operation addressed a group, or the other way round."""

    code = "NODE_TYPE_MISMATCH"


class ConfigurationError(EngineError):
    """The tree references something the registries do not know."""

    code = "CONFIGURATION_ERROR"


class UnknownOperator(ConfigurationError):
    code = "UNKNOWN_OPERATOR"


class UnknownRuleIdentifier(ConfigurationError):
    code = "UNKNOWN_RULE_IDENTIFIER"
