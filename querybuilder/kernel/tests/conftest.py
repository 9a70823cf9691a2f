"""
Kernel test configuration.

Shared fixtures: the nested query used across the drag tests and the
registries it is mounted with.

Tree layout (paths in brackets):

  OR                          ()
    AND                       (0,)
      A, B, C
      AND                     (0, 3)
        D, E
        AND                   (0, 3, 2)
          F
          AND [G]             (0, 3, 2, 1)
          H
    AND                       (1,)
      X
      AND [T]                 (1, 1)
      Y, Z
"""

from __future__ import annotations

import copy

import pytest

from querybuilder.kernel.registry import QueryBuilderConfig
from querybuilder.kernel.types import RuleSet, tree_from_dict


def txt(value: str) -> dict:
    return {"identifier": "txt", "value": value}


def group(operator: str, *children: dict) -> dict:
    return {"operatorIdentifier": operator, "children": list(children)}


QUERY_VALUE: dict = group(
    "OR",
    group(
        "AND",
        txt("A"),
        txt("B"),
        txt("C"),
        group(
            "AND",
            txt("D"),
            txt("E"),
            group(
                "AND",
                txt("F"),
                group("AND", txt("G")),
                txt("H"),
            ),
        ),
    ),
    group(
        "AND",
        txt("X"),
        group("AND", txt("T")),
        txt("Y"),
        txt("Z"),
    ),
)

OPERATORS = [
    {"name": "AND", "identifier": "AND"},
    {"name": "OR", "identifier": "OR"},
]

RULES = [
    {"identifier": "txt", "name": "Text Selection", "initialValue": ""},
    {"identifier": "num", "name": "Number Selection", "initialValue": 10},
]


@pytest.fixture
def value() -> dict:
    """The owner's wire value. A fresh copy per test."""
    return copy.deepcopy(QUERY_VALUE)


@pytest.fixture
def tree(value) -> RuleSet:
    return tree_from_dict(value)


@pytest.fixture
def config() -> QueryBuilderConfig:
    return QueryBuilderConfig.model_validate(
        {
            "operators": OPERATORS,
            "rules": RULES,
            "dragging": {"animation": 300, "disabled": False, "ghostClass": "ghost"},
        }
    )


@pytest.fixture
def config_without_dragging() -> QueryBuilderConfig:
    return QueryBuilderConfig.model_validate({"operators": OPERATORS, "rules": RULES})
