"""
QueryBuilder Kernel -- Notification Validation

Validates raw drag-library change payloads before they reach the assembly.
Validation is structural (well-formed?) not semantic (will it apply?).
The group controller handles bounds against the actual children.

Payload shapes, one key per payload:
  {"moved":   {"element": node, "oldIndex": int, "newIndex": int}}
  {"removed": {"element": node, "oldIndex": int}}
  {"added":   {"element": node, "newIndex": int}}
"""

from __future__ import annotations

from typing import Any

CHANGE_KINDS: set[str] = {"moved", "removed", "added"}

_REQUIRED_INDICES: dict[str, tuple[str, ...]] = {
    "moved": ("oldIndex", "newIndex"),
    "removed": ("oldIndex",),
    "added": ("newIndex",),
}

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_change(payload: Any) -> list[str]:
    """
    Validate a change payload's structure.
    Returns a list of error strings. Empty list = valid.

    An empty payload is valid: the drag library may report a change with
    nothing populated, which the assembly ignores.
    """
    errors: list[str] = []

    if not isinstance(payload, dict):
        errors.append("Change payload must be a non-null object")
        return errors

    present = [k for k in payload if payload[k] is not None]
    unknown = [k for k in present if k not in CHANGE_KINDS]
    if unknown:
        errors.append(f"Unknown change kind(s): {', '.join(sorted(unknown))}")
        return errors

    if len(present) > 1:
        errors.append(f"At most one of moved/added/removed may be set, got {', '.join(sorted(present))}")
        return errors

    if not present:
        return errors

    kind = present[0]
    body = payload[kind]
    if not isinstance(body, dict):
        errors.append(f"'{kind}' must be an object")
        return errors

    if "element" not in body:
        errors.append(f"{kind} requires 'element'")
    elif not isinstance(body["element"], dict):
        errors.append(f"{kind}.element must be a rule or group object")

    for key in _REQUIRED_INDICES[kind]:
        if key not in body:
            errors.append(f"{kind} requires '{key}'")
        elif not _is_index(body[key]):
            errors.append(f"{kind}.{key} must be a non-negative integer, got {body[key]!r}")

    return errors


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0
