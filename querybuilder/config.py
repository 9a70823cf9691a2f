"""
QueryBuilder configuration -- all environment variables in one place.

Read from environment at runtime. The registries (operators, rule types,
drag tuning) are not settings; the owner passes them as a QueryBuilderConfig.
"""

from __future__ import annotations

import os


def _flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


def _depth(name: str, default: str = "0") -> int:
    raw = os.environ.get(name, default)
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be 0 (unlimited) or a positive integer, got {raw!r}") from None
    if value < 0:
        raise RuntimeError(f"{name} must be 0 (unlimited) or a positive integer, got {raw!r}")
    return value


class Settings:
    """Engine settings from environment variables."""

    # Deepest group nesting allowed when the config has no max_depth. 0 = unlimited.
    MAX_DEPTH: int = _depth("QB_MAX_DEPTH")

    # Reject a relocation when the element the destination saw differs from the
    # node removed at the source. Off: log a warning and keep the source node.
    STRICT_ELEMENT_MATCH: bool = _flag("QB_STRICT_ELEMENT_MATCH")

    @property
    def default_max_depth(self) -> int | None:
        return self.MAX_DEPTH if self.MAX_DEPTH > 0 else None


# Singleton instance
settings = Settings()
