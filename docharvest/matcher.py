"""Include/exclude evaluation for candidate source paths."""

from __future__ import annotations

import re
from typing import Iterable, List, Pattern

from .errors import ConfigError


def _compile(patterns: Iterable[str], label: str) -> List[Pattern[str]]:
    compiled: List[Pattern[str]] = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            raise ConfigError(f"Invalid {label} pattern {pattern!r}: {exc}") from exc
    return compiled


class PathMatcher:
    """Accepts a relative path when an include matches and no exclude does."""

    def __init__(self, includes: Iterable[str], excludes: Iterable[str]) -> None:
        self._includes = _compile(includes, "include")
        self._excludes = _compile(excludes, "exclude")

    def matches(self, relative_path: str) -> bool:
        if not any(pattern.search(relative_path) for pattern in self._includes):
            return False
        return not any(pattern.search(relative_path) for pattern in self._excludes)


__all__ = ["PathMatcher"]
