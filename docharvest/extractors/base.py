"""Contract for extraction collaborators."""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Protocol

from ..models import DocRecord, ExtractionContext

IdSource = Callable[[], int]


class Extractor(Protocol):
    """Receives every ``(node, parent)`` pair of one file's AST in traversal order."""

    results: List[DocRecord]

    def push(self, node: Any, parent: Optional[Any]) -> None:
        """Append zero or more records for ``node`` to ``results``."""


ExtractorFactory = Callable[[Any, ExtractionContext, IdSource], Extractor]
