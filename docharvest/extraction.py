"""Per-file parse and extraction with failure isolation."""

from __future__ import annotations

import ast
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, Optional

from . import invalid_code
from .errors import ExtractionError, SourceSyntaxError
from .extractors import ExtractorFactory, IdSource
from .logging import get_logger
from .models import ExtractionContext, ParseResult, WalkEntry
from .parsing import Parser

logger = get_logger("extraction")


def iter_children(node: Any) -> Iterable[Any]:
    """Child nodes of ``node`` in source order.

    Handles ``ast`` trees as well as JSON-style trees made of dicts carrying a
    ``type`` key.
    """
    if isinstance(node, ast.AST):
        return ast.iter_child_nodes(node)
    if isinstance(node, dict):
        return _dict_children(node)
    return ()


def _dict_children(node: dict) -> Iterator[Any]:
    for key, value in node.items():
        if key in {"loc", "range", "start", "end"}:
            continue
        if isinstance(value, dict) and "type" in value:
            yield value
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, dict) and "type" in item:
                    yield item


def traverse(
    tree: Any,
    callback: Callable[[Any, Optional[Any]], None],
    *,
    children: Callable[[Any], Iterable[Any]] = iter_children,
) -> None:
    """Depth-first pre-order walk calling ``callback(node, parent)``."""
    stack: list[tuple[Any, Optional[Any]]] = [(tree, None)]
    while stack:
        node, parent = stack.pop()
        callback(node, parent)
        for child in reversed(list(children(node))):
            stack.append((child, node))


class ExtractionDriver:
    """Runs the parser and extractor over accepted files."""

    def __init__(
        self,
        parser: Parser,
        extractor_factory: ExtractorFactory,
        next_id: IdSource,
        source_root: Path,
    ) -> None:
        self._parser = parser
        self._factory = extractor_factory
        self._next_id = next_id
        self._source_root = source_root

    def extract(
        self,
        entry: WalkEntry,
        *,
        package_name: Optional[str] = None,
        main_path: Optional[Path] = None,
    ) -> Optional[ParseResult]:
        """Return records and AST for ``entry``, or None when it does not parse.

        Parse failures are logged and skipped. Failures inside the extractor
        mean the extraction model itself is broken and raise ``ExtractionError``.
        """
        logger.info("parse %s", entry.path)
        try:
            tree = self._parser.parse(entry.path)
        except SourceSyntaxError as exc:
            invalid_code.show_file(entry.path, exc)
            return None

        context = ExtractionContext(
            source_root=self._source_root,
            path=entry.path,
            relative_path=entry.relative_path,
            package_name=package_name,
            main_path=main_path,
        )
        try:
            extractor = self._factory(tree, context, self._next_id)
        except Exception as exc:
            raise ExtractionError(f"{entry.path}: could not create extractor: {exc}") from exc

        def _push(node: Any, parent: Optional[Any]) -> None:
            try:
                extractor.push(node, parent)
            except Exception as exc:
                invalid_code.show_node(entry.path, node)
                raise ExtractionError(
                    f"{entry.path}: extraction failed on {type(node).__name__} node: {exc}"
                ) from exc

        traverse(tree, _push)
        return ParseResult(records=list(extractor.results), ast=tree)


__all__ = ["ExtractionDriver", "iter_children", "traverse"]
