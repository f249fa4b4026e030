"""Log excerpts of source code that could not be processed."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

from .errors import SourceSyntaxError
from .logging import get_logger

logger = get_logger("invalid_code")

_CONTEXT_LINES = 3


def show_file(path: Path, error: SourceSyntaxError) -> None:
    """Log a parse failure with the lines surrounding the error position."""
    lines = _read_lines(path)
    if not lines or not error.lineno:
        logger.error("[%s] %s", path, error.message)
        return
    start = max(1, error.lineno - _CONTEXT_LINES)
    end = min(len(lines), error.lineno + _CONTEXT_LINES)
    excerpt = _format_excerpt(lines, start, end, highlight=error.lineno)
    logger.error("[%s:%d] %s\n%s", path, error.lineno, error.message, excerpt)


def show_node(path: Path, node: Any) -> None:
    """Log the source span of the node an extractor failed on."""
    lineno: Optional[int] = getattr(node, "lineno", None)
    node_type = type(node).__name__
    lines = _read_lines(path)
    if not lines or not lineno:
        logger.error("[%s] could not process %s node", path, node_type)
        return
    end_lineno = getattr(node, "end_lineno", None) or lineno
    excerpt = _format_excerpt(lines, lineno, min(end_lineno, len(lines)), highlight=lineno)
    logger.error("[%s:%d] could not process %s node\n%s", path, lineno, node_type, excerpt)


def show_error(error: BaseException) -> None:
    logger.error("%s", error, exc_info=(type(error), error, error.__traceback__))


def _read_lines(path: Path) -> List[str]:
    try:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError:
        return []


def _format_excerpt(lines: List[str], start: int, end: int, *, highlight: int) -> str:
    width = len(str(end))
    rendered = []
    for number in range(start, end + 1):
        marker = ">" if number == highlight else " "
        rendered.append(f"{marker} {number:>{width}}| {lines[number - 1]}")
    return "\n".join(rendered)


__all__ = ["show_error", "show_file", "show_node"]
