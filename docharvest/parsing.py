"""Parser collaborator contract and the default Python parser."""

from __future__ import annotations

import ast
from pathlib import Path
from typing import Any, Protocol

from .errors import SourceSyntaxError


class Parser(Protocol):
    """Turns one source file into an AST or raises ``SourceSyntaxError``."""

    def parse(self, path: Path) -> Any:
        ...


class PythonParser:
    """Parses Python sources with the standard library ``ast`` module."""

    def parse(self, path: Path) -> ast.Module:
        try:
            source = path.read_bytes()
        except OSError as exc:
            raise SourceSyntaxError(path, f"cannot read file: {exc.strerror or exc}") from exc
        try:
            return ast.parse(source, filename=str(path))
        except SyntaxError as exc:
            raise SourceSyntaxError(
                path, exc.msg or "invalid syntax", lineno=exc.lineno, offset=exc.offset
            ) from exc
        except (ValueError, UnicodeDecodeError) as exc:
            raise SourceSyntaxError(path, str(exc)) from exc


__all__ = ["Parser", "PythonParser"]
