"""Extraction collaborators that turn AST nodes into documentation records."""

from __future__ import annotations

from .base import Extractor, ExtractorFactory, IdSource
from .python import PythonDocExtractor

__all__ = [
    "Extractor",
    "ExtractorFactory",
    "IdSource",
    "PythonDocExtractor",
]
