"""Failure types raised by docharvest components.

Components never terminate the process themselves. They raise one of these
errors and the CLI decides the exit status.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class DocHarvestError(RuntimeError):
    """Base class for every failure that ends a run."""

    kind = "fatal"


class ConfigError(DocHarvestError):
    """Raised when the configuration is missing, malformed or inconsistent."""

    kind = "config"


class PluginError(DocHarvestError):
    """Raised when a configured plugin cannot be loaded."""

    kind = "plugin"


class SourceSyntaxError(DocHarvestError):
    """Raised by a parser when a source file cannot be turned into an AST.

    This is the only recoverable failure: the driver logs it and skips the file.
    """

    kind = "syntax"

    def __init__(
        self,
        path: Path,
        message: str,
        *,
        lineno: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> None:
        location = f":{lineno}" if lineno else ""
        super().__init__(f"{path}{location}: {message}")
        self.path = path
        self.message = message
        self.lineno = lineno
        self.offset = offset


class ExtractionError(DocHarvestError):
    """Raised when the extraction collaborator fails on a parsed node."""

    kind = "extraction"


class PersistenceError(DocHarvestError):
    """Raised when an AST dump cannot be written to the destination."""

    kind = "persistence"


class DescriptorError(DocHarvestError):
    """Raised when a package descriptor cannot be resolved to a source directory."""

    kind = "descriptor"


class PublishError(DocHarvestError):
    """Raised when a plugin fails during the publish phase."""

    kind = "publish"


__all__ = [
    "ConfigError",
    "DescriptorError",
    "DocHarvestError",
    "ExtractionError",
    "PersistenceError",
    "PluginError",
    "PublishError",
    "SourceSyntaxError",
]
