"""Core data models shared across docharvest components."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class DocRecord:
    """One extracted unit of documentation for a symbol."""

    doc_id: int
    kind: str
    name: str
    longname: str
    static: bool = False
    access: str = "public"
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "__docId__": self.doc_id,
            "kind": self.kind,
            "name": self.name,
            "longname": self.longname,
            "static": self.static,
            "access": self.access,
        }
        for key, value in self.payload.items():
            data.setdefault(key, value)
        return data


@dataclass(frozen=True)
class PackageDescriptor:
    """A parsed ``package.json`` found while walking a root."""

    path: Path
    content: Dict[str, Any]

    @property
    def directory(self) -> Path:
        return self.path.parent

    @property
    def name(self) -> Optional[str]:
        value = self.content.get("name")
        return value if isinstance(value, str) else None

    @property
    def main(self) -> Optional[str]:
        value = self.content.get("main")
        return value if isinstance(value, str) else None


@dataclass(frozen=True)
class WalkEntry:
    """A discovered file and its path relative to the source root."""

    path: Path
    relative_path: str
    package: Optional[PackageDescriptor] = None


@dataclass(frozen=True)
class ExtractionContext:
    """What an extractor knows about the file it is working on."""

    source_root: Path
    path: Path
    relative_path: str
    package_name: Optional[str] = None
    main_path: Optional[Path] = None


@dataclass
class ParseResult:
    """Records extracted from one file plus the file's AST."""

    records: List[DocRecord]
    ast: Any


@dataclass(frozen=True)
class PersistenceJob:
    """One AST to archive, keyed by its path under ``<destination>/ast``."""

    relative_path: str
    ast: Any


@dataclass
class RunStats:
    """Counters reported at the end of a run."""

    files_seen: int = 0
    files_matched: int = 0
    files_parsed: int = 0
    files_skipped: int = 0
    packages_found: int = 0
    asts_written: int = 0
