"""Synthetic records and the final ``index.json`` document."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Sequence

from .extractors.base import IdSource
from .logging import get_logger
from .models import DocRecord, PackageDescriptor

logger = get_logger("assembler")

OUTPUT_FILENAME = "index.json"


def build_index_record(index_path: Path, next_id: IdSource, *, display_name: str | None = None) -> Optional[DocRecord]:
    """Wrap the raw text of the index document, or return None if it is missing."""
    try:
        content = index_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning("Index file %s not found; skipping index record", index_path)
        return None
    return DocRecord(
        doc_id=next_id(),
        kind="index",
        name=display_name or index_path.name,
        longname=str(index_path.resolve()),
        static=True,
        access="public",
        payload={"content": content},
    )


def build_package_record(descriptor: PackageDescriptor, next_id: IdSource) -> DocRecord:
    return DocRecord(
        doc_id=next_id(),
        kind="package",
        name=descriptor.path.name,
        longname=str(descriptor.path),
        static=True,
        access="public",
        payload={"package": descriptor.content},
    )


def build_legacy_package_record(package_path: Path, next_id: IdSource) -> DocRecord:
    """Single-source mode: keep the descriptor's raw text. Read failures give empty content."""
    content = ""
    longname = ""
    try:
        content = package_path.read_text(encoding="utf-8")
        longname = str(package_path.resolve())
    except OSError:
        logger.debug("Package descriptor %s could not be read", package_path)
    return DocRecord(
        doc_id=next_id(),
        kind="legacy-package",
        name=package_path.name,
        longname=longname,
        static=True,
        access="public",
        payload={"package": None, "content": content},
    )


def write_output(records: Sequence[DocRecord], destination: Path) -> Path:
    """Serialize the final record list, pretty-printed, to ``index.json``."""
    destination.mkdir(parents=True, exist_ok=True)
    output_path = destination / OUTPUT_FILENAME
    payload = [record.to_dict() for record in records]
    output_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("wrote %d records to %s", len(payload), output_path)
    return output_path


__all__ = [
    "OUTPUT_FILENAME",
    "build_index_record",
    "build_legacy_package_record",
    "build_package_record",
    "write_output",
]
