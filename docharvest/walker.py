"""Source tree traversal.

Both strategies are lazy generators over the same recursive primitive and do no
filtering of their own; the caller decides which files to keep.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Union, cast

from .errors import DescriptorError
from .logging import get_logger
from .models import PackageDescriptor, WalkEntry

DESCRIPTOR_NAME = "package.json"
DEFAULT_SOURCE_DIR = "src"

WalkEvent = Union[WalkEntry, PackageDescriptor]
_Recurse = Callable[[Path, Optional[PackageDescriptor]], Iterator[WalkEvent]]

logger = get_logger("walker")


def walk_source(source_dir: Path) -> Iterator[WalkEntry]:
    """Yield every file below ``source_dir``."""
    root = source_dir.resolve()

    def recurse(directory: Path, package: Optional[PackageDescriptor]) -> Iterator[WalkEvent]:
        return _walk(directory, root, recurse, package)

    yield from cast(Iterator[WalkEntry], recurse(root, None))


def walk_root(root_dir: Path) -> Iterator[WalkEvent]:
    """Yield files below ``root_dir``, jumping straight to each package's sources.

    A directory holding a package descriptor is not walked as a whole. The
    descriptor is yielded, then only its source directory (``directories.src``,
    default ``src``) is descended into, which keeps dependency folders and build
    output out of the run.
    """
    root = root_dir.resolve()

    def recurse(directory: Path, package: Optional[PackageDescriptor]) -> Iterator[WalkEvent]:
        descriptor_path = directory / DESCRIPTOR_NAME
        if not descriptor_path.is_file():
            yield from _walk(directory, root, recurse, package)
            return

        descriptor = _load_descriptor(descriptor_path)
        if descriptor is None:
            logger.error("Found unparseable package descriptor at %s; skipping %s", descriptor_path, directory)
            return
        logger.info("Found package at %s", descriptor_path)

        src_dir = _source_dir(descriptor)
        yield descriptor

        if not src_dir.exists():
            logger.error("Looked for project sources in %s, but the directory does not exist.", src_dir)
        elif not src_dir.is_dir():
            logger.error("Tried to find project sources in %s, which is not a directory.", src_dir)
        else:
            yield from recurse(src_dir, descriptor)
            return
        logger.error(
            "You are seeing this because the documented folder contains a %s. "
            'To override a package\'s source directory, set "directories": {"src": "mySrcDir"} in it.',
            DESCRIPTOR_NAME,
        )

    yield from recurse(root, None)


def _walk(
    directory: Path,
    root: Path,
    recurse: _Recurse,
    package: Optional[PackageDescriptor],
) -> Iterator[WalkEvent]:
    for entry in _list_dir(directory):
        path = Path(entry.path)
        if entry.is_file():
            yield WalkEntry(path=path, relative_path=_relative(path, root), package=package)
        elif entry.is_dir():
            yield from recurse(path, package)


def _list_dir(directory: Path) -> List[os.DirEntry]:
    with os.scandir(directory) as entries:
        return sorted(entries, key=lambda entry: entry.name)


def _relative(path: Path, root: Path) -> str:
    return Path(os.path.relpath(path, root)).as_posix()


def _load_descriptor(path: Path) -> Optional[PackageDescriptor]:
    try:
        content = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    if not isinstance(content, dict):
        return None
    return PackageDescriptor(path=path, content=content)


def _source_dir(descriptor: PackageDescriptor) -> Path:
    directories = descriptor.content.get("directories")
    src = directories.get("src") if isinstance(directories, dict) else None
    if src is not None and not isinstance(src, str):
        raise DescriptorError(
            f"{descriptor.path}: directories.src must be a string, got {type(src).__name__}"
        )
    return (descriptor.directory / (src or DEFAULT_SOURCE_DIR)).resolve()


__all__ = ["DESCRIPTOR_NAME", "WalkEvent", "walk_root", "walk_source"]
