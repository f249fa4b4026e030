"""Background AST archive writer.

Each parsed file's AST is streamed to ``<destination>/ast/<path>.json`` by a
single worker thread. At most one job is in flight: ``submit`` waits until the
previous dump has been flushed and closed before handing over the next one,
so the driver can parse the next file while the current one is written but
never runs ahead further than that.

Encoding walks the tree with an explicit stack rather than recursing, so
deeply nested expressions serialise regardless of the interpreter's
recursion limit.
"""

from __future__ import annotations

import ast
import json
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from types import TracebackType
from typing import Any, Callable, Iterator, List, Optional, Tuple, Type

from .errors import PersistenceError
from .logging import get_logger
from .models import PersistenceJob

logger = get_logger("persistence")

AST_DIRNAME = "ast"

_SCALARS = (str, int, float, bool, type(None))
# Stack entries: (True, literal chunk) or (False, value still to encode).
_Frame = Tuple[bool, Any]


def ast_to_json(value: Any) -> Any:
    """Encoder fallback that expands one ``ast`` node into a flat mapping."""
    if isinstance(value, ast.AST):
        data = {"type": type(value).__name__}
        for name, field_value in ast.iter_fields(value):
            data[name] = field_value
        for attribute in value._attributes:
            if hasattr(value, attribute):
                data[attribute] = getattr(value, attribute)
        return data
    if isinstance(value, (bytes, bytearray)):
        return value.decode("latin-1")
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    if isinstance(value, complex) or value is Ellipsis:
        return repr(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def iter_json_chunks(value: Any, default: Callable[[Any], Any] = ast_to_json) -> Iterator[str]:
    """Yield the JSON text for ``value`` piece by piece, in document order.

    Mappings, lists and tuples are expanded on an explicit stack; anything
    else that is not a JSON scalar goes through ``default`` first.
    """
    stack: List[_Frame] = [(False, value)]
    while stack:
        is_chunk, item = stack.pop()
        if is_chunk:
            yield item
            continue
        if isinstance(item, _SCALARS):
            yield json.dumps(item, ensure_ascii=False)
        elif isinstance(item, dict):
            stack.extend(reversed(_object_frames(item)))
        elif isinstance(item, (list, tuple)):
            stack.extend(reversed(_array_frames(item)))
        else:
            replacement = default(item)
            if replacement is item:
                raise TypeError(f"Object of type {type(item).__name__} is not JSON serializable")
            stack.append((False, replacement))


def _object_frames(mapping: dict) -> List[_Frame]:
    frames: List[_Frame] = [(True, "{")]
    for position, (key, item) in enumerate(mapping.items()):
        prefix = ", " if position else ""
        frames.append((True, f"{prefix}{json.dumps(_object_key(key), ensure_ascii=False)}: "))
        frames.append((False, item))
    frames.append((True, "}"))
    return frames


def _array_frames(items: Any) -> List[_Frame]:
    frames: List[_Frame] = [(True, "[")]
    for position, item in enumerate(items):
        if position:
            frames.append((True, ", "))
        frames.append((False, item))
    frames.append((True, "]"))
    return frames


def _object_key(key: Any) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, (int, float, bool, type(None))):
        return json.dumps(key)
    raise TypeError(f"Keys must be str, int, float, bool or None, not {type(key).__name__}")


class AstPersistencePipeline:
    """Single-admission writer for per-file AST dumps."""

    def __init__(
        self,
        destination: Path,
        *,
        default: Callable[[Any], Any] = ast_to_json,
    ) -> None:
        self._root = destination / AST_DIRNAME
        self._default = default
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="docharvest-ast")
        self._inflight: Optional[Future[Path]] = None
        self._closed = False
        self.written = 0

    def submit(self, job: PersistenceJob) -> Future[Path]:
        """Queue ``job`` once the previous job has finished.

        Raises ``PersistenceError`` if the previous job failed or the pipeline
        has been closed.
        """
        if self._closed:
            raise PersistenceError("AST persistence pipeline is already closed")
        self._wait_inflight()
        future = self._executor.submit(self._write, job)
        self._inflight = future
        return future

    def close(self) -> int:
        """Drain the pipeline and return the number of dumps written."""
        if self._closed:
            return self.written
        self._closed = True
        try:
            self._wait_inflight()
        finally:
            self._executor.shutdown(wait=True)
        logger.debug("AST pipeline drained after %d files", self.written)
        return self.written

    def abort(self) -> None:
        """Stop accepting work without waiting for queued dumps."""
        self._closed = True
        self._inflight = None
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "AstPersistencePipeline":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if exc_type is not None:
            self.abort()
        else:
            self.close()

    def _wait_inflight(self) -> None:
        future, self._inflight = self._inflight, None
        if future is None:
            return
        future.result()
        self.written += 1

    def _write(self, job: PersistenceJob) -> Path:
        target = self._root / f"{job.relative_path}.json"
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("w", encoding="utf-8") as handle:
                for chunk in iter_json_chunks(job.ast, self._default):
                    handle.write(chunk)
                handle.flush()
        except Exception as exc:
            raise PersistenceError(f"Failed to write AST dump {target}: {exc}") from exc
        logger.debug("write %s", target)
        return target


__all__ = ["AST_DIRNAME", "AstPersistencePipeline", "ast_to_json", "iter_json_chunks"]
