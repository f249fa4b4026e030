"""Plugin loading, hook dispatch and the publish phase."""

from __future__ import annotations

import importlib
import shutil
from importlib import metadata
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, TypeVar, Union

from . import invalid_code
from .config import HarvestConfig, PluginSpec
from .errors import PluginError, PublishError
from .logging import get_logger
from .models import DocRecord

_ENTRY_POINT_GROUP = "docharvest.plugins"

HOOK_NAMES = (
    "on_start",
    "on_handle_config",
    "on_handle_docs",
    "on_handle_content",
    "on_publish",
    "on_complete",
)

Content = Union[str, bytes]
WriteFn = Callable[..., None]
CopyFn = Callable[[Union[str, Path], Union[str, Path]], None]
ReadFn = Callable[[Union[str, Path]], str]

StartHook = Callable[[], None]
ConfigHook = Callable[[HarvestConfig], Optional[HarvestConfig]]
DocsHook = Callable[[List[DocRecord]], Optional[List[DocRecord]]]
ContentHook = Callable[[Content, Path], Optional[Content]]
PublishHook = Callable[[WriteFn, CopyFn, ReadFn], None]
CompleteHook = Callable[[], None]

_T = TypeVar("_T")

logger = get_logger("plugins")


class Plugin:
    """Convenience base class for plugins.

    A plugin implements any subset of the hooks named in ``HOOK_NAMES``. Hooks
    that transform a value may return None to leave it unchanged.
    """

    def __init__(self, option: Mapping[str, Any] | None = None) -> None:
        self.option: Dict[str, Any] = dict(option or {})


class PluginRegistry:
    """Hook name to implementations, in plugin registration order."""

    def __init__(self) -> None:
        self._hooks: Dict[str, List[Callable[..., Any]]] = {name: [] for name in HOOK_NAMES}
        self.plugins: List[object] = []

    def register(self, plugin: object) -> None:
        self.plugins.append(plugin)
        for name in HOOK_NAMES:
            hook = getattr(plugin, name, None)
            if callable(hook):
                self._hooks[name].append(hook)

    def hooks(self, name: str) -> List[Callable[..., Any]]:
        return list(self._hooks[name])

    def on_start(self) -> None:
        for hook in self._hooks["on_start"]:
            hook()

    def on_handle_config(self, config: HarvestConfig) -> HarvestConfig:
        for hook in self._hooks["on_handle_config"]:
            config = _keep(config, hook(config))
        return config

    def on_handle_docs(self, docs: List[DocRecord]) -> List[DocRecord]:
        for hook in self._hooks["on_handle_docs"]:
            docs = list(_keep(docs, hook(docs)))
        return docs

    def on_handle_content(self, content: Content, path: Path) -> Content:
        for hook in self._hooks["on_handle_content"]:
            content = _keep(content, hook(content, path))
        return content

    def on_publish(self, write: WriteFn, copy: CopyFn, read: ReadFn) -> None:
        for hook in self._hooks["on_publish"]:
            hook(write, copy, read)

    def on_complete(self) -> None:
        for hook in self._hooks["on_complete"]:
            hook()


def _keep(current: _T, result: Optional[_T]) -> _T:
    return current if result is None else result


def init_plugins(specs: Sequence[PluginSpec], extra: Iterable[object] = ()) -> PluginRegistry:
    """Load configured plugins, then any already-built plugin objects."""
    registry = PluginRegistry()
    for spec in specs:
        registry.register(load_plugin(spec))
        logger.debug("Loaded plugin %s", spec.name)
    for plugin in extra:
        registry.register(plugin)
    return registry


def load_plugin(spec: PluginSpec) -> object:
    """Resolve a plugin name via entry points, then as an import path."""
    loaded = _load_entry_point(spec.name)
    if loaded is None:
        loaded = _import_target(spec.name)
    return _coerce_plugin(spec.name, loaded, spec.option)


def _load_entry_point(name: str) -> Optional[object]:
    for entry in _iter_entry_points():
        if entry.name != name:
            continue
        try:
            return entry.load()
        except Exception as exc:
            raise PluginError(f"Failed to load plugin entry point '{name}': {exc}") from exc
    return None


def _import_target(name: str) -> object:
    module_name, _, attribute = name.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise PluginError(f"Plugin '{name}' could not be imported: {exc}") from exc
    if not attribute:
        return module
    try:
        return getattr(module, attribute)
    except AttributeError as exc:
        raise PluginError(f"Plugin '{name}' has no attribute '{attribute}'") from exc


def _coerce_plugin(name: str, obj: object, option: Mapping[str, Any]) -> object:
    if isinstance(obj, ModuleType):
        return obj
    if isinstance(obj, type):
        return obj(dict(option))
    if _has_hooks(obj):
        return obj
    if callable(obj):
        instance = obj(dict(option))
        if _has_hooks(instance):
            return instance
    raise PluginError(f"Plugin '{name}' does not implement any hook")


def _has_hooks(obj: object) -> bool:
    return any(callable(getattr(obj, hook, None)) for hook in HOOK_NAMES)


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points(group=_ENTRY_POINT_GROUP)


def publish(registry: PluginRegistry, destination: Path) -> None:
    """Run the ``on_publish`` hooks with helpers rooted at ``destination``."""

    def write(file_path: Union[str, Path], content: Content, encoding: str = "utf-8") -> None:
        target = destination / file_path
        content = registry.on_handle_content(content, target)
        logger.info("write %s", target)
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content, encoding=encoding)

    def copy(src_path: Union[str, Path], dest_path: Union[str, Path]) -> None:
        source = Path(src_path)
        target = destination / dest_path
        logger.info("copy %s", target)
        if source.is_dir():
            shutil.copytree(source, target, dirs_exist_ok=True)
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, target)

    def read(file_path: Union[str, Path]) -> str:
        return (destination / file_path).read_text(encoding="utf-8")

    try:
        registry.on_publish(write, copy, read)
    except Exception as exc:
        invalid_code.show_error(exc)
        raise PublishError(f"Publish phase failed: {exc}") from exc


__all__ = [
    "CompleteHook",
    "ConfigHook",
    "ContentHook",
    "DocsHook",
    "HOOK_NAMES",
    "Plugin",
    "PublishHook",
    "StartHook",
    "PluginRegistry",
    "init_plugins",
    "load_plugin",
    "publish",
]
