"""Configuration loading for docharvest (.docharvest.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".docharvest.yml"

DEFAULT_INCLUDES: Tuple[str, ...] = (r"\.py$",)
DEFAULT_EXCLUDES: Tuple[str, ...] = (
    r"(^|/)conftest\.py$",
    r"(^|/)setup\.py$",
    r"(^|/)test_[^/]*\.py$",
    r"_test\.py$",
)
DEFAULT_INDEX = "./README.md"
DEFAULT_PACKAGE = "./package.json"

# Options that moved out of the core into plugins.
_RETIRED_KEYS: Tuple[Tuple[str, str], ...] = (
    ("access", "docharvest-standard-plugin"),
    ("autoPrivate", "docharvest-standard-plugin"),
    ("unexportIdentifier", "docharvest-standard-plugin"),
    ("undocumentIdentifier", "docharvest-standard-plugin"),
    ("builtinExternal", "docharvest-standard-plugin"),
    ("coverage", "docharvest-standard-plugin"),
    ("test", "docharvest-standard-plugin"),
    ("title", "docharvest-standard-plugin"),
    ("manual", "docharvest-standard-plugin"),
    ("lint", "docharvest-standard-plugin"),
    ("includeSource", "docharvest-exclude-source-plugin"),
    ("styles", "docharvest-inject-style-plugin"),
    ("scripts", "docharvest-inject-script-plugin"),
    ("experimentalProposal", "docharvest-proposal-plugin"),
)


@dataclass(frozen=True)
class PluginSpec:
    """A plugin reference from the ``plugins`` list."""

    name: str
    option: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class HarvestConfig:
    """Normalized run parameters."""

    destination: Path
    root: Optional[Path] = None
    source: Optional[Path] = None
    package: Optional[Path] = None
    includes: Optional[Tuple[str, ...]] = None
    excludes: Optional[Tuple[str, ...]] = None
    index: Optional[Path] = None
    plugins: Tuple[PluginSpec, ...] = ()
    base_dir: Path = field(default_factory=Path.cwd)

    @property
    def source_root(self) -> Path:
        """Directory that relative file paths are computed against."""
        target = self.root if self.root is not None else self.source
        if target is None:
            raise ConfigError("config.root or config.source is required")
        return target.resolve()


def load_config(config_path: Path) -> HarvestConfig:
    """Load and validate configuration from disk."""
    config_file = _resolve_config_path(config_path)
    if not config_file.exists():
        raise ConfigError(f"Configuration file not found: {config_file}")

    data = _read_config(config_file)
    return config_from_mapping(data, base_dir=config_file.parent)


def config_from_mapping(data: Mapping[str, Any], *, base_dir: Path | None = None) -> HarvestConfig:
    """Build a validated config from raw key/value data."""
    if not isinstance(data, Mapping):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")
    check_retired_keys(data)

    base = (base_dir or Path.cwd()).resolve()
    config = HarvestConfig(
        destination=_as_path(data.get("destination"), base),  # type: ignore[arg-type]
        root=_as_path(data.get("root"), base),
        source=_as_path(data.get("source"), base),
        package=_as_path(data.get("package"), base),
        includes=_as_patterns(data.get("includes")),
        excludes=_as_patterns(data.get("excludes")),
        index=_as_path(data.get("index"), base),
        plugins=tuple(_as_plugin_specs(data.get("plugins"))),
        base_dir=base,
    )
    validate_config(config)
    return config


def validate_config(config: HarvestConfig) -> None:
    """Check the pre-flight invariants; raise ``ConfigError`` on violation."""
    if config.root is None and config.source is None:
        raise ConfigError("config.root or config.source is required")
    if config.root is not None:
        if config.source is not None:
            raise ConfigError("config.root and config.source are mutually exclusive")
        if config.package is not None:
            raise ConfigError("config.package cannot be combined with config.root")
    if config.destination is None:
        raise ConfigError("config.destination is required")


def apply_defaults(config: HarvestConfig) -> HarvestConfig:
    """Return a copy of ``config`` with unset options filled in."""
    updates: Dict[str, Any] = {}
    if config.includes is None:
        updates["includes"] = DEFAULT_INCLUDES
    if config.excludes is None:
        updates["excludes"] = DEFAULT_EXCLUDES
    if config.index is None:
        updates["index"] = (config.base_dir / DEFAULT_INDEX).resolve()
    if config.source is not None and config.package is None:
        updates["package"] = (config.base_dir / DEFAULT_PACKAGE).resolve()
    return replace(config, **updates) if updates else config


def check_retired_keys(data: Mapping[str, Any]) -> None:
    """Reject options that are now provided by plugins."""
    problems = [
        f"config.{key} is no longer supported; use {plugin}"
        for key, plugin in _RETIRED_KEYS
        if key in data
    ]
    if problems:
        raise ConfigError("; ".join(problems))


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _as_path(value: Any, base: Path) -> Optional[Path]:
    if value is None:
        return None
    if not isinstance(value, (str, Path)):
        raise ConfigError(f"Expected a path, got {type(value).__name__}")
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = base / path
    return path.resolve()


def _as_patterns(value: Any) -> Optional[Tuple[str, ...]]:
    """Keep an explicit empty list distinct from an unset option."""
    if value is None:
        return None
    return tuple(_as_str_list(value))


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    raise ConfigError(f"Expected a list of strings, got {type(value).__name__}")


def _as_plugin_specs(value: Any) -> List[PluginSpec]:
    specs: List[PluginSpec] = []
    for item in _as_list(value):
        if isinstance(item, str):
            specs.append(PluginSpec(name=item))
            continue
        if isinstance(item, Mapping) and isinstance(item.get("name"), str):
            option = item.get("option") or {}
            if not isinstance(option, Mapping):
                raise ConfigError(f"Plugin '{item['name']}' option must be a mapping")
            specs.append(PluginSpec(name=item["name"], option=dict(option)))
            continue
        raise ConfigError("Each plugin entry must be a name or a mapping with a 'name' key")
    return specs


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_EXCLUDES",
    "DEFAULT_INCLUDES",
    "HarvestConfig",
    "PluginSpec",
    "apply_defaults",
    "check_retired_keys",
    "config_from_mapping",
    "load_config",
    "validate_config",
]
