"""Helper utilities for constructing temporary source trees in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any, Mapping

from docharvest.config import HarvestConfig, config_from_mapping


class SourceTreeBuilder:
    """Utility for writing files into a throwaway project and configuring runs over it."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "project"
        self.root.mkdir()
        self.destination = tmp_path / "out"

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the project."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def config(self, **options: Any) -> HarvestConfig:
        """Return a source-mode config rooted at the project unless overridden."""
        data: dict[str, Any] = {"destination": str(self.destination)}
        if "root" not in options:
            data["source"] = "src"
        data.update(options)
        return config_from_mapping(data, base_dir=self.root)


__all__ = ["SourceTreeBuilder"]
