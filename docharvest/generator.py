"""Run driver tying traversal, extraction, persistence and plugins together."""

from __future__ import annotations

import functools
import itertools
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from .assembler import (
    build_index_record,
    build_legacy_package_record,
    build_package_record,
    write_output,
)
from .config import HarvestConfig, apply_defaults, validate_config
from .errors import ConfigError
from .extraction import ExtractionDriver
from .extractors import ExtractorFactory, IdSource, PythonDocExtractor
from .logging import get_logger
from .matcher import PathMatcher
from .models import DocRecord, PackageDescriptor, PersistenceJob, RunStats, WalkEntry
from .parsing import Parser, PythonParser
from .persistence import AstPersistencePipeline
from .plugins import PluginRegistry, init_plugins, publish
from .resolver import resolve_duplicates
from .walker import WalkEvent, walk_root, walk_source

AST_SOURCE_PREFIX = "source"


@dataclass
class RunContext:
    """Everything one run needs, passed explicitly between stages."""

    config: HarvestConfig
    plugins: PluginRegistry
    matcher: PathMatcher
    driver: ExtractionDriver
    pipeline: AstPersistencePipeline
    next_id: IdSource
    package_name: Optional[str] = None
    main_path: Optional[Path] = None
    records: List[DocRecord] = field(default_factory=list)
    stats: RunStats = field(default_factory=RunStats)


@dataclass
class GenerateOutcome:
    """Result of a completed run."""

    output_path: Path
    records: List[DocRecord]
    stats: RunStats


class Generator:
    """Produces ``index.json`` and the AST archive for one configuration."""

    def __init__(
        self,
        parser: Parser | None = None,
        extractor_factory: ExtractorFactory | None = None,
        plugins: Optional[Iterable[object]] = None,
    ) -> None:
        self.parser = parser or PythonParser()
        self.extractor_factory = extractor_factory or PythonDocExtractor
        self._extra_plugins = list(plugins) if plugins is not None else []
        self.logger = get_logger("generator")

    def generate(self, config: HarvestConfig) -> GenerateOutcome:
        validate_config(config)

        registry = init_plugins(config.plugins, self._extra_plugins)
        registry.on_start()
        config = apply_defaults(config)
        config = registry.on_handle_config(config)
        validate_config(config)

        context = self._build_context(config, registry)
        self.logger.info("Collecting documentation from %s", config.source_root)
        with context.pipeline:
            self._collect(context)
        context.stats.asts_written = context.pipeline.written
        self.logger.info("finished generating files")

        self._append_synthetic_records(context)
        records = resolve_duplicates(context.records)
        records = context.plugins.on_handle_docs(records)
        output_path = write_output(records, config.destination)

        publish(context.plugins, config.destination)
        context.plugins.on_complete()

        self._log_stats(context.stats)
        return GenerateOutcome(output_path=output_path, records=records, stats=context.stats)

    def _build_context(self, config: HarvestConfig, registry: PluginRegistry) -> RunContext:
        matcher = PathMatcher(config.includes or (), config.excludes or ())
        next_id: IdSource = functools.partial(next, itertools.count(1))
        package_name, main_path = _read_package_entry(config.package)
        driver = ExtractionDriver(self.parser, self.extractor_factory, next_id, config.source_root)
        return RunContext(
            config=config,
            plugins=registry,
            matcher=matcher,
            driver=driver,
            pipeline=AstPersistencePipeline(config.destination),
            next_id=next_id,
            package_name=package_name,
            main_path=main_path,
        )

    def _collect(self, context: RunContext) -> None:
        for event in self._walk(context.config):
            if isinstance(event, PackageDescriptor):
                context.stats.packages_found += 1
                context.records.append(build_package_record(event, context.next_id))
                continue
            self._handle_file(context, event)

    @staticmethod
    def _walk(config: HarvestConfig) -> Iterator[WalkEvent]:
        if config.root is not None:
            return walk_root(config.root)
        if config.source is None:
            raise ConfigError("config.root or config.source is required")
        return walk_source(config.source)

    def _handle_file(self, context: RunContext, entry: WalkEntry) -> None:
        context.stats.files_seen += 1
        if not context.matcher.matches(entry.relative_path):
            self.logger.debug("skip %s", entry.relative_path)
            return
        context.stats.files_matched += 1

        package_name, main_path = context.package_name, context.main_path
        if entry.package is not None:
            package_name = entry.package.name
            main_path = _resolve_main(entry.package.directory, entry.package.main)

        result = context.driver.extract(entry, package_name=package_name, main_path=main_path)
        if result is None:
            context.stats.files_skipped += 1
            return
        context.stats.files_parsed += 1
        context.records.extend(result.records)
        context.pipeline.submit(
            PersistenceJob(relative_path=f"{AST_SOURCE_PREFIX}/{entry.relative_path}", ast=result.ast)
        )

    def _append_synthetic_records(self, context: RunContext) -> None:
        config = context.config
        if config.index is not None:
            display_name = Path(os.path.relpath(config.index, config.base_dir)).as_posix()
            record = build_index_record(config.index, context.next_id, display_name=display_name)
            if record is not None:
                context.records.append(record)
        if config.source is not None and config.package is not None:
            context.records.append(build_legacy_package_record(config.package, context.next_id))

    def _log_stats(self, stats: RunStats) -> None:
        self.logger.info(
            "%d files seen, %d matched, %d parsed, %d skipped, %d packages, %d ASTs written",
            stats.files_seen,
            stats.files_matched,
            stats.files_parsed,
            stats.files_skipped,
            stats.packages_found,
            stats.asts_written,
        )


def _read_package_entry(package_path: Optional[Path]) -> Tuple[Optional[str], Optional[Path]]:
    """Name and main file from a single-source package descriptor; unreadable ones are ignored."""
    if package_path is None:
        return None, None
    try:
        content = json.loads(package_path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None, None
    if not isinstance(content, dict):
        return None, None
    name = content.get("name") if isinstance(content.get("name"), str) else None
    return name, _resolve_main(package_path.parent, content.get("main"))


def _resolve_main(directory: Path, main: object) -> Optional[Path]:
    if not isinstance(main, str) or not main:
        return None
    return (directory / main).resolve()


__all__ = ["GenerateOutcome", "Generator", "RunContext"]
