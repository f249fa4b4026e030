"""End-to-end tests for docharvest.generator."""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Any, List

import pytest

from docharvest.config import HarvestConfig
from docharvest.errors import ConfigError, ExtractionError, PersistenceError, PublishError
from docharvest.extractors import PythonDocExtractor
from docharvest.generator import Generator
from docharvest.plugins import Plugin
from tests._fixtures.source_builder import SourceTreeBuilder


class LifecycleRecorder(Plugin):
    def __init__(self) -> None:
        super().__init__()
        self.calls: List[str] = []

    def on_start(self) -> None:
        self.calls.append("start")

    def on_handle_config(self, config):
        self.calls.append("config")

    def on_handle_docs(self, docs):
        self.calls.append("docs")

    def on_publish(self, write, copy, read):
        self.calls.append("publish")

    def on_complete(self) -> None:
        self.calls.append("complete")


def _index(builder: SourceTreeBuilder) -> List[dict]:
    return json.loads((builder.destination / "index.json").read_text(encoding="utf-8"))


def test_generate_writes_index_and_ast_archive(source_builder: SourceTreeBuilder) -> None:
    source_builder.write(
        {
            "README.md": "# Demo\n",
            "package.json": '{"name": "demo", "main": "src/app.py"}',
            "src/app.py": '''
                class App:
                    """Entry point."""

                    def __init__(self):
                        self.ready = False

                    def start(self):
                        self.ready = True
                ''',
            "src/util/helpers.py": "def helper():\n    pass\n",
            "src/test_app.py": "def test_nothing():\n    pass\n",
            "src/notes.txt": "not python",
        }
    )
    recorder = LifecycleRecorder()

    outcome = Generator(plugins=[recorder]).generate(source_builder.config())

    assert outcome.output_path == source_builder.destination / "index.json"
    index = _index(source_builder)
    by_longname = {item["longname"]: item for item in index}
    assert by_longname["app.py~App"]["importPath"] == "demo"
    assert by_longname["util/helpers.py~helper"]["importPath"] == "demo/util/helpers.py"
    assert [item["kind"] for item in index if item["longname"] == "app.py~App#ready"] == ["member"]
    assert not any("test_app" in item["longname"] for item in index)
    assert index[-2]["kind"] == "index"
    assert index[-2]["content"] == "# Demo\n"
    assert index[-1]["kind"] == "legacy-package"

    ast_dir = source_builder.destination / "ast" / "source"
    assert (ast_dir / "app.py.json").exists()
    assert (ast_dir / "util" / "helpers.py.json").exists()
    assert not (ast_dir / "test_app.py.json").exists()

    assert outcome.stats.files_seen == 4
    assert outcome.stats.files_parsed == 2
    assert outcome.stats.asts_written == 2
    assert recorder.calls == ["start", "config", "docs", "publish", "complete"]


def test_parse_failure_does_not_stop_the_run(source_builder: SourceTreeBuilder) -> None:
    source_builder.write(
        {
            "src/bad.py": "def broken(:\n",
            "src/good1.py": "def one():\n    pass\n",
            "src/good2.py": "def two():\n    pass\n",
        }
    )

    outcome = Generator().generate(source_builder.config())

    longnames = {item["longname"] for item in _index(source_builder)}
    assert {"good1.py~one", "good2.py~two"} <= longnames
    assert not any(name.startswith("bad.py") for name in longnames)
    assert outcome.stats.files_skipped == 1
    assert not (source_builder.destination / "ast" / "source" / "bad.py.json").exists()


def test_deeply_nested_expression_is_archived(source_builder: SourceTreeBuilder) -> None:
    terms = " + ".join(f"'x{index}'" for index in range(400))
    source_builder.write({"src/big.py": f"MESSAGE = {terms}\n"})

    outcome = Generator().generate(source_builder.config())

    assert "big.py~MESSAGE" in {item["longname"] for item in _index(source_builder)}
    dump = source_builder.destination / "ast" / "source" / "big.py.json"
    assert json.loads(dump.read_text(encoding="utf-8"))["type"] == "Module"
    assert outcome.stats.asts_written == 1


def test_empty_includes_match_nothing(source_builder: SourceTreeBuilder) -> None:
    source_builder.write({"src/a.py": "class A:\n    pass\n"})

    outcome = Generator().generate(source_builder.config(includes=[]))

    assert not any(item["longname"].startswith("a.py") for item in _index(source_builder))
    assert outcome.stats.files_matched == 0


def test_annotated_attribute_collapses_with_constructor_assignment(source_builder: SourceTreeBuilder) -> None:
    source_builder.write(
        {
            "src/point.py": '''
                class Point:
                    x: int

                    def __init__(self, x):
                        self.x = x
                ''',
        }
    )

    Generator().generate(source_builder.config())

    members = [item for item in _index(source_builder) if item["kind"] == "member"]
    assert [item["longname"] for item in members] == ["point.py~Point#x"]
    assert members[0]["type"] == "int"


def test_index_order_follows_docs_hook(source_builder: SourceTreeBuilder) -> None:
    source_builder.write({"src/mod.py": "A = 1\nB = 2\n"})

    class Reverse(Plugin):
        def on_handle_docs(self, docs):
            return list(reversed(docs))

    outcome = Generator(plugins=[Reverse()]).generate(source_builder.config())

    index = _index(source_builder)
    assert [item["__docId__"] for item in index] == [record.doc_id for record in outcome.records]
    ids = [item["__docId__"] for item in index]
    assert ids == sorted(ids, reverse=True)


def test_root_mode_emits_package_records(source_builder: SourceTreeBuilder) -> None:
    source_builder.write(
        {
            "packages/web/package.json": '{"name": "web", "directories": {"src": "lib"}}',
            "packages/web/lib/server.py": "def serve():\n    pass\n",
            "packages/web/node_modules/dep/index.py": "def dep():\n    pass\n",
            "packages/cli/package.json": '{"name": "cli"}',
        }
    )

    Generator().generate(source_builder.config(root="."))

    index = _index(source_builder)
    packages = [item for item in index if item["kind"] == "package"]
    assert sorted(item["package"]["name"] for item in packages) == ["cli", "web"]
    longnames = {item["longname"] for item in index}
    assert "packages/web/lib/server.py~serve" in longnames
    assert not any(name.endswith("~dep") for name in longnames)
    assert not any(item["kind"] == "legacy-package" for item in index)
    assert (source_builder.destination / "ast" / "source" / "packages" / "web" / "lib" / "server.py.json").exists()


def test_config_hook_can_replace_config(source_builder: SourceTreeBuilder) -> None:
    source_builder.write({"src/keep.py": "A = 1\n", "src/drop.py": "B = 2\n"})

    class ExcludeDrop(Plugin):
        def on_handle_config(self, config):
            return replace(config, excludes=config.excludes + (r"drop\.py$",))

    Generator(plugins=[ExcludeDrop()]).generate(source_builder.config())

    longnames = {item["longname"] for item in _index(source_builder)}
    assert "keep.py~A" in longnames
    assert "drop.py~B" not in longnames


def test_config_hook_result_is_revalidated(source_builder: SourceTreeBuilder) -> None:
    source_builder.write({"src/mod.py": "A = 1\n"})

    class Conflicting(Plugin):
        def on_handle_config(self, config):
            return replace(config, root=config.source)

    with pytest.raises(ConfigError):
        Generator(plugins=[Conflicting()]).generate(source_builder.config())
    assert not source_builder.destination.exists()


def test_extraction_failure_is_fatal(source_builder: SourceTreeBuilder) -> None:
    source_builder.write({"src/mod.py": "A = 1\n"})
    recorder = LifecycleRecorder()

    def factory(tree: Any, context, next_id):
        extractor = PythonDocExtractor(tree, context, next_id)

        def explode(node, parent):
            raise RuntimeError("model corrupted")

        extractor.push = explode  # type: ignore[method-assign]
        return extractor

    with pytest.raises(ExtractionError):
        Generator(extractor_factory=factory, plugins=[recorder]).generate(source_builder.config())

    assert "complete" not in recorder.calls
    assert not (source_builder.destination / "index.json").exists()


def test_persistence_failure_is_fatal(source_builder: SourceTreeBuilder) -> None:
    source_builder.write({"src/mod.py": "A = 1\n"})
    source_builder.destination.mkdir()
    (source_builder.destination / "ast").write_text("blocks the archive", encoding="utf-8")
    recorder = LifecycleRecorder()

    with pytest.raises(PersistenceError):
        Generator(plugins=[recorder]).generate(source_builder.config())

    assert "docs" not in recorder.calls
    assert not (source_builder.destination / "index.json").exists()


def test_publish_failure_is_fatal_after_index(source_builder: SourceTreeBuilder) -> None:
    source_builder.write({"src/mod.py": "A = 1\n"})
    recorder = LifecycleRecorder()

    class Broken(Plugin):
        def on_publish(self, write, copy, read):
            raise ValueError("cannot publish")

    with pytest.raises(PublishError):
        Generator(plugins=[Broken(), recorder]).generate(source_builder.config())

    assert (source_builder.destination / "index.json").exists()
    assert "complete" not in recorder.calls


def test_publish_writes_pass_through_content_hook(source_builder: SourceTreeBuilder) -> None:
    source_builder.write({"src/mod.py": "A = 1\n"})

    class Site(Plugin):
        def on_handle_content(self, content, path):
            return content.replace("{{count}}", "1")

        def on_publish(self, write, copy, read):
            docs = json.loads(read("index.json"))
            write("summary.txt", "records: {{count}} of %d" % len(docs))

    Generator(plugins=[Site()]).generate(source_builder.config())

    summary = (source_builder.destination / "summary.txt").read_text(encoding="utf-8")
    assert summary.startswith("records: 1 of ")


def test_walk_without_source_or_root_raises_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        Generator._walk(HarvestConfig(destination=tmp_path))
