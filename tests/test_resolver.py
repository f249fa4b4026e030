"""Tests for docharvest.resolver."""

from __future__ import annotations

from docharvest.models import DocRecord
from docharvest.resolver import resolve_duplicates


def _record(doc_id: int, kind: str, longname: str) -> DocRecord:
    return DocRecord(doc_id=doc_id, kind=kind, name=longname.split("#")[-1], longname=longname)


def test_member_loses_to_method_regardless_of_id() -> None:
    records = [_record(1, "member", "Foo#x"), _record(2, "method", "Foo#x")]
    assert [r.doc_id for r in resolve_duplicates(records)] == [2]

    reversed_ids = [_record(2, "member", "Foo#x"), _record(1, "method", "Foo#x")]
    assert [r.doc_id for r in resolve_duplicates(reversed_ids)] == [1]


def test_duplicate_members_collapse_to_lowest_id() -> None:
    records = [_record(3, "member", "Foo#y"), _record(1, "member", "Foo#y"), _record(2, "member", "Foo#y")]

    assert [r.doc_id for r in resolve_duplicates(records)] == [1]


def test_getter_and_setter_both_survive_and_remove_members() -> None:
    records = [
        _record(1, "member", "Foo#z"),
        _record(2, "getter", "Foo#z"),
        _record(3, "setter", "Foo#z"),
        _record(4, "member", "Foo#z"),
    ]

    assert [r.kind for r in resolve_duplicates(records)] == ["getter", "setter"]


def test_non_member_duplicates_are_untouched_and_order_is_kept() -> None:
    records = [
        _record(5, "class", "Foo"),
        _record(1, "member", "Foo#a"),
        _record(2, "method", "Foo#b"),
        _record(3, "method", "Foo#b"),
        _record(4, "index", "/abs/README.md"),
        _record(6, "member", "Foo#a"),
    ]

    assert [r.doc_id for r in resolve_duplicates(records)] == [5, 1, 2, 3, 4]


def test_empty_input() -> None:
    assert resolve_duplicates([]) == []
