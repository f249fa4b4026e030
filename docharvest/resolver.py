"""Cross-file duplicate resolution over documentation records."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Sequence, Set

from .models import DocRecord

MEMBER_KIND = "member"


def resolve_duplicates(records: Sequence[DocRecord]) -> List[DocRecord]:
    """Drop redundant ``member`` records, preserving the order of survivors.

    A member loses to any record of another kind with the same longname
    (getters, setters and methods describe the symbol more precisely). Members
    that only collide with each other collapse to the one created first.
    """
    kinds_by_longname: Dict[str, Set[str]] = defaultdict(set)
    members_by_longname: Dict[str, List[DocRecord]] = defaultdict(list)
    for record in records:
        kinds_by_longname[record.longname].add(record.kind)
        if record.kind == MEMBER_KIND:
            members_by_longname[record.longname].append(record)

    removed: Set[int] = set()
    for longname, members in members_by_longname.items():
        if kinds_by_longname[longname] - {MEMBER_KIND}:
            removed.update(id(member) for member in members)
            continue
        if len(members) > 1:
            first = min(members, key=lambda member: member.doc_id)
            removed.update(id(member) for member in members if member is not first)

    return [record for record in records if id(record) not in removed]


__all__ = ["resolve_duplicates"]
