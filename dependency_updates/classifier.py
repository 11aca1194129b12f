"""
Partitioning of scored dependencies into review buckets.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Sequence, Tuple

from .compatibility import is_compatible
from .models import DependencyRecord, Partition


def update_allowed(record: DependencyRecord) -> bool:
    """Whether the record's latest candidate can be taken.

    Direct dependencies are always updatable; transitive ones must stay
    caret compatible.
    """
    if record.update is None:
        return False
    return record.direct or is_compatible(record.version, record.update.latest)


def classify(records: Iterable[DependencyRecord]) -> Tuple[DependencyRecord, ...]:
    """Return the records with ``update_allowed`` computed."""
    return tuple(replace(record, update_allowed=update_allowed(record)) for record in records)


def bucket_for(record: DependencyRecord) -> str:
    """Name of the bucket a record belongs to, or an empty string."""
    if record.update is None:
        return "vulnerable_no_update" if record.has_advisory else ""
    if not record.update_allowed:
        return "blocked_by_semver"
    return "updatable_dev" if record.dev else "updatable_non_dev"


def priority_order(record: DependencyRecord):
    return (-record.priority_score,) + tuple(record.key)


def partition(records: Sequence[DependencyRecord]) -> Partition:
    """Split records with an update or an advisory into disjoint buckets.

    ``update_allowed`` must already be set (see :func:`classify`). Each
    bucket is ordered by descending priority, ties broken by identity key.
    """
    buckets: Dict[str, List[DependencyRecord]] = {name: [] for name in Partition.BUCKETS}
    for record in records:
        name = bucket_for(record)
        if name:
            buckets[name].append(record)

    return Partition(**{
        name: tuple(sorted(members, key=priority_order))
        for name, members in buckets.items()
    })
