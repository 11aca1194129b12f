"""
Construction and validation of the input dependency graph.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Sequence, Set, Tuple, Union

from .errors import MalformedGraphInput
from .models import DependencyRecord, IdentityKey, VersionConflict
from .versions import try_parse_version


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "version", "source", "direct", "dev")

Row = Union[Mapping, Sequence]


def _row_to_record(index: int, row: Row) -> DependencyRecord:
    if isinstance(row, Mapping):
        missing = [f for f in REQUIRED_FIELDS if row.get(f) is None]
        if missing:
            raise MalformedGraphInput(
                f"Dependency #{index} is missing required fields: {', '.join(missing)}"
            )
        values = [row[f] for f in REQUIRED_FIELDS]
    else:
        if len(row) != len(REQUIRED_FIELDS):
            raise MalformedGraphInput(
                f"Dependency #{index} must have {len(REQUIRED_FIELDS)} fields, got {len(row)}"
            )
        values = list(row)

    name, version, source, direct, dev = values
    return DependencyRecord(
        name=name,
        version=str(version),
        source=source,
        direct=direct,
        dev=dev,
    )


def records_from_rows(rows: Iterable[Row]) -> Tuple[DependencyRecord, ...]:
    """Build records from ``(name, version, source, direct, dev)`` rows or mappings."""
    records = tuple(_row_to_record(i, row) for i, row in enumerate(rows))
    validate_graph(records)
    return records


def validate_graph(records: Sequence[DependencyRecord]) -> None:
    """Check required fields and identity key uniqueness.

    Raises:
        MalformedGraphInput: on the first problem found
    """
    seen: Set[IdentityKey] = set()
    for record in records:
        if not record.name or not isinstance(record.name, str):
            raise MalformedGraphInput(f"Dependency has no name: {record!r}")
        if not record.source or not isinstance(record.source, str):
            raise MalformedGraphInput(f"Dependency {record.name} has no source")
        if not isinstance(record.direct, bool) or not isinstance(record.dev, bool):
            raise MalformedGraphInput(f"Dependency {record.name} has non-boolean role flags")
        if try_parse_version(record.version) is None:
            raise MalformedGraphInput(
                f"Dependency {record.name} has an invalid version: {record.version!r}"
            )
        if record.key in seen:
            raise MalformedGraphInput(f"Duplicate dependency occurrence: {record.key}")
        seen.add(record.key)


def find_version_conflicts(records: Iterable[DependencyRecord]) -> Tuple[VersionConflict, ...]:
    """Packages used directly at one version and transitively at another."""
    direct: Dict[str, Set[str]] = {}
    transitive: Dict[str, Set[str]] = {}
    for record in records:
        target = direct if record.direct else transitive
        target.setdefault(record.name, set()).add(record.version)

    conflicts: List[VersionConflict] = []
    for name in sorted(direct.keys() & transitive.keys()):
        for direct_version in sorted(direct[name]):
            for transitive_version in sorted(transitive[name]):
                if direct_version != transitive_version:
                    conflicts.append(VersionConflict(name, direct_version, transitive_version))

    if conflicts:
        logger.info("Found %d direct/transitive version conflicts", len(conflicts))
    return tuple(conflicts)
