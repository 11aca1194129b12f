"""
Comparison of a snapshot against the previous one for the same repository.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from .models import (
    Advisory,
    AdvisoryFinding,
    AnalysisSnapshot,
    ChangeSummary,
    DependencyRecord,
    IdentityKey,
)


def index_by_key(records: Iterable[DependencyRecord]) -> Dict[IdentityKey, DependencyRecord]:
    """Map identity keys to records."""
    return {record.key: record for record in records}


def _new_findings(
    record: DependencyRecord,
    current: Tuple[Advisory, ...],
    previous: Tuple[Advisory, ...],
) -> List[AdvisoryFinding]:
    known = {advisory.id for advisory in previous}
    return [
        AdvisoryFinding(dependency=record.key, advisory=advisory)
        for advisory in current
        if advisory.id not in known
    ]


def diff(current: AnalysisSnapshot, previous: Optional[AnalysisSnapshot]) -> ChangeSummary:
    """Summarize new updates and advisories since ``previous``.

    Records are matched by identity key, never by position. Without a
    previous snapshot there is nothing to compare against and the summary
    is empty.
    """
    if previous is None:
        return ChangeSummary()

    before = index_by_key(previous.dependencies)
    new_updates: List[DependencyRecord] = []
    new_vulnerabilities: List[AdvisoryFinding] = []
    new_warnings: List[AdvisoryFinding] = []

    for record in current.dependencies:
        old = before.get(record.key)

        if record.update is not None and (old is None or old.update is None):
            new_updates.append(record)

        new_vulnerabilities.extend(_new_findings(
            record, record.vulnerabilities, old.vulnerabilities if old else ()
        ))
        new_warnings.extend(_new_findings(
            record, record.warnings, old.warnings if old else ()
        ))

    return ChangeSummary(
        new_updates=tuple(new_updates),
        new_vulnerabilities=tuple(new_vulnerabilities),
        new_warnings=tuple(new_warnings),
    )
