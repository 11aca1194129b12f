"""
Conversion of snapshots and analysis inputs to and from JSON documents.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .advisories import advisories_from_audit_report
from .errors import AdvisoryDataUnavailable, MalformedGraphInput
from .graph import records_from_rows
from .models import (
    Advisory,
    AdvisoryFinding,
    AnalysisSnapshot,
    ChangeSummary,
    Commit,
    DependencyRecord,
    IdentityKey,
    Partition,
    PreviousAnalysis,
    UpdateCandidate,
    UpdateMetadata,
    VersionConflict,
    DEFAULT_BUILD_SCRIPTS,
)
from .time_utils import parse_timestamp


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisInput:
    """Everything needed for one analysis run, as read from a bundle file."""

    repository: str
    commit: str
    dependencies: Tuple[DependencyRecord, ...]
    candidates: Dict[Tuple[str, str], UpdateCandidate]
    advisories: Tuple[Advisory, ...]


def metadata_to_dict(metadata: Optional[UpdateMetadata]) -> Optional[Dict[str, Any]]:
    if metadata is None:
        return None
    return {
        "changelog_url": metadata.changelog_url,
        "changelog_text": metadata.changelog_text,
        "commits_url": metadata.commits_url,
        "commits": [{"message": c.message, "html_url": c.html_url} for c in metadata.commits],
    }


def metadata_from_dict(data: Optional[Mapping]) -> Optional[UpdateMetadata]:
    if not data:
        return None
    return UpdateMetadata(
        changelog_url=data.get("changelog_url"),
        changelog_text=data.get("changelog_text"),
        commits_url=data.get("commits_url"),
        commits=tuple(
            Commit(message=c.get("message", ""), html_url=c.get("html_url", ""))
            for c in data.get("commits") or ()
        ),
    )


def candidate_to_dict(candidate: Optional[UpdateCandidate]) -> Optional[Dict[str, Any]]:
    if candidate is None:
        return None
    return {
        "versions": list(candidate.versions),
        "metadata": metadata_to_dict(candidate.metadata),
        "build_script_changed": candidate.build_script_changed,
        "build_scripts": list(candidate.build_scripts),
    }


def candidate_from_dict(data: Optional[Mapping]) -> Optional[UpdateCandidate]:
    if not data or not data.get("versions"):
        return None
    return UpdateCandidate(
        versions=tuple(str(v) for v in data["versions"]),
        metadata=metadata_from_dict(data.get("metadata")),
        build_script_changed=bool(data.get("build_script_changed", False)),
        build_scripts=tuple(data.get("build_scripts") or DEFAULT_BUILD_SCRIPTS),
    )


def advisory_to_dict(advisory: Advisory) -> Dict[str, Any]:
    return {
        "id": advisory.id,
        "package": advisory.package,
        "title": advisory.title,
        "kind": advisory.kind,
        "patched": list(advisory.patched),
        "unaffected": list(advisory.unaffected),
        "description": advisory.description,
        "date": advisory.date,
        "url": advisory.url,
        "informational": advisory.informational,
    }


def advisory_from_dict(data: Mapping) -> Advisory:
    return Advisory(
        id=data["id"],
        package=data["package"],
        title=data.get("title", ""),
        kind=data.get("kind", "vulnerability"),
        patched=tuple(data.get("patched") or ()),
        unaffected=tuple(data.get("unaffected") or ()),
        description=data.get("description", ""),
        date=data.get("date"),
        url=data.get("url"),
        informational=data.get("informational"),
    )


def record_to_dict(record: DependencyRecord) -> Dict[str, Any]:
    return {
        "name": record.name,
        "version": record.version,
        "source": record.source,
        "direct": record.direct,
        "dev": record.dev,
        "update": candidate_to_dict(record.update),
        "vulnerabilities": [advisory_to_dict(a) for a in record.vulnerabilities],
        "warnings": [advisory_to_dict(a) for a in record.warnings],
        "priority_score": record.priority_score,
        "priority_reasons": list(record.priority_reasons),
        "risk_score": record.risk_score,
        "risk_reasons": list(record.risk_reasons),
        "update_allowed": record.update_allowed,
    }


def record_from_dict(data: Mapping) -> DependencyRecord:
    return DependencyRecord(
        name=data["name"],
        version=data["version"],
        source=data["source"],
        direct=data["direct"],
        dev=data["dev"],
        update=candidate_from_dict(data.get("update")),
        vulnerabilities=tuple(advisory_from_dict(a) for a in data.get("vulnerabilities") or ()),
        warnings=tuple(advisory_from_dict(a) for a in data.get("warnings") or ()),
        priority_score=data.get("priority_score", 0),
        priority_reasons=tuple(data.get("priority_reasons") or ()),
        risk_score=data.get("risk_score", 0),
        risk_reasons=tuple(data.get("risk_reasons") or ()),
        update_allowed=data.get("update_allowed", False),
    )


def _finding_to_dict(finding: AdvisoryFinding) -> Dict[str, Any]:
    return {
        "dependency": finding.dependency._asdict(),
        "advisory": advisory_to_dict(finding.advisory),
    }


def _finding_from_dict(data: Mapping) -> AdvisoryFinding:
    return AdvisoryFinding(
        dependency=IdentityKey(**data["dependency"]),
        advisory=advisory_from_dict(data["advisory"]),
    )


def _key_list(records: Iterable[DependencyRecord]) -> List[Dict[str, Any]]:
    return [record.key._asdict() for record in records]


def snapshot_to_dict(snapshot: AnalysisSnapshot) -> Dict[str, Any]:
    """Serialize a snapshot.

    Buckets and new updates reference records by identity key rather than
    repeating them.
    """
    previous = None
    if snapshot.previous is not None:
        previous = {
            "commit": snapshot.previous.commit,
            "timestamp": snapshot.previous.timestamp.isoformat(),
        }
    summary = snapshot.change_summary
    return {
        "repository": snapshot.repository,
        "commit": snapshot.commit,
        "timestamp": snapshot.timestamp.isoformat(),
        "previous_analysis": previous,
        "dependencies": [record_to_dict(r) for r in snapshot.dependencies],
        "change_summary": {
            "new_updates": _key_list(summary.new_updates),
            "new_vulnerabilities": [_finding_to_dict(f) for f in summary.new_vulnerabilities],
            "new_warnings": [_finding_to_dict(f) for f in summary.new_warnings],
        },
        "partition": {
            name: _key_list(records) for name, records in snapshot.partition.buckets().items()
        },
        "version_conflicts": [
            {
                "name": c.name,
                "direct_version": c.direct_version,
                "transitive_version": c.transitive_version,
            }
            for c in snapshot.version_conflicts
        ],
    }


def snapshot_from_dict(data: Mapping) -> AnalysisSnapshot:
    dependencies = tuple(record_from_dict(r) for r in data.get("dependencies") or ())
    by_key = {record.key: record for record in dependencies}

    def resolve(keys) -> Tuple[DependencyRecord, ...]:
        return tuple(by_key[IdentityKey(**k)] for k in keys or ())

    previous = None
    if data.get("previous_analysis"):
        previous = PreviousAnalysis(
            commit=data["previous_analysis"]["commit"],
            timestamp=parse_timestamp(data["previous_analysis"]["timestamp"]),
        )

    summary = data.get("change_summary") or {}
    partition = data.get("partition") or {}
    return AnalysisSnapshot(
        repository=data["repository"],
        commit=data["commit"],
        timestamp=parse_timestamp(data["timestamp"]),
        dependencies=dependencies,
        previous=previous,
        change_summary=ChangeSummary(
            new_updates=resolve(summary.get("new_updates")),
            new_vulnerabilities=tuple(_finding_from_dict(f) for f in summary.get("new_vulnerabilities") or ()),
            new_warnings=tuple(_finding_from_dict(f) for f in summary.get("new_warnings") or ()),
        ),
        partition=Partition(**{name: resolve(partition.get(name)) for name in Partition.BUCKETS}),
        version_conflicts=tuple(
            VersionConflict(c["name"], c["direct_version"], c["transitive_version"])
            for c in data.get("version_conflicts") or ()
        ),
    )


def save_snapshot(snapshot: AnalysisSnapshot, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(snapshot_to_dict(snapshot), f, indent=2)
    return path


def load_snapshot(path: Path) -> AnalysisSnapshot:
    with open(path, 'r', encoding='utf-8') as f:
        return snapshot_from_dict(json.load(f))


def load_input_bundle(path: Path) -> AnalysisInput:
    """Read an analysis input bundle.

    The bundle holds ``repository``, ``commit``, ``dependencies`` (graph
    rows), ``updates`` (per name and version) and ``advisories`` (either a
    list of advisories or a cargo-audit report).
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    for field_name in ("repository", "commit", "dependencies"):
        if field_name not in data:
            raise MalformedGraphInput(f"Input bundle {path} is missing {field_name!r}")

    dependencies = records_from_rows(data["dependencies"])

    candidates = {}
    for entry in data.get("updates") or ():
        candidate = candidate_from_dict(entry)
        if candidate is not None:
            candidates[(entry["name"], str(entry["version"]))] = candidate

    if "advisories" not in data:
        raise AdvisoryDataUnavailable(f"Input bundle {path} carries no advisory data")
    raw_advisories = data["advisories"] or ()
    if isinstance(raw_advisories, Mapping):
        advisories = advisories_from_audit_report(raw_advisories)
    else:
        advisories = tuple(advisory_from_dict(a) for a in raw_advisories)

    logger.info(
        "Loaded %d dependencies, %d update candidates, %d advisories from %s",
        len(dependencies), len(candidates), len(advisories), path,
    )
    return AnalysisInput(
        repository=data["repository"],
        commit=data["commit"],
        dependencies=dependencies,
        candidates=candidates,
        advisories=advisories,
    )
