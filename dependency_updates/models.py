"""
Core data models for dependency update analysis.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator, NamedTuple, Optional, Tuple


VULNERABILITY = "vulnerability"
WARNING = "warning"
ADVISORY_KINDS = (VULNERABILITY, WARNING)

DEFAULT_BUILD_SCRIPTS = ("build.rs",)


class IdentityKey(NamedTuple):
    """Identity of one dependency occurrence within a snapshot."""

    name: str
    version: str
    direct: bool
    dev: bool


@dataclass(frozen=True)
class Commit:
    """A commit between the current and the candidate version."""

    message: str
    html_url: str = ""


@dataclass(frozen=True)
class UpdateMetadata:
    """Optional changelog and commit information for an update."""

    changelog_url: Optional[str] = None
    changelog_text: Optional[str] = None
    commits_url: Optional[str] = None
    commits: Tuple[Commit, ...] = ()


@dataclass(frozen=True)
class UpdateCandidate:
    """Newer versions available for a dependency."""

    versions: Tuple[str, ...]
    metadata: Optional[UpdateMetadata] = None
    build_script_changed: bool = False
    build_scripts: Tuple[str, ...] = DEFAULT_BUILD_SCRIPTS

    def __post_init__(self) -> None:
        if not self.versions:
            raise ValueError("UpdateCandidate requires at least one newer version")

    @property
    def latest(self) -> str:
        return self.versions[-1]


@dataclass(frozen=True)
class Advisory:
    """A vulnerability or warning affecting some versions of a package.

    ``patched`` and ``unaffected`` hold version requirement strings
    (e.g. ``">= 1.7.2"``); a version matching neither is affected.
    """

    id: str
    package: str
    title: str
    kind: str = VULNERABILITY
    patched: Tuple[str, ...] = ()
    unaffected: Tuple[str, ...] = ()
    description: str = ""
    date: Optional[str] = None
    url: Optional[str] = None
    informational: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind not in ADVISORY_KINDS:
            raise ValueError(f"Unknown advisory kind: {self.kind!r}")


@dataclass(frozen=True)
class DependencyRecord:
    """One occurrence of a package in the dependency graph.

    The same name and version may appear several times with different
    ``direct``/``dev`` flags; occurrences are never merged.
    """

    name: str
    version: str
    source: str
    direct: bool
    dev: bool
    update: Optional[UpdateCandidate] = None
    vulnerabilities: Tuple[Advisory, ...] = ()
    warnings: Tuple[Advisory, ...] = ()
    priority_score: int = 0
    priority_reasons: Tuple[str, ...] = ()
    risk_score: int = 0
    risk_reasons: Tuple[str, ...] = ()
    update_allowed: bool = False

    @property
    def key(self) -> IdentityKey:
        return IdentityKey(self.name, self.version, self.direct, self.dev)

    @property
    def latest_version(self) -> Optional[str]:
        return self.update.latest if self.update is not None else None

    @property
    def has_advisory(self) -> bool:
        return bool(self.vulnerabilities or self.warnings)


@dataclass(frozen=True)
class AdvisoryFinding:
    """An advisory affecting a specific dependency occurrence."""

    dependency: IdentityKey
    advisory: Advisory


@dataclass(frozen=True)
class ChangeSummary:
    """What changed since the previous snapshot of the same repository."""

    new_updates: Tuple[DependencyRecord, ...] = ()
    new_vulnerabilities: Tuple[AdvisoryFinding, ...] = ()
    new_warnings: Tuple[AdvisoryFinding, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.new_updates or self.new_vulnerabilities or self.new_warnings)


@dataclass(frozen=True)
class Partition:
    """Disjoint buckets of records that have an update or an advisory."""

    vulnerable_no_update: Tuple[DependencyRecord, ...] = ()
    updatable_non_dev: Tuple[DependencyRecord, ...] = ()
    updatable_dev: Tuple[DependencyRecord, ...] = ()
    blocked_by_semver: Tuple[DependencyRecord, ...] = ()

    BUCKETS = (
        "vulnerable_no_update",
        "updatable_non_dev",
        "updatable_dev",
        "blocked_by_semver",
    )

    def buckets(self) -> Dict[str, Tuple[DependencyRecord, ...]]:
        return {name: getattr(self, name) for name in self.BUCKETS}

    def bucket_of(self, key: IdentityKey) -> Optional[str]:
        for name, records in self.buckets().items():
            if any(record.key == key for record in records):
                return name
        return None

    def __iter__(self) -> Iterator[DependencyRecord]:
        for records in self.buckets().values():
            yield from records


@dataclass(frozen=True)
class VersionConflict:
    """A package used both directly and transitively at different versions."""

    name: str
    direct_version: str
    transitive_version: str


@dataclass(frozen=True)
class PreviousAnalysis:
    """Reference to the snapshot a new one was compared against."""

    commit: str
    timestamp: datetime


@dataclass(frozen=True)
class AnalysisSnapshot:
    """One complete analysis of a repository at a commit."""

    repository: str
    commit: str
    timestamp: datetime
    dependencies: Tuple[DependencyRecord, ...]
    previous: Optional[PreviousAnalysis] = None
    change_summary: ChangeSummary = field(default_factory=ChangeSummary)
    partition: Partition = field(default_factory=Partition)
    version_conflicts: Tuple[VersionConflict, ...] = ()
