"""
Core dependency analyzer producing scored, classified and diffed snapshots.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Mapping, Optional, Sequence, Set, Tuple

from . import advisories as advisory_matcher
from . import classifier, differ
from .config import AnalysisConfig
from .errors import AdvisoryDataUnavailable, AnalysisInProgress, PersistenceFailure
from .graph import find_version_conflicts, records_from_rows, validate_graph
from .interfaces import AdvisorySource, SnapshotStore, UpdateSource
from .models import (
    Advisory,
    AnalysisSnapshot,
    DependencyRecord,
    PreviousAnalysis,
    UpdateCandidate,
)
from .scoring import ScoringEngine
from .time_utils import ensure_utc, utc_now
from .updates import attach_candidates, gather_candidates


logger = logging.getLogger(__name__)


class DependencyAnalyzer:
    """Run the analysis pipeline over already-fetched data."""

    def __init__(self, scoring: Optional[ScoringEngine] = None):
        """Initialize dependency analyzer.

        Args:
            scoring: Scoring engine to use (default rules when omitted)
        """
        self.scoring = scoring or ScoringEngine()

    def analyze(
        self,
        repository: str,
        commit: str,
        dependencies: Sequence[DependencyRecord],
        candidates: Mapping[Tuple[str, str], UpdateCandidate],
        advisories: Sequence[Advisory],
        previous: Optional[AnalysisSnapshot] = None,
        timestamp: Optional[datetime] = None,
    ) -> AnalysisSnapshot:
        """Build a complete snapshot.

        The snapshot is only assembled once every stage succeeded; any
        exception leaves nothing behind.

        Args:
            repository: Repository identifier
            commit: Commit that was analyzed
            dependencies: Dependency graph records
            candidates: Update candidates keyed by (name, version)
            advisories: Advisories to match against the graph
            previous: Previous complete snapshot of the same repository
            timestamp: Analysis time (defaults to now)

        Returns:
            Complete AnalysisSnapshot

        Raises:
            MalformedGraphInput: if the graph is invalid
            MalformedAdvisory: if an advisory requirement cannot be parsed
        """
        validate_graph(dependencies)
        logger.info("Analyzing %d dependencies of %s at %s", len(dependencies), repository, commit)

        records = attach_candidates(dependencies, candidates)
        records = advisory_matcher.attach(records, advisories)
        records = classifier.classify(records)
        records = self.scoring.apply_all(records)
        partition = classifier.partition(records)

        snapshot = AnalysisSnapshot(
            repository=repository,
            commit=commit,
            timestamp=ensure_utc(timestamp) if timestamp else utc_now(),
            dependencies=records,
            previous=(
                PreviousAnalysis(commit=previous.commit, timestamp=previous.timestamp)
                if previous is not None else None
            ),
            partition=partition,
            version_conflicts=find_version_conflicts(records),
        )
        summary = differ.diff(snapshot, previous)
        logger.info(
            "%d new updates, %d new vulnerabilities, %d new warnings",
            len(summary.new_updates), len(summary.new_vulnerabilities), len(summary.new_warnings),
        )
        return replace(snapshot, change_summary=summary)


class AnalysisService:
    """Gather collaborator data, analyze, and commit one snapshot per run.

    At most one run per repository is in flight; runs for different
    repositories share no mutable state.
    """

    def __init__(
        self,
        update_source: UpdateSource,
        advisory_source: AdvisorySource,
        store: SnapshotStore,
        analyzer: Optional[DependencyAnalyzer] = None,
        config: Optional[AnalysisConfig] = None,
    ) -> None:
        self.update_source = update_source
        self.advisory_source = advisory_source
        self.store = store
        self.analyzer = analyzer or DependencyAnalyzer()
        self.config = config or AnalysisConfig()
        self._lock = threading.Lock()
        self._running: Set[str] = set()

    def is_running(self, repository: str) -> bool:
        with self._lock:
            return repository in self._running

    def _claim(self, repository: str) -> None:
        with self._lock:
            if repository in self._running:
                raise AnalysisInProgress(f"An analysis of {repository} is already running")
            self._running.add(repository)

    def _release(self, repository: str) -> None:
        with self._lock:
            self._running.discard(repository)

    def _previous_snapshot(self, repository: str) -> Optional[AnalysisSnapshot]:
        """Latest committed snapshot, or None when it cannot be read.

        An unreadable snapshot is treated as a first run: the run still
        completes, but its change summary is empty, so updates and advisories
        that appeared since the unreadable snapshot are not reported as new.
        """
        try:
            return self.store.latest(repository)
        except Exception as e:
            logger.error("Couldn't get previous analysis for %s, perhaps the format changed: %s", repository, e)
            return None

    def _fetch_advisories(self) -> Tuple[Advisory, ...]:
        try:
            return tuple(self.advisory_source.fetch_advisories())
        except AdvisoryDataUnavailable:
            raise
        except Exception as e:
            raise AdvisoryDataUnavailable(f"Could not obtain advisory data: {e}") from e

    def refresh(
        self,
        repository: str,
        commit: str,
        graph: Iterable,
        timestamp: Optional[datetime] = None,
    ) -> AnalysisSnapshot:
        """Analyze a repository at a commit and commit the snapshot.

        Args:
            repository: Repository identifier
            commit: Commit the graph was resolved at
            graph: Records or ``(name, version, source, direct, dev)`` rows
            timestamp: Analysis time (defaults to now)

        Returns:
            The committed snapshot

        Raises:
            AnalysisInProgress: if this repository is already being analyzed
            MalformedGraphInput: if the graph is invalid
            AdvisoryDataUnavailable: if the advisory feed failed
            UpdateDataUnavailable: if a package's versions could not be listed
            PersistenceFailure: if the commit failed (carries the snapshot)
        """
        self._claim(repository)
        try:
            records = tuple(graph)
            if all(isinstance(r, DependencyRecord) for r in records):
                validate_graph(records)
            else:
                records = records_from_rows(records)

            previous = self._previous_snapshot(repository)
            advisories = self._fetch_advisories()
            candidates = gather_candidates(records, self.update_source, self.config)

            snapshot = self.analyzer.analyze(
                repository=repository,
                commit=commit,
                dependencies=records,
                candidates=candidates,
                advisories=advisories,
                previous=previous,
                timestamp=timestamp,
            )
            self._commit(snapshot)
            return snapshot
        finally:
            self._release(repository)

    def _commit(self, snapshot: AnalysisSnapshot) -> None:
        logger.info("Analysis done, storing snapshot of %s", snapshot.repository)
        try:
            self.store.commit(snapshot)
        except Exception as e:
            raise PersistenceFailure(
                f"Could not store analysis of {snapshot.repository} at {snapshot.commit}: {e}",
                snapshot,
            ) from e

    def retry_commit(self, failure: PersistenceFailure) -> AnalysisSnapshot:
        """Re-submit the snapshot carried by a persistence failure."""
        self._commit(failure.snapshot)
        return failure.snapshot
