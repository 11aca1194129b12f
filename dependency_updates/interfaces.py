"""
Interfaces for update sources, advisory feeds and snapshot storage.
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol

from .models import Advisory, AnalysisSnapshot, UpdateMetadata


class UpdateSource(Protocol):
    """Provide available versions and update metadata for packages."""

    def available_versions(self, name: str) -> Iterable[str]:
        ...

    def fetch_update_metadata(
        self, name: str, version: str, new_version: str
    ) -> Optional[UpdateMetadata]:
        ...

    def build_script_changed(self, name: str, version: str, new_version: str) -> bool:
        ...


class AdvisorySource(Protocol):
    """Provide the full set of known advisories."""

    def fetch_advisories(self) -> Iterable[Advisory]:
        ...


class SnapshotStore(Protocol):
    """Persist complete snapshots and return the latest one per repository."""

    def latest(self, repository: str) -> Optional[AnalysisSnapshot]:
        ...

    def commit(self, snapshot: AnalysisSnapshot) -> None:
        ...
