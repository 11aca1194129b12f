"""
In-memory snapshot store.
"""

from __future__ import annotations

import threading
from typing import Dict, List, Optional, Tuple

from .models import AnalysisSnapshot


class InMemorySnapshotStore:
    """Keep committed snapshots per repository, newest last."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshots: Dict[str, List[AnalysisSnapshot]] = {}

    def latest(self, repository: str) -> Optional[AnalysisSnapshot]:
        with self._lock:
            history = self._snapshots.get(repository)
            return history[-1] if history else None

    def commit(self, snapshot: AnalysisSnapshot) -> None:
        with self._lock:
            self._snapshots.setdefault(snapshot.repository, []).append(snapshot)

    def history(self, repository: str) -> Tuple[AnalysisSnapshot, ...]:
        with self._lock:
            return tuple(self._snapshots.get(repository, ()))
