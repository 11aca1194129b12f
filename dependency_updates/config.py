"""
Runtime configuration for analysis runs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_MAX_WORKERS = 10

MAX_WORKERS_ENV = "DEPENDENCY_UPDATES_MAX_WORKERS"
RETAIN_ALL_ENV = "RETAIN_ALL"


@dataclass(frozen=True)
class AnalysisConfig:
    """Settings shared by the service and the metadata gatherer."""

    max_workers: int = DEFAULT_MAX_WORKERS
    retain_all_metadata: bool = False
    show_progress: bool = False

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "AnalysisConfig":
        """Build a config from environment variables, then apply overrides.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)
            **overrides: Field values that take precedence over the environment

        Returns:
            AnalysisConfig instance
        """
        if environ is None:
            environ = os.environ

        values = {}
        raw_workers = environ.get(MAX_WORKERS_ENV, "")
        if raw_workers:
            try:
                values["max_workers"] = int(raw_workers)
            except ValueError as e:
                raise ValueError(f"Invalid {MAX_WORKERS_ENV}: {raw_workers!r}") from e

        # any non-empty value enables it
        if environ.get(RETAIN_ALL_ENV, ""):
            values["retain_all_metadata"] = True

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
