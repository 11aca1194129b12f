"""
Error taxonomy for dependency update analysis.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import AnalysisSnapshot


class AnalysisError(Exception):
    """Base analysis exception."""


class MalformedGraphInput(AnalysisError, ValueError):
    """Duplicate identity keys or missing fields in the supplied graph."""


class MalformedAdvisory(AnalysisError, ValueError):
    """An advisory carries a version requirement that cannot be parsed."""


class MetadataUnavailable(AnalysisError):
    """Changelog or commit metadata could not be fetched for a dependency.

    Non-fatal: the metadata is recorded as absent.
    """


class AdvisoryDataUnavailable(AnalysisError):
    """The advisory feed could not be obtained at all."""


class UpdateDataUnavailable(AnalysisError):
    """The published versions of a dependency could not be listed."""


class AnalysisInProgress(AnalysisError):
    """A refresh is already running for this repository."""


class PersistenceFailure(AnalysisError):
    """Committing a complete snapshot failed.

    The snapshot is kept on the exception so the commit can be retried.
    """

    def __init__(self, message: str, snapshot: "AnalysisSnapshot") -> None:
        super().__init__(message)
        self.snapshot = snapshot
