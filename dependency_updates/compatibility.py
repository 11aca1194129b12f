"""
Caret compatibility and version change classification.

An update is compatible if it does not modify the left-most non-zero
component of the major, minor, patch grouping. Before 1.0.0 this is one level
stricter than SemVer: 0.x.y is compatible with 0.x.z, but 0.0.x only with
itself.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional

from semantic_version import Version

from .versions import parse_version, release


Predicate = Callable[[Version], bool]


class ChangeKind(str, Enum):
    """Highest-order component that differs between two versions."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    PRERELEASE = "prerelease"


def compatibility_predicate(version) -> Predicate:
    """Return a predicate accepting candidates compatible with ``version``."""
    current = parse_version(version)

    if release(current) == (0, 0, 0):
        if not current.prerelease:
            # nothing to anchor on: avoid a false negative
            return lambda candidate: True
        head = current.prerelease[0]
        return lambda candidate: (
            release(candidate) == (0, 0, 0)
            and bool(candidate.prerelease)
            and candidate.prerelease[0] == head
        )

    def same_group(candidate: Version) -> bool:
        if current.major != 0:
            return candidate.major == current.major
        if current.minor != 0:
            return candidate.major == 0 and candidate.minor == current.minor
        return release(candidate) == (0, 0, current.patch)

    def predicate(candidate: Version) -> bool:
        if not same_group(candidate):
            return False
        if candidate.prerelease:
            return bool(current.prerelease) and release(candidate) == release(current)
        return True

    return predicate


def is_compatible(version, candidate) -> bool:
    """Whether ``candidate`` lies in the caret range of ``version``."""
    return compatibility_predicate(version)(parse_version(candidate))


def classify_change(version, candidate) -> Optional[ChangeKind]:
    """Classify the transition from ``version`` to ``candidate``.

    Returns None when both have the same precedence.
    """
    current = parse_version(version)
    new = parse_version(candidate)
    if current.major != new.major:
        return ChangeKind.MAJOR
    if current.minor != new.minor:
        return ChangeKind.MINOR
    if current.patch != new.patch:
        return ChangeKind.PATCH
    if current.prerelease != new.prerelease:
        return ChangeKind.PRERELEASE
    return None
