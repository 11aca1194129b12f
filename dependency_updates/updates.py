"""
Construction of update candidates from externally supplied version data.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from tqdm import tqdm

from .config import AnalysisConfig
from .errors import MetadataUnavailable, UpdateDataUnavailable
from .interfaces import UpdateSource
from .models import DependencyRecord, UpdateCandidate, UpdateMetadata
from .versions import parse_version, precedence, try_parse_version


logger = logging.getLogger(__name__)

# Words hinting that a changelog entry or commit is security relevant.
FLAGGED_WORDS = (
    "bug", "secur", "critical", "crash", "seed", "key", "malicious",
    "overflow", "underflow", "sec", "severity", "sev", "unsafe", "secret",
    "hash", "encrypt", "exploit", "attack", "defense", "vuln", "dos",
    "denial", "rce", "code exec", "CVE", "advisory", "hack", "crack",
    "brute", "harden", "injection", "hijack", "elevation", "privilege",
)

PackageVersion = Tuple[str, str]


def newer_versions(current: str, available: Iterable[str]) -> Tuple[str, ...]:
    """Versions with higher precedence than ``current``, ascending.

    Build metadata is ignored, so ``1.2.3+build.1`` is not newer than
    ``1.2.3``. Unparseable versions are skipped.
    """
    base = precedence(parse_version(current))
    parsed = []
    for value in available:
        candidate = try_parse_version(value)
        if candidate is None:
            logger.debug("Skipping unparseable version %r", value)
            continue
        if precedence(candidate) > base:
            parsed.append(candidate)
    parsed.sort(key=precedence)
    return tuple(str(v) for v in parsed)


def flagged_text(text: str) -> bool:
    return any(word in text for word in FLAGGED_WORDS)


def filter_metadata(metadata: Optional[UpdateMetadata], retain_all: bool = False) -> Optional[UpdateMetadata]:
    """Keep only security-flagged changelog text and commits."""
    if metadata is None or retain_all:
        return metadata

    changelog_text = metadata.changelog_text
    if changelog_text is not None and not flagged_text(changelog_text):
        changelog_text = ""
    commits = tuple(c for c in metadata.commits if flagged_text(c.message))
    return replace(metadata, changelog_text=changelog_text, commits=commits)


def _fetch_candidate(
    source: UpdateSource,
    name: str,
    version: str,
    retain_all: bool,
) -> Optional[UpdateCandidate]:
    try:
        available = list(source.available_versions(name))
    except Exception as e:
        raise UpdateDataUnavailable(f"Could not list versions for {name}: {e}") from e

    versions = newer_versions(version, available)
    if not versions:
        return None

    latest = versions[-1]
    try:
        metadata = source.fetch_update_metadata(name, version, latest)
    except MetadataUnavailable as e:
        logger.warning("Metadata unavailable for %s %s -> %s: %s", name, version, latest, e)
        metadata = None
    except Exception as e:
        logger.warning("Error fetching metadata for %s %s -> %s: %s", name, version, latest, e)
        metadata = None

    try:
        build_script_changed = bool(source.build_script_changed(name, version, latest))
    except Exception as e:
        logger.warning("Could not diff build scripts for %s %s -> %s: %s", name, version, latest, e)
        build_script_changed = False

    return UpdateCandidate(
        versions=versions,
        metadata=filter_metadata(metadata, retain_all),
        build_script_changed=build_script_changed,
    )


def gather_candidates(
    records: Iterable[DependencyRecord],
    source: UpdateSource,
    config: Optional[AnalysisConfig] = None,
) -> Dict[PackageVersion, UpdateCandidate]:
    """Look up update candidates once per distinct ``(name, version)``.

    Lookups run concurrently with at most ``config.max_workers`` in flight.
    Metadata and build script failures degrade to missing data; a failure
    to list versions aborts the whole lookup.

    Raises:
        UpdateDataUnavailable: if the available versions of a package
            could not be listed
    """
    config = config or AnalysisConfig()
    pairs: List[PackageVersion] = sorted({(r.name, r.version) for r in records})
    candidates: Dict[PackageVersion, UpdateCandidate] = {}
    if not pairs:
        return candidates

    logger.info("Checking %d packages for updates", len(pairs))
    with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
        futures = {
            executor.submit(_fetch_candidate, source, name, version, config.retain_all_metadata): (name, version)
            for name, version in pairs
        }
        progress = tqdm(
            as_completed(futures),
            total=len(futures),
            desc="Checking updates",
            disable=not config.show_progress,
        )
        try:
            for future in progress:
                candidate = future.result()
                if candidate is not None:
                    candidates[futures[future]] = candidate
        except UpdateDataUnavailable:
            for future in futures:
                future.cancel()
            raise

    logger.info("Found updates for %d of %d packages", len(candidates), len(pairs))
    return candidates


def attach_candidates(
    records: Iterable[DependencyRecord],
    candidates: Dict[PackageVersion, UpdateCandidate],
) -> Tuple[DependencyRecord, ...]:
    """Set each record's ``update`` from the ``(name, version)`` lookup."""
    return tuple(
        replace(record, update=candidates.get((record.name, record.version)))
        for record in records
    )
