"""
Matching of vulnerability and warning advisories to dependency records.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from .errors import MalformedAdvisory
from .models import VULNERABILITY, WARNING, Advisory, DependencyRecord
from .versions import VersionReq, parse_version


logger = logging.getLogger(__name__)


def _parse_requirements(advisory: Advisory, requirements: Iterable[str]) -> List[VersionReq]:
    parsed = []
    for requirement in requirements:
        try:
            parsed.append(VersionReq.parse(requirement))
        except ValueError as e:
            raise MalformedAdvisory(
                f"Advisory {advisory.id} has an invalid requirement {requirement!r}: {e}"
            ) from e
    return parsed


def is_affected(version, advisory: Advisory) -> bool:
    """A version is affected iff it is neither patched nor unaffected."""
    current = parse_version(version)
    for requirement in _parse_requirements(advisory, advisory.patched):
        if requirement.matches(current):
            return False
    for requirement in _parse_requirements(advisory, advisory.unaffected):
        if requirement.matches(current):
            return False
    return True


def attach(
    records: Sequence[DependencyRecord],
    advisories: Sequence[Advisory],
) -> Tuple[DependencyRecord, ...]:
    """Attach affecting advisories to the records they apply to.

    Only the ``vulnerabilities`` and ``warnings`` fields change; advisory
    order follows the input order.
    """
    by_package: Dict[str, List[Advisory]] = {}
    for advisory in advisories:
        by_package.setdefault(advisory.package, []).append(advisory)

    attached = []
    for record in records:
        candidates = by_package.get(record.name)
        if not candidates:
            attached.append(record)
            continue

        vulnerabilities = list(record.vulnerabilities)
        warnings = list(record.warnings)
        for advisory in candidates:
            if not is_affected(record.version, advisory):
                continue
            logger.debug("%s %s affected by %s", record.name, record.version, advisory.id)
            if advisory.kind == VULNERABILITY:
                vulnerabilities.append(advisory)
            else:
                warnings.append(advisory)

        attached.append(replace(
            record,
            vulnerabilities=tuple(vulnerabilities),
            warnings=tuple(warnings),
        ))
    return tuple(attached)


def _advisory_from_entry(entry: Mapping, kind: str) -> Advisory:
    advisory = entry.get("advisory") or {}
    versions = entry.get("versions") or {}
    package = advisory.get("package") or (entry.get("package") or {}).get("name")
    if not advisory.get("id") or not package:
        raise MalformedAdvisory(f"Advisory entry is missing an id or package: {entry!r}")
    return Advisory(
        id=advisory["id"],
        package=package,
        title=advisory.get("title", ""),
        kind=kind,
        patched=tuple(versions.get("patched") or ()),
        unaffected=tuple(versions.get("unaffected") or ()),
        description=advisory.get("description", ""),
        date=advisory.get("date"),
        url=advisory.get("url"),
        informational=advisory.get("informational") or entry.get("kind"),
    )


def advisories_from_audit_report(report: Mapping) -> Tuple[Advisory, ...]:
    """Convert a cargo-audit JSON report into advisories.

    Vulnerabilities are read from ``vulnerabilities.list``; warnings from
    every list under ``warnings`` (keyed by warning kind).
    """
    advisories = []
    for entry in (report.get("vulnerabilities") or {}).get("list") or []:
        advisories.append(_advisory_from_entry(entry, VULNERABILITY))

    for warning_kind, entries in (report.get("warnings") or {}).items():
        for entry in entries or []:
            if entry.get("advisory") is None:
                # e.g. yanked crates carry no advisory
                logger.debug("Skipping %s warning without advisory", warning_kind)
                continue
            advisories.append(_advisory_from_entry(entry, WARNING))

    logger.info("Loaded %d advisories from audit report", len(advisories))
    return tuple(advisories)
