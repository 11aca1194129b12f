"""Tests for advisory matching."""

import pytest

from dependency_updates.advisories import advisories_from_audit_report, attach, is_affected
from dependency_updates.errors import MalformedAdvisory
from dependency_updates.models import Advisory, DependencyRecord


def _record(name: str, version: str, direct: bool = False, dev: bool = False) -> DependencyRecord:
    return DependencyRecord(name=name, version=version, source="crates.io", direct=direct, dev=dev)


TOKIO_ADVISORY = Advisory(
    id="RUSTSEC-2016-0005",
    package="tokio",
    title="Data race in tokio",
    patched=(">= 1.7.2",),
    unaffected=("< 0.1.14",),
)


def test_is_affected_respects_patched_and_unaffected() -> None:
    assert is_affected("1.7.1", TOKIO_ADVISORY) is True
    assert is_affected("1.7.2", TOKIO_ADVISORY) is False
    assert is_affected("0.1.13", TOKIO_ADVISORY) is False


def test_advisory_without_patch_affects_everything() -> None:
    advisory = Advisory(id="RUSTSEC-2020-0071", package="time", title="Segfault")
    assert is_affected("0.1.43", advisory) is True


def test_attach_appends_in_input_order_and_splits_by_kind() -> None:
    warning = Advisory(
        id="RUSTSEC-2021-0139",
        package="tokio",
        title="tokio is unmaintained",
        kind="warning",
        informational="unmaintained",
    )
    second = Advisory(id="RUSTSEC-2021-0124", package="tokio", title="Another race")
    records = [_record("tokio", "1.7.1"), _record("serde", "1.0.130")]

    attached = attach(records, [TOKIO_ADVISORY, warning, second])

    tokio, serde = attached
    assert [a.id for a in tokio.vulnerabilities] == ["RUSTSEC-2016-0005", "RUSTSEC-2021-0124"]
    assert [a.id for a in tokio.warnings] == ["RUSTSEC-2021-0139"]
    assert serde == records[1]
    # inputs are left untouched
    assert records[0].vulnerabilities == ()


def test_attach_skips_patched_versions() -> None:
    attached = attach([_record("tokio", "1.8.0")], [TOKIO_ADVISORY])
    assert attached[0].vulnerabilities == ()


def test_attach_matches_every_occurrence() -> None:
    records = [_record("tokio", "1.7.1", direct=True), _record("tokio", "1.7.1", dev=True)]
    attached = attach(records, [TOKIO_ADVISORY])
    assert all(r.vulnerabilities == (TOKIO_ADVISORY,) for r in attached)


def test_malformed_requirement_raises() -> None:
    advisory = Advisory(id="X-1", package="tokio", title="bad", patched=(">= one",))
    with pytest.raises(MalformedAdvisory):
        attach([_record("tokio", "1.0.0")], [advisory])


def test_advisories_from_audit_report() -> None:
    report = {
        "vulnerabilities": {
            "found": True,
            "count": 1,
            "list": [
                {
                    "advisory": {
                        "id": "RUSTSEC-2016-0005",
                        "package": "tokio",
                        "title": "Data race",
                        "description": "details",
                        "date": "2016-01-01",
                        "url": "https://example.invalid/RUSTSEC-2016-0005",
                    },
                    "versions": {"patched": [">= 1.7.2"], "unaffected": []},
                    "package": {"name": "tokio", "version": "1.7.1"},
                }
            ],
        },
        "warnings": {
            "unmaintained": [
                {
                    "kind": "unmaintained",
                    "advisory": {"id": "RUSTSEC-2020-0036", "package": "failure", "title": "failure is officially deprecated"},
                    "versions": {"patched": [], "unaffected": []},
                    "package": {"name": "failure", "version": "0.1.8"},
                }
            ],
            "yanked": [
                {"kind": "yanked", "advisory": None, "package": {"name": "foo", "version": "0.1.0"}}
            ],
        },
    }

    advisories = advisories_from_audit_report(report)

    assert [(a.id, a.kind) for a in advisories] == [
        ("RUSTSEC-2016-0005", "vulnerability"),
        ("RUSTSEC-2020-0036", "warning"),
    ]
    assert advisories[0].patched == (">= 1.7.2",)
    assert advisories[1].informational == "unmaintained"
