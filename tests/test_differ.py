"""Tests for snapshot diffing."""

from dataclasses import replace
from datetime import datetime, timezone

from dependency_updates.differ import diff, index_by_key
from dependency_updates.models import Advisory, AnalysisSnapshot, DependencyRecord, UpdateCandidate


VULN = Advisory(id="RUSTSEC-2016-0005", package="tokio", title="race", patched=(">= 1.7.2",))
WARN = Advisory(id="RUSTSEC-2021-0139", package="tokio", title="unmaintained", kind="warning")


def _record(name, version, versions=None, direct=False, dev=False, **kwargs) -> DependencyRecord:
    update = UpdateCandidate(versions=tuple(versions)) if versions else None
    return DependencyRecord(
        name=name, version=version, source="crates.io", direct=direct, dev=dev, update=update, **kwargs
    )


def _snapshot(records, commit="abc") -> AnalysisSnapshot:
    return AnalysisSnapshot(
        repository="https://github.com/example/repo.git",
        commit=commit,
        timestamp=datetime(2021, 6, 1, tzinfo=timezone.utc),
        dependencies=tuple(records),
    )


def test_first_analysis_has_empty_summary() -> None:
    snapshot = _snapshot([_record("tokio", "1.7.1", versions=["1.7.2"], vulnerabilities=(VULN,))])

    summary = diff(snapshot, None)

    assert summary.is_empty


def test_diff_against_identical_copy_is_empty() -> None:
    records = [
        _record("tokio", "1.7.1", versions=["1.7.2"], vulnerabilities=(VULN,), warnings=(WARN,)),
        _record("adler", "0.2.3", versions=["1.0.1"]),
        _record("libc", "0.2.100"),
    ]
    snapshot = _snapshot(records)
    copy = _snapshot([replace(r) for r in records], commit="def")

    assert diff(snapshot, copy).is_empty


def test_new_updates_matched_by_key_not_position() -> None:
    previous = _snapshot([
        _record("serde", "1.0.100", versions=["1.0.130"]),
        _record("rand", "0.8.3"),
    ])
    current = _snapshot([
        _record("rand", "0.8.3", versions=["0.8.4"]),
        _record("serde", "1.0.100", versions=["1.0.130", "1.0.131"]),
        _record("serde", "1.0.100", versions=["1.0.131"], dev=True),
    ])

    summary = diff(current, previous)

    assert [(r.name, r.dev) for r in summary.new_updates] == [("rand", False), ("serde", True)]


def test_new_vulnerabilities_and_warnings() -> None:
    previous = _snapshot([
        _record("tokio", "1.7.1", versions=["1.7.2"], warnings=(WARN,)),
    ])
    current = _snapshot([
        _record("tokio", "1.7.1", versions=["1.7.2"], vulnerabilities=(VULN,), warnings=(WARN,)),
        _record("tokio", "1.7.1", versions=["1.7.2"], direct=True, warnings=(WARN,)),
    ])

    summary = diff(current, previous)

    assert summary.new_updates == (current.dependencies[1],)
    assert [(f.dependency.name, f.advisory.id) for f in summary.new_vulnerabilities] == [
        ("tokio", "RUSTSEC-2016-0005"),
    ]
    assert [(f.dependency.direct, f.advisory.id) for f in summary.new_warnings] == [
        (True, "RUSTSEC-2021-0139"),
    ]


def test_inert_record_never_appears_in_diff() -> None:
    current = _snapshot([_record("libc", "0.2.100")])

    summary = diff(current, _snapshot([]))

    assert summary.is_empty


def test_index_by_key() -> None:
    records = [_record("a", "1.0.0"), _record("a", "1.0.0", dev=True)]
    index = index_by_key(records)

    assert len(index) == 2
    assert index[records[1].key] is records[1]
