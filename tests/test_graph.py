"""Tests for dependency graph input handling."""

import pytest

from dependency_updates.errors import MalformedGraphInput
from dependency_updates.graph import find_version_conflicts, records_from_rows, validate_graph
from dependency_updates.models import DependencyRecord, VersionConflict


def test_records_from_tuples_and_mappings() -> None:
    records = records_from_rows([
        ("tokio", "1.7.1", "crates.io", True, False),
        {"name": "tokio", "version": "1.7.1", "source": "crates.io", "direct": False, "dev": False},
    ])

    assert [tuple(r.key) for r in records] == [
        ("tokio", "1.7.1", True, False),
        ("tokio", "1.7.1", False, False),
    ]


def test_duplicate_identity_key_is_rejected() -> None:
    with pytest.raises(MalformedGraphInput, match="Duplicate"):
        records_from_rows([
            ("tokio", "1.7.1", "crates.io", True, False),
            ("tokio", "1.7.1", "git+https://example.invalid/tokio", True, False),
        ])


@pytest.mark.parametrize(
    "row",
    [
        {"name": "tokio", "version": "1.7.1", "source": "crates.io", "direct": True},
        ("tokio", "1.7.1", "crates.io", True),
        ("", "1.7.1", "crates.io", True, False),
        ("tokio", "1.7", "crates.io", True, False),
        ("tokio", "1.7.1", "crates.io", "yes", False),
    ],
)
def test_malformed_rows(row) -> None:
    with pytest.raises(MalformedGraphInput):
        records_from_rows([row])


def test_validate_graph_accepts_distinct_roles() -> None:
    records = [
        DependencyRecord("a", "1.0.0", "crates.io", direct=d, dev=v)
        for d in (True, False)
        for v in (True, False)
    ]
    validate_graph(records)


def test_find_version_conflicts() -> None:
    records = records_from_rows([
        ("rand", "0.8.4", "crates.io", True, False),
        ("rand", "0.7.3", "crates.io", False, False),
        ("rand", "0.8.4", "crates.io", False, True),
        ("serde", "1.0.130", "crates.io", True, False),
        ("serde", "1.0.130", "crates.io", False, False),
    ])

    assert find_version_conflicts(records) == (VersionConflict("rand", "0.8.4", "0.7.3"),)
