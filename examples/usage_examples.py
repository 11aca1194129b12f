#!/usr/bin/env python3
"""
Example script showing how to use the dependency-updates tool.
"""

from datetime import datetime, timezone
from pathlib import Path

from dependency_updates.analyzer import AnalysisService, DependencyAnalyzer
from dependency_updates.compatibility import classify_change, is_compatible
from dependency_updates.graph import records_from_rows
from dependency_updates.models import Advisory, Commit, UpdateCandidate, UpdateMetadata
from dependency_updates.reporting import export_worksheets
from dependency_updates.store import InMemorySnapshotStore


GRAPH = [
    ("tokio", "1.7.1", "crates.io", True, False),
    ("adler", "0.2.3", "crates.io", False, False),
    ("time", "0.1.43", "crates.io", False, False),
    ("criterion", "0.3.4", "crates.io", True, True),
]

ADVISORIES = [
    Advisory(
        id="RUSTSEC-2021-0072",
        package="tokio",
        title="Task dropped in wrong thread when aborting LocalSet task",
        patched=(">= 1.5.1, < 1.6.0", ">= 1.6.3, < 1.7.0", ">= 1.7.2, < 1.8.0", ">= 1.8.1"),
    ),
    Advisory(
        id="RUSTSEC-2020-0071",
        package="time",
        title="Potential segfault in the time crate",
        patched=(">= 0.2.23",),
        unaffected=("= 0.2.0", "= 0.2.1", "= 0.2.2", "= 0.2.3", "= 0.2.4", "= 0.2.5", "= 0.2.6"),
    ),
]


class StaticUpdateSource:
    """Serves a fixed set of published versions."""

    VERSIONS = {
        "tokio": ["1.7.1", "1.7.2", "1.8.0"],
        "adler": ["0.2.3", "1.0.0", "1.0.1"],
        "criterion": ["0.3.4", "0.3.5"],
    }

    def available_versions(self, name):
        return self.VERSIONS.get(name, [])

    def fetch_update_metadata(self, name, version, latest):
        return UpdateMetadata(
            changelog_url=f"https://example.invalid/{name}/CHANGELOG.md",
            changelog_text="Fix a crash when a task is aborted",
            commits_url=f"https://example.invalid/{name}/compare/v{version}...v{latest}",
            commits=(Commit("fix: unsafe drop of LocalSet task"), Commit("docs: typo")),
        )

    def build_script_changed(self, name, version, latest):
        return name == "tokio"


class StaticAdvisorySource:
    def fetch_advisories(self):
        return ADVISORIES


def example_compatibility():
    """Example: Cargo compatibility and change kinds."""
    print("=" * 60)
    print("Example 1: Compatibility")
    print("=" * 60)

    for version, candidate in [("1.7.1", "1.8.0"), ("0.2.3", "1.0.1"), ("0.0.3", "0.0.4")]:
        kind = classify_change(version, candidate)
        print(
            f"{version} -> {candidate}: compatible={is_compatible(version, candidate)} "
            f"change={kind.value if kind else None}"
        )


def example_offline_analysis():
    """Example: Analyze prefetched data without any collaborators."""
    print("\n" + "=" * 60)
    print("Example 2: Offline Analysis")
    print("=" * 60)

    snapshot = DependencyAnalyzer().analyze(
        repository="https://github.com/example/app.git",
        commit="a1b2c3d4",
        dependencies=records_from_rows(GRAPH),
        candidates={
            ("tokio", "1.7.1"): UpdateCandidate(versions=("1.7.2", "1.8.0")),
            ("adler", "0.2.3"): UpdateCandidate(versions=("1.0.0", "1.0.1")),
        },
        advisories=ADVISORIES,
        timestamp=datetime(2021, 7, 1, tzinfo=timezone.utc),
    )

    for bucket, records in snapshot.partition.buckets().items():
        print(f"\n{bucket}:")
        for record in records:
            print(f"  [{record.priority_score:>3}] {record.name} {record.version} -> {record.latest_version}")


def example_service_refresh():
    """Example: Refresh twice through the service and diff the runs."""
    print("\n" + "=" * 60)
    print("Example 3: Service Refresh")
    print("=" * 60)

    store = InMemorySnapshotStore()
    service = AnalysisService(StaticUpdateSource(), StaticAdvisorySource(), store)

    service.refresh("https://github.com/example/app.git", "a1b2c3d4", GRAPH[:2])
    snapshot = service.refresh("https://github.com/example/app.git", "e5f6a7b8", GRAPH)

    summary = snapshot.change_summary
    print(f"Compared to: {snapshot.previous.commit}")
    print(f"New updates: {[r.name for r in summary.new_updates]}")
    print(f"New vulnerabilities: {[f.advisory.id for f in summary.new_vulnerabilities]}")

    excel_file = export_worksheets(snapshot, Path("./output/example3"))
    print(f"Worksheets saved to: {excel_file}")


if __name__ == "__main__":
    print("\nDependency Updates Tool - Usage Examples\n")

    example_compatibility()
    example_offline_analysis()
    example_service_refresh()

    print("\n" + "=" * 60)
    print("Examples complete!")
    print("=" * 60)
