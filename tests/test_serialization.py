import json
from pathlib import Path

import pytest

from dependency_updates.analyzer import DependencyAnalyzer
from dependency_updates.errors import AdvisoryDataUnavailable, MalformedGraphInput
from dependency_updates.serialization import (
    load_input_bundle,
    load_snapshot,
    save_snapshot,
    snapshot_to_dict,
)


BUNDLE = {
    "repository": "https://github.com/example/app.git",
    "commit": "a1b2c3d4e5f6a7b8",
    "dependencies": [
        {"name": "tokio", "version": "1.7.1", "source": "crates.io", "direct": True, "dev": False},
        {"name": "adler", "version": "0.2.3", "source": "crates.io", "direct": False, "dev": False},
        {"name": "time", "version": "0.1.43", "source": "crates.io", "direct": False, "dev": True},
    ],
    "updates": [
        {
            "name": "tokio",
            "version": "1.7.1",
            "versions": ["1.7.2", "1.8.0"],
            "build_script_changed": True,
            "metadata": {
                "changelog_url": "https://example.invalid/CHANGELOG.md",
                "changelog_text": "Fix data race",
                "commits_url": None,
                "commits": [{"message": "fix race", "html_url": "https://example.invalid/c/1"}],
            },
        },
        {"name": "adler", "version": "0.2.3", "versions": ["1.0.1"]},
    ],
    "advisories": [
        {"id": "RUSTSEC-2021-0072", "package": "tokio", "title": "race", "patched": [">= 1.7.2"]},
        {"id": "RUSTSEC-2020-0071", "package": "time", "title": "segfault", "patched": [">= 0.2.23"]},
    ],
}


def _write(tmp_path: Path, data) -> Path:
    path = tmp_path / "bundle.json"
    path.write_text(json.dumps(data))
    return path


def test_load_input_bundle(tmp_path: Path):
    bundle = load_input_bundle(_write(tmp_path, BUNDLE))

    assert bundle.repository == BUNDLE["repository"]
    assert [r.name for r in bundle.dependencies] == ["tokio", "adler", "time"]
    assert set(bundle.candidates) == {("tokio", "1.7.1"), ("adler", "0.2.3")}
    assert bundle.candidates[("tokio", "1.7.1")].metadata.commits[0].message == "fix race"
    assert [a.id for a in bundle.advisories] == ["RUSTSEC-2021-0072", "RUSTSEC-2020-0071"]


def test_bundle_without_advisories_is_rejected(tmp_path: Path):
    data = {k: v for k, v in BUNDLE.items() if k != "advisories"}
    with pytest.raises(AdvisoryDataUnavailable):
        load_input_bundle(_write(tmp_path, data))


def test_bundle_without_dependencies_is_rejected(tmp_path: Path):
    data = {k: v for k, v in BUNDLE.items() if k != "dependencies"}
    with pytest.raises(MalformedGraphInput):
        load_input_bundle(_write(tmp_path, data))


def test_snapshot_file_round_trip(tmp_path: Path):
    bundle = load_input_bundle(_write(tmp_path, BUNDLE))
    first = DependencyAnalyzer().analyze(
        bundle.repository, "0000aaaa", bundle.dependencies, {}, (),
    )
    snapshot = DependencyAnalyzer().analyze(
        bundle.repository, bundle.commit, bundle.dependencies, bundle.candidates, bundle.advisories,
        previous=first,
    )

    path = save_snapshot(snapshot, tmp_path / "out" / "analysis.json")
    loaded = load_snapshot(path)

    assert loaded == snapshot
    data = snapshot_to_dict(snapshot)
    assert data["previous_analysis"]["commit"] == "0000aaaa"
    assert data["partition"]["vulnerable_no_update"] == [
        {"name": "time", "version": "0.1.43", "direct": False, "dev": True},
    ]
