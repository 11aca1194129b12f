"""
Command-line interface for the dependency updates tool.
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from .analyzer import DependencyAnalyzer
from .config import AnalysisConfig
from .reporting import export_buckets_csv, export_worksheets, save_snapshot_json
from .serialization import load_input_bundle, load_snapshot
from .updates import filter_metadata


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Classify, score and diff available dependency updates for a repository"
    )

    parser.add_argument(
        "--input",
        required=True,
        help="JSON bundle with repository, commit, dependencies, updates and advisories"
    )

    parser.add_argument(
        "--previous",
        default=None,
        help="Previous analysis JSON of the same repository to diff against"
    )

    parser.add_argument(
        "--output-dir",
        default="./output",
        help="Output directory for results. Default: ./output"
    )

    parser.add_argument(
        "--get-csv",
        action="store_true",
        help="Export one CSV row per dependency with its bucket and scores"
    )

    parser.add_argument(
        "--get-worksheets",
        action="store_true",
        help="Export buckets to an Excel file with one sheet per bucket"
    )

    parser.add_argument(
        "--retain-all-metadata",
        action="store_true",
        default=None,
        help="Keep all changelog text and commits instead of only security-flagged ones"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level. Default: WARNING"
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    try:
        config = AnalysisConfig.from_env(retain_all_metadata=args.retain_all_metadata)
    except ValueError as e:
        parser.error(str(e))

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    try:
        bundle = load_input_bundle(Path(args.input))
        previous = load_snapshot(Path(args.previous)) if args.previous else None
        if previous is not None and previous.repository != bundle.repository:
            print(
                f"Error: previous analysis is for {previous.repository}, not {bundle.repository}",
                file=sys.stderr,
            )
            sys.exit(1)

        candidates = {
            key: replace(candidate, metadata=filter_metadata(candidate.metadata, config.retain_all_metadata))
            for key, candidate in bundle.candidates.items()
        }

        print(f"Analyzing {bundle.repository} at {bundle.commit}")
        snapshot = DependencyAnalyzer().analyze(
            repository=bundle.repository,
            commit=bundle.commit,
            dependencies=bundle.dependencies,
            candidates=candidates,
            advisories=bundle.advisories,
            previous=previous,
        )

        partition = snapshot.partition
        summary = snapshot.change_summary
        print("\n" + "=" * 60)
        print("ANALYSIS RESULTS")
        print("=" * 60)
        print(f"Repository: {snapshot.repository}")
        print(f"Commit: {snapshot.commit}")
        print("-" * 60)
        print(f"Vulnerable with no update: {len(partition.vulnerable_no_update)}")
        print(f"Updatable (non-dev): {len(partition.updatable_non_dev)}")
        print(f"Updatable (dev): {len(partition.updatable_dev)}")
        print(f"Blocked by semver: {len(partition.blocked_by_semver)}")
        if snapshot.previous is not None:
            print(f"New updates since {snapshot.previous.commit}: {len(summary.new_updates)}")
            print(f"New vulnerabilities: {len(summary.new_vulnerabilities)}")
            print(f"New warnings: {len(summary.new_warnings)}")
        print("=" * 60)

        for record in partition.updatable_non_dev[:10]:
            reasons = ", ".join(record.priority_reasons)
            print(f"  [{record.priority_score:>3}] {record.name} {record.version} -> {record.latest_version} ({reasons})")

        results_file = save_snapshot_json(snapshot, output_dir)
        print(f"\nResults saved to: {results_file}")

        if args.get_csv:
            csv_file = export_buckets_csv(snapshot, output_dir)
            print(f"Dependency table saved to: {csv_file}")

        if args.get_worksheets:
            excel_file = export_worksheets(snapshot, output_dir)
            print(f"Worksheets saved to: {excel_file}")

    except Exception as e:
        print(f"\nError during analysis: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
