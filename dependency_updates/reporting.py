"""
Reporting and export utilities.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from .classifier import bucket_for
from .models import AnalysisSnapshot
from .serialization import save_snapshot


logger = logging.getLogger(__name__)

FRAME_COLUMNS = [
    "name",
    "version",
    "source",
    "direct",
    "dev",
    "bucket",
    "latest_version",
    "update_allowed",
    "priority_score",
    "priority_reasons",
    "risk_score",
    "risk_reasons",
    "vulnerabilities",
    "warnings",
]


def _file_stem(snapshot: AnalysisSnapshot) -> str:
    name = snapshot.repository.rstrip("/").split("/")[-1]
    if name.endswith(".git"):
        name = name[:-4]
    return f"{name or 'repository'}_{snapshot.commit[:12]}"


def snapshot_frame(snapshot: AnalysisSnapshot) -> pd.DataFrame:
    """One row per dependency occurrence, in bucket order then graph order."""
    rows = []
    ranked = {record.key: i for i, record in enumerate(snapshot.partition)}
    for record in snapshot.dependencies:
        rows.append({
            "name": record.name,
            "version": record.version,
            "source": record.source,
            "direct": record.direct,
            "dev": record.dev,
            "bucket": bucket_for(record) or None,
            "latest_version": record.latest_version,
            "update_allowed": record.update_allowed,
            "priority_score": record.priority_score,
            "priority_reasons": "; ".join(record.priority_reasons),
            "risk_score": record.risk_score,
            "risk_reasons": "; ".join(record.risk_reasons),
            "vulnerabilities": ", ".join(a.id for a in record.vulnerabilities),
            "warnings": ", ".join(a.id for a in record.warnings),
            "_rank": ranked.get(record.key, len(ranked)),
        })
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS + ["_rank"])
    df = df.sort_values("_rank", kind="stable").drop(columns="_rank")
    return df.reset_index(drop=True)


def save_snapshot_json(snapshot: AnalysisSnapshot, output_dir: Path) -> Path:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    return save_snapshot(snapshot, output_dir / f"{_file_stem(snapshot)}_analysis.json")


def export_buckets_csv(snapshot: AnalysisSnapshot, output_dir: Path) -> Path:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    csv_file = output_dir / f"{_file_stem(snapshot)}_dependencies.csv"
    snapshot_frame(snapshot).to_csv(csv_file, index=False)
    logger.info("Wrote %d dependency rows to %s", len(snapshot.dependencies), csv_file)
    return csv_file


def export_worksheets(snapshot: AnalysisSnapshot, output_dir: Path) -> Path:
    """Write one Excel sheet per bucket."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    excel_file = output_dir / f"{_file_stem(snapshot)}_worksheets.xlsx"
    df = snapshot_frame(snapshot)
    with pd.ExcelWriter(excel_file, engine='openpyxl') as writer:
        for bucket in snapshot.partition.BUCKETS:
            # Excel sheet names have a 31 character limit
            sheet_name = bucket[:31]
            df[df["bucket"] == bucket].to_excel(writer, sheet_name=sheet_name, index=False)
    logger.info("Wrote %d bucket sheets to %s", len(snapshot.partition.BUCKETS), excel_file)
    return excel_file
