"""
Step 4 — Export of resolved start dates (CSV / JSON).
"""
from __future__ import annotations

import csv
import io
import json
from datetime import date, datetime
from pathlib import Path

from packages.shared.models import CalculationSummary, PatientStartDate

CSV_COLUMNS = ["patient_id", "art_start_date", "source"]


def _date_str(value: date | datetime | None) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def generate_csv(results: dict[int, PatientStartDate]) -> bytes:
    """One row per patient, sorted by id. Undetermined dates are empty."""
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(CSV_COLUMNS)
    for pid in sorted(results):
        row = results[pid]
        writer.writerow([
            pid,
            _date_str(row.art_start_date),
            row.source.value if row.source else "",
        ])
    return buf.getvalue().encode("utf-8")


def generate_json(results: dict[int, PatientStartDate], summary: CalculationSummary) -> dict:
    return {
        "summary": summary.model_dump(mode="json"),
        "results": {
            str(pid): {
                "art_start_date": _date_str(results[pid].art_start_date) or None,
                "source": results[pid].source.value if results[pid].source else None,
            }
            for pid in sorted(results)
        },
    }


def write_csv(path: Path, results: dict[int, PatientStartDate]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(generate_csv(results))
    return path


def write_json(path: Path, results: dict[int, PatientStartDate], summary: CalculationSummary) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(generate_json(results, summary), indent=2), encoding="utf-8")
    return path
