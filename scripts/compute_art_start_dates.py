from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from packages.db.database import DATABASE_URL, get_session, make_engine
from packages.shared.models import CalculationConfig
from apps.worker.pipeline import run_calculation
from apps.worker.steps.step04_export import write_csv, write_json

logger = logging.getLogger(__name__)


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compute the earliest ART start date for a patient cohort.")
    parser.add_argument("--database-url", default=DATABASE_URL, help="SQLAlchemy URL of the clinical database")
    parser.add_argument(
        "--patient-id",
        dest="patient_ids",
        type=int,
        action="append",
        help="Restrict the cohort to this patient (repeatable). Default: all non-voided patients",
    )
    parser.add_argument("--as-of", type=_iso_date, default=None, help="Ignore records after this date")
    parser.add_argument("--csv", type=Path, default=None, help="Write per-patient results to this CSV file")
    parser.add_argument("--json", type=Path, default=None, help="Write summary and results to this JSON file")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    engine = make_engine(args.database_url)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    config = CalculationConfig.from_env()

    with get_session(factory) as session:
        results, summary = run_calculation(session, args.patient_ids, config, args.as_of)

    if args.csv:
        path = write_csv(args.csv, results)
        logger.info(f"Wrote {path}")
    if args.json:
        path = write_json(args.json, results, summary)
        logger.info(f"Wrote {path}")

    print(json.dumps(summary.model_dump(mode="json"), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
