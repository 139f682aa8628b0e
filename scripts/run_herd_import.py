"""
Import a weigh-in CSV from the command line and print a JSON summary.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

from app.domain.herd import HerdImportOptions, ProgressEvent
from app.repositories.herd_state_repository import HerdStateRepository
from app.services.herd_ingestion_service import HerdIngestionError, HerdIngestionService
from db.repositories.kv_store import SQLAlchemyKeyValueStore
from db.session import SessionLocal, init_db
from risk.alerts import build_alerts


def _print_progress(event: ProgressEvent) -> None:
    print(f"[{event.phase}] {event.message} {event.done}/{event.total}", file=sys.stderr)


def main() -> int:
    parser = argparse.ArgumentParser(description="Import weigh-in records and refresh the herd snapshot.")
    parser.add_argument("csv_path", type=Path, help="Path to the weigh-in CSV file.")
    parser.add_argument(
        "--today",
        type=date.fromisoformat,
        default=None,
        help="Reference date (YYYY-MM-DD); defaults to today in UTC.",
    )
    parser.add_argument("--fallback-rate", type=float, default=None, help="Fallback growth rate in kg/day.")
    parser.add_argument("--concurrency", type=int, default=None, help="Concurrent weather requests.")
    parser.add_argument("--timeout", type=float, default=None, help="Weather request timeout in seconds.")
    parser.add_argument("--quiet", action="store_true", help="Do not print progress to stderr.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    init_db()
    repository = HerdStateRepository(SQLAlchemyKeyValueStore(SessionLocal))
    service = HerdIngestionService(repository=repository)
    options = HerdImportOptions(
        fallback_growth_rate=args.fallback_rate,
        timeout_seconds=args.timeout,
        concurrency=args.concurrency,
        on_progress=None if args.quiet else _print_progress,
        today=args.today,
    )

    try:
        csv_text = args.csv_path.read_text(encoding="utf-8-sig")
        state = service.import_csv_text(csv_text, options)
    except (OSError, HerdIngestionError) as exc:
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        return 1

    payload = {
        "generated_at": state.generated_at.isoformat() if state.generated_at else None,
        "today": state.today.isoformat() if state.today else None,
        "meta": state.meta.model_dump(),
        "groups": [
            {"name": group.name, "animals": group.n, "risk": round(group.risk, 3)}
            for group in state.groups
        ],
        "alerts": [alert.model_dump() for alert in build_alerts(state.groups)],
    }
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
