"""
Seed script for the in-memory snapshot or Firestore.

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to configured store: python scripts/seed_db.py --apply
  - Force the in-memory store (MOCK_DB_PATH snapshot): python scripts/seed_db.py --apply --force-mock

Behavior:
  - Loads `db_seed.json` from repo root: {"reports": [{...report fields...}, ...]}
  - Each entry needs location, address, animalType and size; createdAt and
    status are optional (defaults: now, pending).
  - Writes straight to the report store. Seeding bypasses rate limiting and
    duplicate detection on purpose, so demo clusters can be loaded.
"""

import argparse
import json
import os
import uuid
from datetime import datetime, timezone

from app.core.context import build_report_store
from app.core.settings import settings
from app.models.report import Report


def load_seed(path: str = "./db_seed.json") -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def to_report(entry: dict) -> Report:
    data = {"id": uuid.uuid4().hex, "createdAt": datetime.now(timezone.utc).isoformat(), **entry}
    return Report.model_validate(data)


def write_to_store(store, seed: dict, apply: bool = False):
    for entry in seed.get("reports", []):
        report = to_report(entry)
        print(f"Preparing: reports/{report.id} ({report.animal_type.value} at {report.address})")
        if not apply:
            continue
        store.create(report)
        print(f"Wrote: reports/{report.id}")


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to the store instead of dry-run")
    parser.add_argument("--force-mock", action="store_true", help="Use the in-memory store even if Firebase is configured")
    args = parser.parse_args()

    seed_path = os.path.join(os.getcwd(), "db_seed.json")
    if not os.path.exists(seed_path):
        print(f"Seed file not found: {seed_path}")
        return

    seed = load_seed(seed_path)

    if args.force_mock:
        print("Forcing in-memory store for this run.")
        settings.USE_MOCK_DB = True

    store = build_report_store(settings)
    write_to_store(store, seed, apply=args.apply)

    if args.apply:
        print("Seeding completed.")
    else:
        print("Dry run complete. Re-run with --apply to write to the store.")


if __name__ == "__main__":
    main()
