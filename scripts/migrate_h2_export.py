#!/usr/bin/env python3
"""Migrate the H2 pokemon_cards JSON export into MongoDB.

The export produced by the H2 exporter uses uppercase column names
(ID, NAME, TYPE, RARITY, IMAGE as base64, DATE_ADDED). Rows are mapped to
the card service document shape: _id, name, type, rarity, image, dateAdded.

Examples:
  python scripts/migrate_h2_export.py --export migrations/pokemon_cards_export.json

  python scripts/migrate_h2_export.py \
    --export pokemon_cards_export.json \
    --mongo-url mongodb://localhost:27017 \
    --database pokemon_manager \
    --collection pokemon_cards \
    --report /tmp/migration_report.txt \
    --json-report /tmp/migration_report.json

  python scripts/migrate_h2_export.py --export pokemon_cards_export.json --dry-run
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from card_migration.core.config import get_settings
from card_migration.core.logging import configure_logging
from card_migration.db.mongo import get_collection, get_mongo_client
from card_migration.services.card_writer import CardWriter
from card_migration.services.error_codes import LoadError
from card_migration.services.export_loader import load_export
from card_migration.services.migration_service import run_migration
from card_migration.services.run_reporter import RunReporter, RunSummary


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Migrate H2 pokemon card export into MongoDB")
    parser.add_argument("--export", default=settings.export_path, help="exported JSON array path")
    parser.add_argument("--mongo-url", default=settings.mongo_url)
    parser.add_argument("--database", default=settings.mongo_database)
    parser.add_argument("--collection", default=settings.target_collection)
    parser.add_argument("--max-items", type=int, default=None)
    parser.add_argument("--dry-run", action="store_true", help="transform and validate rows without writing")
    parser.add_argument("--report", default="", help="text report file")
    parser.add_argument("--json-report", default="", help="json report file")
    return parser.parse_args(argv)


def _write_report(summary: RunSummary, path_str: str, as_json: bool) -> None:
    if not path_str:
        return
    path = Path(path_str)
    path.parent.mkdir(parents=True, exist_ok=True)
    if as_json:
        path.write_text(json.dumps(summary.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
    else:
        path.write_text(summary.to_text(), encoding="utf-8")


def main(argv: list[str] | None = None) -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    args = parse_args(argv)

    export_path = Path(args.export).expanduser().resolve()
    try:
        rows = load_export(export_path)
    except LoadError as exc:
        raise SystemExit(f"migration aborted [{exc.code}]: {exc.message}") from exc

    target = f"{args.database}.{args.collection}"
    reporter = RunReporter(export_path=str(export_path), target=target, dry_run=args.dry_run)

    if args.dry_run:
        summary = run_migration(rows, CardWriter(None, dry_run=True), reporter, max_items=args.max_items)
    else:
        client = get_mongo_client(args.mongo_url, settings.server_selection_timeout_ms)
        try:
            collection = get_collection(client, args.database, args.collection)
            summary = run_migration(rows, CardWriter(collection), reporter, max_items=args.max_items)
        finally:
            client.close()

    _write_report(summary, args.report, as_json=False)
    _write_report(summary, args.json_report, as_json=True)
    print(f"Migration complete. {summary.summary_line()}")

    if summary.has_failures:
        raise SystemExit(2)


if __name__ == "__main__":
    main()
