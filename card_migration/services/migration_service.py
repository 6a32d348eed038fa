from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from card_migration.services.card_writer import CardWriter
from card_migration.services.error_codes import MigrationErrorCode, WriteError
from card_migration.services.row_transformer import transform_row
from card_migration.services.run_reporter import Outcome, RowFailure, RowSuccess, RunReporter, RunSummary

logger = structlog.get_logger(__name__)


def migrate_row(raw: Any, index: int, writer: CardWriter) -> Outcome:
    if not isinstance(raw, Mapping):
        return RowFailure(index=index, reason="row is not object", code=MigrationErrorCode.ROW_NOT_OBJECT)

    document = transform_row(raw, index)
    try:
        writer.write(document, index)
    except WriteError as exc:
        return RowFailure(index=exc.index, reason=exc.message, code=exc.code)
    except Exception as exc:  # noqa: BLE001
        return RowFailure(index=index, reason=f"Unexpected: {exc}", code=MigrationErrorCode.ROW_UNEXPECTED)
    return RowSuccess(index=index, document=document)


def run_migration(
    rows: Sequence[Any],
    writer: CardWriter,
    reporter: RunReporter,
    *,
    max_items: int | None = None,
) -> RunSummary:
    """Migrate ``rows`` one by one; a failed row is recorded and skipped."""
    if max_items is not None:
        rows = rows[:max_items]

    if not rows:
        print("No rows in export file; nothing to migrate.")
    else:
        print(f"Migrating {len(rows)} rows into {reporter.summary.target} ...")
    logger.info("migration_started", rows=len(rows), target=reporter.summary.target, dry_run=writer.dry_run)

    for index, raw in enumerate(rows):
        reporter.record(migrate_row(raw, index, writer))

    summary = reporter.finish()
    logger.info(
        "migration_finished",
        total=summary.total,
        migrated=summary.migrated,
        skipped=summary.skipped,
    )
    return summary
