from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Union

import structlog

from card_migration.services.row_transformer import CanonicalDocument

logger = structlog.get_logger(__name__)
MAX_DETAIL_ROWS = 2000


def now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


@dataclass(frozen=True, slots=True)
class RowSuccess:
    index: int
    document: CanonicalDocument


@dataclass(frozen=True, slots=True)
class RowFailure:
    index: int
    reason: str
    code: str


Outcome = Union[RowSuccess, RowFailure]


@dataclass
class RunSummary:
    started_at: str
    finished_at: str = ""
    export_path: str = ""
    target: str = ""
    dry_run: bool = False
    total: int = 0
    migrated: int = 0
    skipped: int = 0
    failures: list[RowFailure] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return self.skipped > 0

    def summary_line(self) -> str:
        return f"migrated={self.migrated}, skipped={self.skipped}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "export_path": self.export_path,
            "target": self.target,
            "dry_run": self.dry_run,
            "summary": {
                "total": self.total,
                "migrated": self.migrated,
                "skipped": self.skipped,
            },
            "failures": [asdict(row) for row in self.failures],
        }

    def to_text(self) -> str:
        lines: list[str] = []
        lines.append("# Card Migration Report")
        lines.append(f"- started_at: {self.started_at}")
        lines.append(f"- finished_at: {self.finished_at}")
        lines.append(f"- export_path: {self.export_path}")
        lines.append(f"- target: {self.target}")
        lines.append(f"- dry_run: {self.dry_run}")
        lines.append(f"- total: {self.total}")
        lines.append(f"- migrated: {self.migrated}")
        lines.append(f"- skipped: {self.skipped}")
        lines.append("")
        lines.append("## Failures")

        if not self.failures:
            lines.append("- none")
            return "\n".join(lines) + "\n"

        for row in self.failures[:MAX_DETAIL_ROWS]:
            lines.append(f"- [{row.code}] idx={row.index} msg={row.reason}")
        if len(self.failures) > MAX_DETAIL_ROWS:
            lines.append(f"- ... truncated {len(self.failures) - MAX_DETAIL_ROWS} rows")

        return "\n".join(lines) + "\n"


class RunReporter:
    """Folds per-row outcomes into a RunSummary for a single run."""

    def __init__(self, *, export_path: str = "", target: str = "", dry_run: bool = False) -> None:
        self.summary = RunSummary(started_at=now_iso(), export_path=export_path, target=target, dry_run=dry_run)

    def record(self, outcome: Outcome) -> None:
        self.summary.total += 1
        if isinstance(outcome, RowSuccess):
            self.summary.migrated += 1
            return

        self.summary.skipped += 1
        self.summary.failures.append(outcome)
        logger.warning("row_migration_failed", index=outcome.index, error=outcome.reason, code=outcome.code)

    def finish(self) -> RunSummary:
        self.summary.finished_at = now_iso()
        return self.summary
