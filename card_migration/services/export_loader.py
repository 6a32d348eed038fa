from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog

from card_migration.services.error_codes import LoadError, MigrationErrorCode

logger = structlog.get_logger(__name__)


def _read_text(path: Path) -> str:
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise LoadError(MigrationErrorCode.EXPORT_READ_FAIL, str(path), f"could not read export file '{path}': {exc}") from exc

    try:
        # exporters on Windows sometimes prepend a BOM
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise LoadError(MigrationErrorCode.EXPORT_READ_FAIL, str(path), f"export file '{path}' is not UTF-8: {exc}") from exc


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def load_export(path: str | Path) -> list[Any]:
    """Load the exported rows, keeping array order as the row identity.

    Every entry is returned, including ones that are not JSON objects, so
    diagnostics can refer to the original array position.
    """
    export_path = Path(path)
    text = _read_text(export_path)

    try:
        rows = json.loads(text, parse_constant=_reject_constant)
    except ValueError as exc:  # JSONDecodeError included
        raise LoadError(MigrationErrorCode.EXPORT_PARSE_FAIL, str(export_path), f"failed to parse JSON: {exc}") from exc

    if not isinstance(rows, list):
        raise LoadError(
            MigrationErrorCode.EXPORT_NOT_ARRAY,
            str(export_path),
            f"expected a JSON array, got {type(rows).__name__}",
        )

    logger.info("export_loaded", path=str(export_path), rows=len(rows))
    return rows
