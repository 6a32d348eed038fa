from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog

from card_migration.services.date_parser import resolve_date_added

logger = structlog.get_logger(__name__)

# Uppercase first: the H2 exporter writes column labels as-is.
ID_ALIASES = ("ID", "id")
NAME_ALIASES = ("NAME", "name")
TYPE_ALIASES = ("TYPE", "type")
RARITY_ALIASES = ("RARITY", "rarity")
IMAGE_ALIASES = ("IMAGE", "image")
DATE_ADDED_ALIASES = ("DATE_ADDED", "date_added", "dateAdded")


@dataclass(slots=True)
class CanonicalDocument:
    identifier: str | None = None
    name: Any = None
    type: Any = None
    rarity: Any = None
    image_base64: str | None = None
    date_added: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.identifier, self.name, self.type, self.rarity, self.image_base64, self.date_added)
        )


def lookup_alias(record: Mapping[str, Any], aliases: tuple[str, ...]) -> Any:
    """Return the first non-null value found under ``aliases``.

    Each alias is tried as an exact key, then against the record's keys
    ignoring case. Aliases keep their priority order either way.
    """
    folded: dict[str, Any] | None = None
    for alias in aliases:
        value = record.get(alias)
        if value is not None:
            return value

        if folded is None:
            folded = {}
            for key, raw in record.items():
                if isinstance(key, str) and raw is not None:
                    folded.setdefault(key.casefold(), raw)
        value = folded.get(alias.casefold())
        if value is not None:
            return value
    return None


def to_identifier(value: Any) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def to_image_payload(value: Any) -> str | None:
    if isinstance(value, str) and value != "":
        return value
    return None


def transform_row(record: Mapping[str, Any], index: int) -> CanonicalDocument:
    document = CanonicalDocument(
        identifier=to_identifier(lookup_alias(record, ID_ALIASES)),
        name=lookup_alias(record, NAME_ALIASES),
        type=lookup_alias(record, TYPE_ALIASES),
        rarity=lookup_alias(record, RARITY_ALIASES),
        image_base64=to_image_payload(lookup_alias(record, IMAGE_ALIASES)),
        date_added=resolve_date_added(lookup_alias(record, DATE_ADDED_ALIASES)),
    )
    if document.is_empty:
        logger.debug("row_matched_no_fields", index=index)
    return document
