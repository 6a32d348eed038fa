from __future__ import annotations

import base64
from typing import Any

import structlog
from bson.binary import Binary
from bson.errors import BSONError
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from card_migration.services.error_codes import ImageDecodeError, WriteError, classify_write_exception
from card_migration.services.row_transformer import CanonicalDocument

logger = structlog.get_logger(__name__)


def decode_image(image_base64: str) -> Binary:
    try:
        payload = base64.b64decode(image_base64, validate=True)
    except ValueError as exc:  # binascii.Error, or non-ASCII text
        raise ImageDecodeError(f"image is not valid base64: {exc}") from exc
    # subtype 0 matches the byte[] field the card service maps
    return Binary(payload, 0)


def build_mongo_fields(document: CanonicalDocument) -> dict[str, Any]:
    """Stored shape of a card without ``_id``; absent fields stay absent."""
    fields: dict[str, Any] = {}
    if document.name is not None:
        fields["name"] = document.name
    if document.type is not None:
        fields["type"] = document.type
    if document.rarity is not None:
        fields["rarity"] = document.rarity
    if document.image_base64 is not None:
        fields["image"] = decode_image(document.image_base64)
    if document.date_added is not None:
        fields["dateAdded"] = document.date_added
    return fields


class CardWriter:
    def __init__(self, collection: Collection | None, *, dry_run: bool = False) -> None:
        if collection is None and not dry_run:
            raise ValueError("collection is required unless dry_run is set")
        self.collection = collection
        self.dry_run = dry_run

    def write(self, document: CanonicalDocument, index: int) -> None:
        """Upsert by identifier, or insert when the row has none.

        Raises WriteError for any decode or store failure so the caller can
        record the row as skipped and continue.
        """
        try:
            fields = build_mongo_fields(document)
            if self.dry_run:
                return
            if document.identifier is not None:
                self.collection.replace_one({"_id": document.identifier}, fields, upsert=True)
            else:
                self.collection.insert_one(fields)
        except (ValueError, OverflowError, BSONError, PyMongoError) as exc:
            code = classify_write_exception(exc)
            logger.debug("card_write_failed", index=index, code=code, error=str(exc))
            raise WriteError(index, code, str(exc)) from exc
