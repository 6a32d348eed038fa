from datetime import datetime, timezone

import pytest

pytest.importorskip("pymongo")

from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from card_migration.services.card_writer import CardWriter, build_mongo_fields
from card_migration.services.error_codes import MigrationErrorCode, WriteError, classify_write_exception
from card_migration.services.row_transformer import CanonicalDocument


def test_build_mongo_fields_uses_service_field_names():
    stamp = datetime(2024, 3, 15, tzinfo=timezone.utc)
    fields = build_mongo_fields(
        CanonicalDocument(
            identifier="1",
            name="Pikachu",
            type="Lightning",
            rarity="Rare",
            image_base64="aGVsbG8=",
            date_added=stamp,
        )
    )
    assert set(fields) == {"name", "type", "rarity", "image", "dateAdded"}
    assert bytes(fields["image"]) == b"hello"
    assert fields["image"].subtype == 0
    assert fields["dateAdded"] == stamp


def test_build_mongo_fields_omits_absent_fields():
    assert build_mongo_fields(CanonicalDocument()) == {}
    assert build_mongo_fields(CanonicalDocument(name="Mew")) == {"name": "Mew"}


def test_write_with_identifier_upserts_and_replaces_fields(fake_collection):
    writer = CardWriter(fake_collection)
    writer.write(CanonicalDocument(identifier="1", name="Pikachu", rarity="Rare"), 0)
    writer.write(CanonicalDocument(identifier="1", name="Raichu"), 0)

    assert fake_collection.docs == {"1": {"_id": "1", "name": "Raichu"}}
    assert [call[0] for call in fake_collection.calls] == ["replace_one", "replace_one"]


def test_write_without_identifier_inserts(fake_collection):
    writer = CardWriter(fake_collection)
    writer.write(CanonicalDocument(name="Eevee"), 0)
    writer.write(CanonicalDocument(name="Eevee"), 1)

    assert len(fake_collection.docs) == 2
    assert [call[0] for call in fake_collection.calls] == ["insert_one", "insert_one"]


def test_invalid_base64_image_raises_write_error(fake_collection):
    writer = CardWriter(fake_collection)
    with pytest.raises(WriteError) as exc_info:
        writer.write(CanonicalDocument(identifier="1", image_base64="not base64!!"), 4)

    assert exc_info.value.index == 4
    assert exc_info.value.code == MigrationErrorCode.IMAGE_DECODE_FAIL
    assert fake_collection.calls == []


def test_store_failure_raises_write_error(make_collection):
    collection = make_collection(fail_when=lambda payload: True)
    writer = CardWriter(collection)
    with pytest.raises(WriteError) as exc_info:
        writer.write(CanonicalDocument(identifier="1", name="Pikachu"), 2)

    assert exc_info.value.index == 2
    assert exc_info.value.code == MigrationErrorCode.STORE_WRITE_FAIL
    assert "injected store failure" in str(exc_info.value)


def test_dry_run_never_touches_collection(fake_collection):
    writer = CardWriter(fake_collection, dry_run=True)
    writer.write(CanonicalDocument(identifier="1", name="Pikachu"), 0)
    assert fake_collection.calls == []

    with pytest.raises(WriteError):
        writer.write(CanonicalDocument(image_base64="%%%"), 1)


def test_collection_required_outside_dry_run():
    with pytest.raises(ValueError):
        CardWriter(None)
    assert CardWriter(None, dry_run=True).dry_run is True


def test_classify_write_exception_codes():
    assert classify_write_exception(DuplicateKeyError("dup")) == MigrationErrorCode.STORE_DUPLICATE_KEY
    assert classify_write_exception(ServerSelectionTimeoutError("down")) == MigrationErrorCode.STORE_CONNECTION_FAIL
    assert classify_write_exception(RuntimeError("x")) == MigrationErrorCode.ROW_UNEXPECTED


def test_non_ascii_image_is_an_image_decode_failure(fake_collection):
    writer = CardWriter(fake_collection)
    with pytest.raises(WriteError) as exc_info:
        writer.write(CanonicalDocument(identifier="1", image_base64="pikachü"), 0)
    assert exc_info.value.code == MigrationErrorCode.IMAGE_DECODE_FAIL


def test_oversized_integer_is_reported_as_write_error(fake_collection):
    writer = CardWriter(fake_collection)
    with pytest.raises(WriteError) as exc_info:
        writer.write(CanonicalDocument(identifier="1", name=2**70), 3)
    assert exc_info.value.index == 3
    assert exc_info.value.code == MigrationErrorCode.DOCUMENT_ENCODE_FAIL
    assert fake_collection.docs == {}


def test_encode_errors_are_not_labelled_as_image_failures():
    assert classify_write_exception(OverflowError("int too big")) == MigrationErrorCode.DOCUMENT_ENCODE_FAIL
    assert classify_write_exception(ValueError("bad offset")) == MigrationErrorCode.DOCUMENT_ENCODE_FAIL
