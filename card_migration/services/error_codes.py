from __future__ import annotations

from bson.errors import BSONError
from pymongo.errors import ConnectionFailure, DuplicateKeyError, PyMongoError


class MigrationErrorCode:
    EXPORT_READ_FAIL = "EXPORT_READ_FAIL"
    EXPORT_PARSE_FAIL = "EXPORT_PARSE_FAIL"
    EXPORT_NOT_ARRAY = "EXPORT_NOT_ARRAY"
    ROW_NOT_OBJECT = "ROW_NOT_OBJECT"
    IMAGE_DECODE_FAIL = "IMAGE_DECODE_FAIL"
    DOCUMENT_ENCODE_FAIL = "DOCUMENT_ENCODE_FAIL"
    STORE_CONNECTION_FAIL = "STORE_CONNECTION_FAIL"
    STORE_DUPLICATE_KEY = "STORE_DUPLICATE_KEY"
    STORE_WRITE_FAIL = "STORE_WRITE_FAIL"
    ROW_UNEXPECTED = "ROW_UNEXPECTED"


class LoadError(RuntimeError):
    def __init__(self, code: str, path: str, message: str):
        super().__init__(message)
        self.code = code
        self.path = path
        self.message = message


class ImageDecodeError(ValueError):
    pass


class WriteError(RuntimeError):
    def __init__(self, index: int, code: str, message: str):
        super().__init__(message)
        self.index = index
        self.code = code
        self.message = message


def classify_write_exception(exc: Exception) -> str:
    if isinstance(exc, ImageDecodeError):
        return MigrationErrorCode.IMAGE_DECODE_FAIL
    # bson raises OverflowError for ints past 8 bytes, ValueError for bad tz offsets
    if isinstance(exc, (BSONError, OverflowError, ValueError)):
        return MigrationErrorCode.DOCUMENT_ENCODE_FAIL
    if isinstance(exc, DuplicateKeyError):
        return MigrationErrorCode.STORE_DUPLICATE_KEY
    if isinstance(exc, ConnectionFailure):
        return MigrationErrorCode.STORE_CONNECTION_FAIL
    if isinstance(exc, PyMongoError):
        return MigrationErrorCode.STORE_WRITE_FAIL
    return MigrationErrorCode.ROW_UNEXPECTED
