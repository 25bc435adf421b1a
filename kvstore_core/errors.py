"""Error taxonomy for the key-value store."""

from enum import Enum


class ErrorKind(str, Enum):
    SCHEMA = "schema"
    DECODE = "decode"
    FORMAT = "format"
    ENCODE = "encode"
    UNKNOWN_ENCODING = "unknown_encoding"
    PRECONDITION = "precondition"
    INVALID_ARGUMENT = "invalid_argument"
    STORAGE = "storage"


class KVStoreError(Exception):
    """Base class for errors reported by the store as a Failure result."""

    kind: ErrorKind = ErrorKind.STORAGE
    status: int = 500

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status


class SchemaError(KVStoreError):
    kind = ErrorKind.SCHEMA
    status = 500


class DecodeError(KVStoreError):
    kind = ErrorKind.DECODE
    status = 500


class FormatError(KVStoreError):
    kind = ErrorKind.FORMAT
    status = 400


class EncodeError(KVStoreError):
    kind = ErrorKind.ENCODE
    status = 500


class UnknownEncodingError(KVStoreError):
    kind = ErrorKind.UNKNOWN_ENCODING
    status = 400


class PreconditionError(KVStoreError):
    kind = ErrorKind.PRECONDITION
    status = 412


class InvalidArgumentError(KVStoreError):
    kind = ErrorKind.INVALID_ARGUMENT
    status = 400


class StorageError(KVStoreError):
    kind = ErrorKind.STORAGE
    status = 500
