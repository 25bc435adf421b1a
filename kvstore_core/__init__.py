"""
KVStore Core Module

Value encoding pipeline and key-value operations.

This module provides:
- Encoding codec for raw, JSON, hexdigit and base64 values
- Automatic storage encoding policy (raw or JSON)
- Error taxonomy with HTTP-like status codes
- Discriminated result envelope (Success, NotFound, Failure)
- list/get/set/exists operations (kvstore_core.operations)
"""

__version__ = "0.1.0"

from .codec import decode_value, encode_value, to_storage
from .errors import ErrorKind, KVStoreError
from .results import Failure, NotFound, Result, Success
from .schemas import Encoding, StorageEncoding

__all__ = [
    "decode_value",
    "encode_value",
    "to_storage",
    "ErrorKind",
    "KVStoreError",
    "Failure",
    "NotFound",
    "Result",
    "Success",
    "Encoding",
    "StorageEncoding",
]
