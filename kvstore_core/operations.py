"""Key-value operations: list, get, set and exists.

Every operation opens its own connection, makes sure the schema is installed
and returns a ``Result``. Errors never propagate to the caller; they are
reported as ``Failure`` results.
"""

from __future__ import annotations

import functools
import logging
import sqlite3
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import ParamSpec

from pydantic import ValidationError

from store.database import DEFAULT_TIMEOUT_S, connect, default_db_path, ensure_schema
from store.repository import EntryRepository

from .codec import ExternalValue, decode_value, encode_value, resolve_encoding, to_storage
from .errors import InvalidArgumentError, KVStoreError, StorageError
from .results import Failure, NotFound, Result, Success
from .schemas import KEY_ADAPTER, MAX_KEY_LENGTH, Encoding

logger = logging.getLogger(__name__)

P = ParamSpec("P")


def _reported(operation: Callable[P, Result]) -> Callable[P, Result]:
    @functools.wraps(operation)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result:
        try:
            return operation(*args, **kwargs)
        except KVStoreError as exc:
            failure = Failure.from_error(exc)
        except (sqlite3.Error, OSError) as exc:
            failure = Failure.from_error(StorageError(f"{exc.__class__.__name__}: {exc}"))
        logger.warning(f"{operation.__name__} failed ({failure.status}): {failure.message}")
        return failure

    return wrapper


def _validate_key(key: object) -> str:
    try:
        return KEY_ADAPTER.validate_python(key)
    except ValidationError as exc:
        raise InvalidArgumentError(
            f"Invalid key: must be a string of 1-{MAX_KEY_LENGTH} characters"
        ) from exc


@contextmanager
def open_store(
    path: str | None = None,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> Iterator[EntryRepository]:
    """Connect to the store at ``path`` (default $HOME/kvstore.db) with the schema ready."""
    db_path = default_db_path() if path is None else path
    with connect(db_path, timeout_s=timeout_s) as connection:
        _ = ensure_schema(connection)
        yield EntryRepository(connection)


@_reported
def list_keys(path: str | None = None, timeout_s: float = DEFAULT_TIMEOUT_S) -> Result:
    """List existing keys in ascending order."""
    logger.debug(f"list_keys path={path}")
    with open_store(path, timeout_s) as repository:
        keys = repository.keys()
    return Success(keys)


@_reported
def get_value(
    key: str,
    path: str | None = None,
    output_encoding: Encoding | str | None = None,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> Result:
    """Get the current value of a key, or NotFound if the key does not exist."""
    key = _validate_key(key)
    logger.debug(f"get_value key={key!r} path={path}")
    if output_encoding is not None:
        output_encoding = resolve_encoding(output_encoding)
    with open_store(path, timeout_s) as repository:
        entry = repository.fetch(key)
    if entry is None:
        return NotFound(key)
    value = decode_value(entry.value, entry.encoding.as_encoding())
    return Success(encode_value(value, output_encoding))


@_reported
def set_value(
    key: str,
    value: ExternalValue,
    path: str | None = None,
    input_encoding: Encoding | str = Encoding.RAW,
    output_encoding: Encoding | str | None = None,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> Result:
    """Set the value of a key, creating it if needed.

    The old value is read, the new value decoded and written within one
    transaction; a decode failure on either side leaves the store unchanged.

    Returns:
        Success holding the old value encoded with ``output_encoding``
        (None if the key did not exist)
    """
    key = _validate_key(key)
    logger.debug(f"set_value key={key!r} path={path}")
    input_encoding = resolve_encoding(input_encoding)
    if output_encoding is not None:
        output_encoding = resolve_encoding(output_encoding)

    with open_store(path, timeout_s) as repository:
        with repository.transaction():
            entry = repository.fetch(key)
            old_value = None
            if entry is not None:
                old_value = decode_value(entry.value, entry.encoding.as_encoding())
            new_value = decode_value(value, input_encoding)
            payload, storage_encoding = to_storage(new_value)
            created = repository.insert_if_absent(key)
            repository.update(key, payload, storage_encoding)

    if created:
        logger.info(f"Created key {key!r}")
    return Success(encode_value(old_value, output_encoding))


@_reported
def key_exists(
    key: str,
    path: str | None = None,
    quiet: bool = False,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> Result:
    """Check whether a key exists. The value is not decoded."""
    key = _validate_key(key)
    logger.debug(f"key_exists key={key!r} path={path}")
    with open_store(path, timeout_s) as repository:
        present = repository.exists(key)
    return Success(present, exit_code=0 if present else 1, display=not quiet)
