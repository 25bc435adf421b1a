"""
Encoding codec.

Converts between external representations (raw, JSON, hexdigits, base64) and
internal values. Internal values are either opaque bytes, plain scalars
(str, int, float) or structured values (dict, list, bool, None). Only JSON can
represent structured values.
"""

from __future__ import annotations

import base64
import json
import re
from collections.abc import Callable
from typing import TypeAlias

from .errors import (
    DecodeError,
    EncodeError,
    FormatError,
    InvalidArgumentError,
    PreconditionError,
    UnknownEncodingError,
)
from .schemas import Encoding, StorageEncoding

ExternalValue: TypeAlias = str | bytes

_INVALID_HEXDIGIT = re.compile(r"[^0-9A-Fa-f]")


def resolve_encoding(tag: Encoding | str) -> Encoding:
    if isinstance(tag, Encoding):
        return tag
    try:
        return Encoding(tag)
    except ValueError as exc:
        raise UnknownEncodingError(f"Unknown encoding '{tag}'") from exc


def is_structured(value: object) -> bool:
    """Return True if only JSON can represent ``value``."""
    return value is None or isinstance(value, (dict, list, tuple, bool))


def _as_bytes(value: ExternalValue) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    raise InvalidArgumentError(f"Value must be str or bytes, not {type(value).__name__}")


def _as_text(value: ExternalValue) -> str:
    if isinstance(value, str):
        return value
    return _as_bytes(value).decode("latin-1")


def _decode_raw(value: ExternalValue) -> object:
    return _as_bytes(value)


def _reject_constant(token: str) -> object:
    raise ValueError(f"Invalid JSON token {token!r}")


def _decode_json(value: ExternalValue) -> object:
    try:
        return json.loads(_as_bytes(value), parse_constant=_reject_constant)
    except ValueError as exc:
        raise DecodeError(f"Can't decode JSON value: {exc}") from exc


def _decode_hex(value: ExternalValue) -> object:
    text = _as_text(value)
    match = _INVALID_HEXDIGIT.search(text)
    if match is not None:
        raise FormatError(f"Invalid digit '{match.group(0)}' in hexdigit value")
    if len(text) % 2:
        raise FormatError("Odd number of hexdigits")
    return bytes.fromhex(text)


def _decode_base64(value: ExternalValue) -> object:
    text = "".join(_as_text(value).split())
    try:
        return base64.b64decode(text, validate=True)
    except ValueError as exc:
        raise DecodeError(f"Can't decode base64 value: {exc}", status=400) from exc


_DECODERS: dict[Encoding, Callable[[ExternalValue], object]] = {
    Encoding.RAW: _decode_raw,
    Encoding.JSON: _decode_json,
    Encoding.HEX: _decode_hex,
    Encoding.BASE64: _decode_base64,
}


def decode_value(value: ExternalValue, encoding: Encoding | str) -> object:
    """Decode an external representation into an internal value.

    Args:
        value: Encoded value as text or bytes
        encoding: One of the ``Encoding`` tags (or its long name)

    Returns:
        bytes for raw/hex/base64, the parsed document for JSON

    Raises:
        DecodeError: Invalid JSON or base64
        FormatError: Invalid or odd number of hexdigits
        UnknownEncodingError: Unrecognized encoding tag
    """
    return _DECODERS[resolve_encoding(encoding)](value)


def _json_default(value: object) -> object:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _encode_json(value: object) -> str:
    try:
        return json.dumps(
            value,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
            default=_json_default,
        )
    except (TypeError, ValueError) as exc:
        raise EncodeError(f"Can't encode JSON value: {exc}") from exc


def _scalar_bytes(value: object) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (int, float)):
        return json.dumps(value).encode("ascii")
    raise EncodeError(f"Can't encode value of type {type(value).__name__}")


_BYTE_ENCODERS: dict[Encoding, Callable[[bytes], ExternalValue]] = {
    Encoding.RAW: lambda data: data,
    Encoding.HEX: lambda data: data.hex(),
    Encoding.BASE64: lambda data: base64.b64encode(data).decode("ascii"),
}


def encode_value(value: object, encoding: Encoding | str | None = None) -> object:
    """Encode an internal value into the requested external representation.

    With no encoding the value is passed through unchanged. Structured values
    and None can only be encoded to JSON.
    """
    if encoding is None:
        return value
    resolved = resolve_encoding(encoding)
    if resolved is Encoding.JSON:
        return _encode_json(value)
    if is_structured(value):
        raise PreconditionError(
            f"Can't encode undef/structure to '{resolved.value}', please choose 'j'"
        )
    return _BYTE_ENCODERS[resolved](_scalar_bytes(value))


def to_storage(value: object) -> tuple[bytes, StorageEncoding]:
    """Pick the storage encoding for a value and encode it.

    JSON when the value is structured or None, raw otherwise.
    """
    if is_structured(value):
        return _encode_json(value).encode("utf-8"), StorageEncoding.JSON
    return _scalar_bytes(value), StorageEncoding.RAW
