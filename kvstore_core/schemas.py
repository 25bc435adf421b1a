from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Annotated, TypeVar

from pydantic import BaseModel, StringConstraints, TypeAdapter

MAX_KEY_LENGTH = 255

KeyName = Annotated[str, StringConstraints(min_length=1, max_length=MAX_KEY_LENGTH)]

KEY_ADAPTER: TypeAdapter[str] = TypeAdapter(KeyName)


TBaseSchema = TypeVar("TBaseSchema", bound="BaseSchema")


class BaseSchema(BaseModel):
    def to_dict(self) -> dict[str, object]:
        return self.model_dump()

    @classmethod
    def from_dict(cls: type[TBaseSchema], data: Mapping[str, object]) -> TBaseSchema:
        return cls.model_validate(data)


_ALIASES = {
    "raw": "r",
    "json": "j",
    "hex": "h",
    "base64": "b",
}


class Encoding(str, Enum):
    """External (transport) encoding of a value."""

    RAW = "r"
    JSON = "j"
    HEX = "h"
    BASE64 = "b"

    @classmethod
    def _missing_(cls, value: object) -> "Encoding | None":
        if isinstance(value, str):
            lowered = value.lower()
            short = _ALIASES.get(lowered, lowered)
            for member in cls:
                if member.value == short:
                    return member
        return None


class StorageEncoding(str, Enum):
    """Encoding a value is persisted with. Hex and base64 are never stored."""

    RAW = "r"
    JSON = "j"

    def as_encoding(self) -> Encoding:
        return Encoding(self.value)
