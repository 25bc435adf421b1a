"""Result envelope returned by every key-value operation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from .errors import ErrorKind, KVStoreError


@dataclass(frozen=True)
class Success:
    value: object = None
    message: str = "OK"
    exit_code: int = 0
    display: bool = True

    @property
    def status(self) -> int:
        return 200

    def to_dict(self) -> dict[str, object]:
        return {
            "status": self.status,
            "message": self.message,
            "value": self.value,
        }


@dataclass(frozen=True)
class NotFound:
    key: str
    message: str = "Key does not exist"

    @property
    def status(self) -> int:
        return 404

    @property
    def exit_code(self) -> int:
        return 1

    def to_dict(self) -> dict[str, object]:
        return {
            "status": self.status,
            "message": self.message,
            "key": self.key,
        }


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    status: int = 500

    @property
    def exit_code(self) -> int:
        return self.status - 300 if self.status >= 400 else 1

    @classmethod
    def from_error(cls, exc: KVStoreError) -> "Failure":
        return cls(kind=exc.kind, message=exc.message, status=exc.status)

    def to_dict(self) -> dict[str, object]:
        return {
            "status": self.status,
            "message": self.message,
            "kind": self.kind.value,
        }


Result: TypeAlias = Success | NotFound | Failure
