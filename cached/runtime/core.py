"""Core runtime data structures for Cached."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import CodeType
from typing import Any, Hashable, Optional

from ..constants import DEFAULT_KEY, OUTSIDE_SEQUENCE


class CachedError(RuntimeError):
    """Base class for contract violations detected by the runtime."""


class DoubleUseError(CachedError):
    """A cached slot was read twice during one run of its scope."""

    def __init__(self, address: "Address"):
        self.address = address
        super().__init__(f"Value at {address!r} cannot be used twice")


class ScopeReusedError(CachedError):
    """A scope was entered twice during one run of its parent scope."""

    def __init__(self, scope_key: Hashable):
        self.scope_key = scope_key
        super().__init__(f"Scope cannot be used twice: {scope_key!r}")


class CachedTypeError(CachedError, TypeError):
    """A cached value does not have the type its reader expects."""

    def __init__(self, address: "Address", expected: type, actual: Any):
        self.address = address
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Value at {address!r} has type {type(actual).__name__}, "
            f"expected {getattr(expected, '__name__', repr(expected))}"
        )


@dataclass(frozen=True)
class Position:
    """A sequencing step: the code object and instruction offset that evaluated it.

    ``lineno`` is carried for display only; two positions are equal when they
    refer to the same instruction of the same code object.
    """

    code: CodeType
    offset: int
    lineno: Optional[int] = field(default=None, compare=False)

    @classmethod
    def from_frame(cls, frame) -> "Position":
        return cls(frame.f_code, frame.f_lasti, frame.f_lineno)

    def __repr__(self) -> str:
        filename = Path(self.code.co_filename).name
        return f"{filename}:{self.lineno}@{self.offset}"


@dataclass(frozen=True)
class Address:
    position: Any
    key: Hashable = DEFAULT_KEY

    def __repr__(self) -> str:
        if self.key is DEFAULT_KEY:
            return f"Address({self.position!r})"
        return f"Address({self.position!r}, key={self.key!r})"


class Traced:
    """A stored value together with the flag saying it was visited this run."""

    __slots__ = ("value", "used", "expected_type")

    def __init__(self, value, used=True, expected_type=None):
        self.value = value
        self.used = used
        self.expected_type = expected_type

    def __repr__(self) -> str:  # pragma: no cover - representation helper
        mark = "*" if self.used else ""
        return f"Traced{mark}({self.value!r})"


class Storage:
    """Stores values between runs of a computation.

    Values used by a run are available for the next run. Values not used by a
    run are removed by the garbage collector once the run completes. Each entry
    of ``scopes`` owns its child storage; siblings never share values.
    """

    def __init__(self):
        self.values: dict[Address, Traced] = {}
        self.scopes: dict[Hashable, Traced] = {}

    def __len__(self) -> int:
        return len(self.values) + len(self.scopes)

    def is_empty(self) -> bool:
        return not self.values and not self.scopes

    def __repr__(self) -> str:  # pragma: no cover - representation helper
        return f"Storage(values={len(self.values)}, scopes={len(self.scopes)})"


def create_empty_storage() -> Storage:
    return Storage()


class Context:
    """Storage currently in scope plus the position of the last sequencing step."""

    def __init__(self, storage: Storage, position=OUTSIDE_SEQUENCE, log=None):
        self.storage = storage
        self.position = position
        self.log: Optional[list[str]] = log

    def child(self, storage: Storage) -> "Context":
        return Context(storage, OUTSIDE_SEQUENCE, self.log)

    def emit(self, entry: str) -> None:
        if self.log is not None:
            self.log.append(entry)

    def __repr__(self) -> str:  # pragma: no cover - representation helper
        return f"Context({self.storage!r}, position={self.position!r})"


__all__ = [
    "Address",
    "CachedError",
    "CachedTypeError",
    "Context",
    "DoubleUseError",
    "Position",
    "ScopeReusedError",
    "Storage",
    "Traced",
    "create_empty_storage",
]
