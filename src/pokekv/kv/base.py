"""
Ordered key-value store interface.

Keys are tuples of ``str`` and ``int`` parts. They are ordered by an
order-preserving byte encoding so every backend lists entries in the
same order: within a position strings sort before integers, integers
sort numerically and strings by their UTF-8 bytes. A key sorts before
every key it prefixes.

Values are anything ``json`` can serialize. Backends store the JSON
text, so callers never share mutable state with the store.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union


KeyPart = Union[str, int]
Key = tuple[KeyPart, ...]

_STR_TAG = b"\x02"
_INT_TAG = b"\x21"
_INT_OFFSET = 1 << 63
_INT_MIN = -(1 << 63)
_INT_MAX = (1 << 63) - 1


class KvError(Exception):
    """Raised when the store rejects an operation or its backend fails."""


def encode_key(key: Key) -> bytes:
    """Encode a key tuple into its order-preserving byte form."""
    if not isinstance(key, tuple):
        raise KvError(f"Key must be a tuple, got {type(key).__name__}")
    
    encoded = bytearray()
    for part in key:
        if isinstance(part, bool):
            raise KvError("Key parts must be str or int, not bool")
        if isinstance(part, str):
            if "\x00" in part:
                raise KvError("Key strings must not contain NUL")
            encoded += _STR_TAG + part.encode("utf-8") + b"\x00"
        elif isinstance(part, int):
            if not _INT_MIN <= part <= _INT_MAX:
                raise KvError(f"Key integer out of range: {part}")
            encoded += _INT_TAG + (part + _INT_OFFSET).to_bytes(8, "big")
        else:
            raise KvError(f"Key parts must be str or int, got {type(part).__name__}")
    return bytes(encoded)


def decode_key(data: bytes) -> Key:
    """Decode bytes produced by :func:`encode_key`."""
    parts: List[KeyPart] = []
    pos = 0
    while pos < len(data):
        tag = data[pos:pos + 1]
        pos += 1
        if tag == _STR_TAG:
            end = data.index(b"\x00", pos)
            parts.append(data[pos:end].decode("utf-8"))
            pos = end + 1
        elif tag == _INT_TAG:
            parts.append(int.from_bytes(data[pos:pos + 8], "big") - _INT_OFFSET)
            pos += 8
        else:
            raise KvError(f"Corrupt key encoding at byte {pos - 1}")
    return tuple(parts)


def dump_value(value: Any) -> str:
    """Serialize a value for storage."""
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise KvError(f"Value is not JSON serializable: {e}") from e


def load_value(text: str) -> Any:
    return json.loads(text)


def format_versionstamp(version: int) -> str:
    return f"{version:020x}"


@dataclass(frozen=True)
class KvEntry:
    """A stored key, its value, and the versionstamp of its last write."""
    key: Key
    value: Any
    versionstamp: str


@dataclass(frozen=True)
class CommitResult:
    """Outcome of an atomic commit."""
    ok: bool
    versionstamp: Optional[str] = None


@dataclass(frozen=True)
class Check:
    key: Key
    versionstamp: Optional[str]


@dataclass(frozen=True)
class Mutation:
    kind: str  # "set", "delete" or "sum"
    key: Key
    value: Any = None


@dataclass
class AtomicOperation:
    """
    A batch of checks and mutations committed all at once.

    ``commit()`` applies every staged mutation or none of them. A check
    whose versionstamp no longer matches the stored entry (``None``
    meaning the key must be absent) makes the commit return
    ``CommitResult(ok=False)`` without touching the store.
    """

    store: "KvStore"
    checks: List[Check] = field(default_factory=list)
    mutations: List[Mutation] = field(default_factory=list)

    def check(self, key: Key, versionstamp: Optional[str]) -> "AtomicOperation":
        encode_key(key)
        self.checks.append(Check(key, versionstamp))
        return self

    def set(self, key: Key, value: Any) -> "AtomicOperation":
        encode_key(key)
        self.mutations.append(Mutation("set", key, dump_value(value)))
        return self

    def delete(self, key: Key) -> "AtomicOperation":
        encode_key(key)
        self.mutations.append(Mutation("delete", key))
        return self

    def sum(self, key: Key, n: int) -> "AtomicOperation":
        encode_key(key)
        check_delta(n)
        self.mutations.append(Mutation("sum", key, n))
        return self

    async def commit(self) -> CommitResult:
        return await self.store._commit(self.checks, self.mutations)


def check_delta(n: int) -> None:
    if isinstance(n, bool) or not isinstance(n, int):
        raise KvError("sum() operand must be an int")


def apply_sum(current: Optional[str], n: int) -> str:
    """Add ``n`` to a stored JSON integer, treating a missing key as 0."""
    base = 0 if current is None else load_value(current)
    if isinstance(base, bool) or not isinstance(base, int):
        raise KvError(f"sum() target holds a non-integer value: {base!r}")
    return dump_value(base + n)


class KvStore(ABC):
    """
    Abstract ordered key-value store.

    Single-key operations are linearizable. ``list`` returns a
    point-in-time snapshot. Multi-key coordination goes through
    :meth:`atomic`.
    """

    @abstractmethod
    async def get(self, key: Key) -> Optional[KvEntry]:
        """Point lookup. Returns None when the key is absent."""

    @abstractmethod
    async def list(self, prefix: Key = ()) -> List[KvEntry]:
        """Return every entry whose key strictly extends ``prefix``, in key order."""

    @abstractmethod
    async def increment(self, key: Key, delta: int = 1) -> int:
        """Atomically add ``delta`` to an integer key and return the new value."""

    @abstractmethod
    async def _commit(self, checks: List[Check], mutations: List[Mutation]) -> CommitResult:
        """Apply a staged batch all-or-nothing."""

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources."""

    def atomic(self) -> AtomicOperation:
        """Start a staged batch."""
        return AtomicOperation(self)

    async def set(self, key: Key, value: Any) -> CommitResult:
        return await self.atomic().set(key, value).commit()

    async def delete(self, key: Key) -> CommitResult:
        return await self.atomic().delete(key).commit()

    async def __aenter__(self) -> "KvStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
