"""
PokeKV Key-Value Store

Ordered key-value storage with point lookups, prefix listing, atomic
increments and all-or-nothing batches.
"""

from .base import (
    AtomicOperation,
    CommitResult,
    Key,
    KvEntry,
    KvError,
    KvStore,
    decode_key,
    encode_key,
)
from .factory import open_store
from .memory import MemoryKvStore
from .sqlite import SqliteKvStore

__all__ = [
    "AtomicOperation",
    "CommitResult",
    "Key",
    "KvEntry",
    "KvError",
    "KvStore",
    "decode_key",
    "encode_key",
    "open_store",
    "MemoryKvStore",
    "SqliteKvStore",
]
