"""
In-process key-value store.

Used by the ``memory`` backend and by the test suite. All writes go
through one ``asyncio.Lock``, so a batch is applied without any other
coroutine observing a partial state.
"""

import asyncio
from typing import List, Optional

from ..core.logging import get_logger
from .base import (
    Check,
    CommitResult,
    Key,
    KvEntry,
    KvStore,
    Mutation,
    apply_sum,
    check_delta,
    decode_key,
    encode_key,
    format_versionstamp,
    load_value,
)


logger = get_logger(__name__)


class MemoryKvStore(KvStore):
    """Ordered key-value store held in a dict."""

    def __init__(self) -> None:
        # encoded key -> (JSON text, version of last write)
        self._data: dict[bytes, tuple[str, int]] = {}
        self._version = 0
        self._lock = asyncio.Lock()

    def _entry(self, raw_key: bytes) -> KvEntry:
        text, version = self._data[raw_key]
        return KvEntry(decode_key(raw_key), load_value(text), format_versionstamp(version))

    async def get(self, key: Key) -> Optional[KvEntry]:
        raw_key = encode_key(key)
        if raw_key not in self._data:
            return None
        return self._entry(raw_key)

    async def list(self, prefix: Key = ()) -> List[KvEntry]:
        raw_prefix = encode_key(prefix)
        keys = sorted(
            k for k in self._data
            if k.startswith(raw_prefix) and len(k) > len(raw_prefix)
        )
        return [self._entry(k) for k in keys]

    def _apply(self, checks: List[Check], mutations: List[Mutation]) -> CommitResult:
        """Validate and apply a batch. Caller must hold the lock."""
        for check in checks:
            current = self._data.get(encode_key(check.key))
            stamp = format_versionstamp(current[1]) if current else None
            if stamp != check.versionstamp:
                logger.debug("Atomic check failed", key=check.key)
                return CommitResult(ok=False)

        # Stage into a copy so a failing sum leaves the store untouched.
        staged: dict[bytes, Optional[str]] = {}
        for mutation in mutations:
            raw_key = encode_key(mutation.key)
            if mutation.kind == "set":
                staged[raw_key] = mutation.value
            elif mutation.kind == "delete":
                staged[raw_key] = None
            else:
                if raw_key in staged:
                    current = staged[raw_key]
                else:
                    current = self._data[raw_key][0] if raw_key in self._data else None
                staged[raw_key] = apply_sum(current, mutation.value)

        self._version += 1
        for raw_key, text in staged.items():
            if text is None:
                self._data.pop(raw_key, None)
            else:
                self._data[raw_key] = (text, self._version)
        return CommitResult(ok=True, versionstamp=format_versionstamp(self._version))

    async def _commit(self, checks: List[Check], mutations: List[Mutation]) -> CommitResult:
        async with self._lock:
            return self._apply(checks, mutations)

    async def increment(self, key: Key, delta: int = 1) -> int:
        check_delta(delta)
        async with self._lock:
            self._apply([], [Mutation("sum", key, delta)])
            return load_value(self._data[encode_key(key)][0])

    async def close(self) -> None:
        self._data.clear()
