"""
PokeKV - Pokemon CRUD API on an ordered key-value store

A small REST service with:
- Monotonic ID allocation from an atomic counter
- Point lookups and ordered listing over a key-value store
- All-or-nothing bulk deletes
"""

__version__ = "1.0.0"

from .kv import KvStore, MemoryKvStore, SqliteKvStore, open_store
from .repositories import IdAllocator, PokemonRepository
from .services import PokemonService

__all__ = [
    "KvStore",
    "MemoryKvStore",
    "SqliteKvStore",
    "open_store",
    "IdAllocator",
    "PokemonRepository",
    "PokemonService",
]
