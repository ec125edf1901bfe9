"""
Pokemon repository over the ordered key-value store.

Records live under ``("pokemons", <id>)``; a key's presence is the only
existence signal. Storage keys and the embedded ``id`` field are kept
equal by construction, so every lookup is a point read.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from ..core.errors import AtomicFailure
from ..core.logging import get_logger
from ..kv.base import Key, KvError, KvStore
from .base import Repository
from .id_allocator import IdAllocator


logger = get_logger(__name__)


Record = dict[str, Any]


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PokemonRepository(Repository[Record, int]):
    """
    Repository for pokemon records.
    
    Stateless between calls: all shared state is in the store, and every
    mutation goes through one of its atomic primitives.
    """
    
    COLLECTION = "pokemons"
    # Compare-and-set attempts before an update gives up on a busy record
    MAX_UPDATE_ATTEMPTS = 5
    
    def __init__(self, store: KvStore, allocator: Optional[IdAllocator] = None):
        """
        Initialize the pokemon repository.
        
        Args:
            store: Shared key-value store
            allocator: ID allocator (defaults to one for this collection)
        """
        self._store = store
        self._allocator = allocator or IdAllocator(store, self.COLLECTION)
    
    def _key(self, id: int) -> Key:
        return (self.COLLECTION, id)
    
    # CRUD Operations
    
    async def create(self, entity: Record) -> Record:
        """
        Store a new record under a freshly allocated ID.
        
        Server-assigned ``id`` and ``createdAt`` override any values the
        client sent.
        
        Raises:
            AllocationFailure: If no ID could be allocated
        """
        id = await self._allocator.next()
        record = dict(entity)
        record["id"] = id
        record["createdAt"] = utc_timestamp()
        
        # The ID was never issued before, so the write cannot collide.
        await self._store.set(self._key(id), record)
        logger.info("Created pokemon", id=id)
        return record
    
    async def get(self, id: int) -> Optional[Record]:
        """Get a record by ID."""
        entry = await self._store.get(self._key(id))
        return None if entry is None else entry.value
    
    async def list(self) -> list[Record]:
        """List every record in ascending ID order."""
        entries = await self._store.list((self.COLLECTION,))
        return [entry.value for entry in entries]
    
    async def update(self, id: int, entity: Record) -> Optional[Record]:
        """
        Replace a record wholesale.
        
        The write is conditional on the record still existing, so a record
        deleted concurrently is never resurrected.
        
        Raises:
            AtomicFailure: If concurrent writers kept the record busy
        """
        key = self._key(id)
        for _ in range(self.MAX_UPDATE_ATTEMPTS):
            entry = await self._store.get(key)
            if entry is None:
                return None
            
            result = await (
                self._store.atomic()
                .check(key, entry.versionstamp)
                .set(key, entity)
                .commit()
            )
            if result.ok:
                logger.info("Updated pokemon", id=id)
                return dict(entity)
            
            logger.debug("Pokemon changed during update, retrying", id=id)
        
        raise AtomicFailure(f"Pokemon {id} kept changing during update")
    
    async def delete(self, id: int) -> bool:
        """Delete a record."""
        key = self._key(id)
        if await self._store.get(key) is None:
            return False
        
        await self._store.delete(key)
        logger.info("Deleted pokemon", id=id)
        return True
    
    async def delete_all(self) -> int:
        """
        Delete every record and reset ID allocation, all or nothing.
        
        The listed records and the counter are removed in one atomic batch.
        Each listed record is checked against the versionstamp it was listed
        with, so a concurrent update fails the batch rather than being
        silently discarded. Records created after the listing are not
        included.
        
        Raises:
            AtomicFailure: If the batch did not commit
        """
        try:
            entries = await self._store.list((self.COLLECTION,))
            op = self._store.atomic()
            for entry in entries:
                op.check(entry.key, entry.versionstamp).delete(entry.key)
            op.delete(self._allocator.key)
            result = await op.commit()
        except KvError as e:
            logger.error("Bulk delete failed", error=str(e))
            raise AtomicFailure() from e
        
        if not result.ok:
            logger.warning("Bulk delete did not commit", count=len(entries))
            raise AtomicFailure()
        
        logger.info("Deleted all pokemons", count=len(entries))
        return len(entries)
    
    async def count(self) -> int:
        """Count stored records."""
        return len(await self._store.list((self.COLLECTION,)))
