"""
Identifier allocation on top of the store's atomic counter.
"""

from ..core.errors import AllocationFailure
from ..core.logging import get_logger
from ..kv.base import Key, KvError, KvStore


logger = get_logger(__name__)


class IdAllocator:
    """
    Hands out unique, increasing integer IDs for one collection.
    
    The counter lives under ``("counter", <collection>)``. Allocation is a
    single increment-and-return, so two callers can never observe the
    same value. Deleting the counter key restarts allocation at 1.
    """
    
    COUNTER_NAMESPACE = "counter"
    
    def __init__(self, store: KvStore, collection: str):
        self._store = store
        self.collection = collection
    
    @property
    def key(self) -> Key:
        return (self.COUNTER_NAMESPACE, self.collection)
    
    async def next(self) -> int:
        """
        Allocate the next ID.
        
        Raises:
            AllocationFailure: If the counter increment did not commit
        """
        try:
            id = await self._store.increment(self.key, 1)
        except KvError as e:
            logger.error("ID allocation failed", collection=self.collection, error=str(e))
            raise AllocationFailure() from e
        
        logger.debug("Allocated ID", collection=self.collection, id=id)
        return id
