"""
Store construction from settings.
"""

from ..core.config import Settings
from ..core.logging import get_logger
from .base import KvStore
from .memory import MemoryKvStore
from .sqlite import SqliteKvStore


logger = get_logger(__name__)


async def open_store(settings: Settings) -> KvStore:
    """
    Open the store selected by ``settings.store.backend``.
    
    Args:
        settings: Application settings
        
    Returns:
        A ready-to-use store; the caller owns closing it
    """
    if settings.store.backend == "sqlite":
        return await SqliteKvStore.open(settings.get_store_path())
    
    logger.info("Using in-memory store; data is lost on shutdown")
    return MemoryKvStore()
