"""
Pokemon service implementing the collection's business rules.

This service layer sits between the API/CLI and the repository. It owns
identifier validation, existence checks and the update identity rule,
and reports every failure as a typed error from ``core.errors``.
"""

import re
from typing import Any

from ..core.errors import IdentityMismatch, InvalidIdentifier, NotFound
from ..core.logging import get_logger
from ..repositories.pokemon_repository import PokemonRepository, Record


logger = get_logger(__name__)


_ID_PATTERN = re.compile(r"[0-9]+")
# Largest integer a store key can hold
MAX_ID = (1 << 63) - 1


def parse_id(raw: str, action: str = "access") -> int:
    """
    Parse a path identifier.
    
    Args:
        raw: Identifier as it appeared in the path
        action: Verb used in the error message
        
    Returns:
        The identifier as a non-negative int
        
    Raises:
        InvalidIdentifier: If ``raw`` is not a run of ASCII digits, or
            names an ID too large to ever be allocated
    """
    text = raw.strip()
    if not _ID_PATTERN.fullmatch(text):
        raise InvalidIdentifier(raw, action)
    id = int(text)
    if id > MAX_ID:
        raise InvalidIdentifier(raw, action)
    return id


class PokemonService:
    """
    Service for pokemon collection operations.
    
    - Create: allocate an ID and stamp server fields
    - Read: one record or the whole collection (empty is NotFound)
    - Update: full replace, keeping the original createdAt
    - Delete: one record or the whole collection
    """
    
    def __init__(self, repository: PokemonRepository):
        """
        Initialize the pokemon service.
        
        Args:
            repository: Pokemon repository for data access
        """
        self._repo = repository
    
    # CREATE
    
    async def create(self, fields: dict[str, Any]) -> Record:
        """
        Create a record from client-supplied fields.
        
        Raises:
            AllocationFailure: If no ID could be allocated
        """
        return await self._repo.create(fields)
    
    # READ
    
    async def get(self, raw_id: str) -> Record:
        """
        Get one record.
        
        Raises:
            InvalidIdentifier: If the ID is malformed
            NotFound: If no record has this ID
        """
        id = parse_id(raw_id, "get")
        record = await self._repo.get(id)
        if record is None:
            raise NotFound(id)
        return record
    
    async def list(self) -> list[Record]:
        """
        Get every record in ID order.
        
        Raises:
            NotFound: If the collection is empty
        """
        records = await self._repo.list()
        if not records:
            raise NotFound()
        return records
    
    # UPDATE
    
    async def update(self, raw_id: str, record: dict[str, Any]) -> None:
        """
        Replace a record with ``record``.
        
        The replacement must embed the same ``id`` as the path. Its
        ``createdAt`` is always reset to the stored value; any other field
        not in ``record`` is dropped.
        
        Raises:
            InvalidIdentifier: If the ID is malformed
            NotFound: If no record has this ID
            IdentityMismatch: If ``record["id"]`` differs from the ID
        """
        id = parse_id(raw_id, "update")
        current = await self._repo.get(id)
        if current is None:
            raise NotFound(id)
        
        if record.get("id") != id:
            logger.warning("Rejected update with mismatched id", id=id, record_id=record.get("id"))
            raise IdentityMismatch(id, record.get("id"))
        
        replacement = dict(record)
        if "createdAt" in current:
            replacement["createdAt"] = current["createdAt"]
        else:
            replacement.pop("createdAt", None)
        
        if await self._repo.update(id, replacement) is None:
            raise NotFound(id)
    
    # DELETE
    
    async def delete(self, raw_id: str) -> None:
        """
        Delete one record.
        
        Raises:
            InvalidIdentifier: If the ID is malformed
            NotFound: If no record has this ID
        """
        id = parse_id(raw_id, "delete")
        if not await self._repo.delete(id):
            raise NotFound(id)
    
    async def delete_all(self) -> int:
        """
        Delete the whole collection and restart IDs at 1.
        
        Raises:
            AtomicFailure: If the bulk delete did not commit
        """
        return await self._repo.delete_all()
