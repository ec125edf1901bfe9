"""
Base repository interface defining CRUD operations.
"""

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar


T = TypeVar("T")
ID = TypeVar("ID")


class Repository(ABC, Generic[T, ID]):
    """
    Abstract base repository defining standard CRUD operations.
    
    Implementations handle persistence to a specific storage backend.
    """
    
    @abstractmethod
    async def create(self, entity: T) -> T:
        """
        Create a new entity.
        
        Args:
            entity: The client-supplied entity
            
        Returns:
            The created entity, including server-assigned fields
        """
        pass
    
    @abstractmethod
    async def get(self, id: ID) -> Optional[T]:
        """
        Get an entity by ID.
        
        Args:
            id: The entity identifier
            
        Returns:
            The entity if found, None otherwise
        """
        pass
    
    @abstractmethod
    async def list(self) -> list[T]:
        """
        List every entity in identifier order.
        
        Returns:
            List of entities
        """
        pass
    
    @abstractmethod
    async def update(self, id: ID, entity: T) -> Optional[T]:
        """
        Replace an entity.
        
        Args:
            id: The entity identifier
            entity: The replacement entity
            
        Returns:
            The stored entity if found, None otherwise
        """
        pass
    
    @abstractmethod
    async def delete(self, id: ID) -> bool:
        """
        Delete an entity.
        
        Args:
            id: The entity identifier
            
        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def delete_all(self) -> int:
        """
        Delete every entity at once.
        
        Returns:
            Number of entities deleted
        """
        pass
    
    @abstractmethod
    async def count(self) -> int:
        """
        Count total entities.
        
        Returns:
            Total number of entities
        """
        pass
