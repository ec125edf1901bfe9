"""
PokeKV Repositories

Data access layer implementing the repository pattern.
"""

from .base import Repository
from .id_allocator import IdAllocator
from .pokemon_repository import PokemonRepository

__all__ = [
    "Repository",
    "IdAllocator",
    "PokemonRepository",
]
