"""
FastAPI dependency injection.

The store is opened once in the application lifespan and kept on
``app.state``; repositories and services are cheap per-request wrappers
around it.
"""

from fastapi import Depends, Request

from ..kv.base import KvStore
from ..repositories.pokemon_repository import PokemonRepository
from ..services.pokemon_service import PokemonService


def get_store(request: Request) -> KvStore:
    """Get the application's shared store."""
    return request.app.state.store


def get_pokemon_repository(
    store: KvStore = Depends(get_store)
) -> PokemonRepository:
    """Get pokemon repository with the store injected."""
    return PokemonRepository(store)


def get_pokemon_service(
    repository: PokemonRepository = Depends(get_pokemon_repository)
) -> PokemonService:
    """Get pokemon service with repository injected."""
    return PokemonService(repository=repository)
