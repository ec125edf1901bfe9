"""
PokeKV REST API

FastAPI-based REST API for the pokemon collection.
"""

from .app import create_app
from .deps import get_pokemon_service, get_store

__all__ = [
    "create_app",
    "get_pokemon_service",
    "get_store",
]
