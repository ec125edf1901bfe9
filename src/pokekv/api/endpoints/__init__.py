"""
PokeKV API Endpoints

REST API endpoint modules.
"""

from . import health, pokemons

__all__ = [
    "health",
    "pokemons",
]
