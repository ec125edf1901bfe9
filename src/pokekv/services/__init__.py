"""
PokeKV Services

Business logic layer between the API/CLI and the repositories.
"""

from .pokemon_service import PokemonService, parse_id

__all__ = [
    "PokemonService",
    "parse_id",
]
