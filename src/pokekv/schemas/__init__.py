"""
PokeKV API Schemas

Request and response schemas for the REST API.
"""

from .pokemon import (
    PokemonRecord,
    CreatedResponse,
    parse_record,
)

__all__ = [
    "PokemonRecord",
    "CreatedResponse",
    "parse_record",
]
