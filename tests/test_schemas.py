"""
Tests for record parsing.
"""

import pytest

from pokekv.core.errors import InvalidRecord
from pokekv.schemas import CreatedResponse, PokemonRecord, parse_record


class TestParseRecord:
    """Tests for parse_record."""

    def test_keeps_client_fields(self):
        """Test that arbitrary fields pass through unchanged."""
        record = parse_record('{"name": "Pikachu", "stats": {"hp": 35}, "moves": ["tackle"]}')
        assert record == {"name": "Pikachu", "stats": {"hp": 35}, "moves": ["tackle"]}

    def test_does_not_add_unset_fields(self):
        """Test that absent id/createdAt stay absent."""
        assert "id" not in parse_record('{"name": "Pikachu"}')
        assert "createdAt" not in parse_record('{"name": "Pikachu"}')

    def test_coerces_numeric_id(self):
        """Test that a numeric string id is read as an int."""
        assert parse_record('{"id": "3"}')["id"] == 3

    @pytest.mark.parametrize("text", [
        "not json",
        "[1, 2]",
        '"Pikachu"',
        "null",
        '{"id": -1}',
        '{"id": "abc"}',
        '{"id": 1.5}',
        '{"createdAt": 5}',
    ])
    def test_rejects_invalid(self, text):
        """Test records that fail type/format checks."""
        with pytest.raises(InvalidRecord):
            parse_record(text)


class TestSchemas:
    """Tests for the response schemas."""

    def test_pokemon_record_allows_extra(self):
        """Test that PokemonRecord keeps extra fields."""
        record = PokemonRecord(id=1, name="Pikachu")
        assert record.model_dump()["name"] == "Pikachu"

    def test_created_response(self):
        """Test CreatedResponse serialization."""
        assert CreatedResponse(path="/api/pokemons").model_dump() == {"path": "/api/pokemons"}
