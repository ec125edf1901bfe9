"""
Pokemon API schemas for request/response validation.

Records are semi-structured: clients may send any fields. Only the
server-assigned fields carry type constraints.
"""

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.errors import InvalidRecord


class PokemonRecord(BaseModel):
    """A pokemon record as sent in the ``record`` form field."""
    
    model_config = ConfigDict(extra="allow")
    
    id: Optional[int] = Field(
        default=None,
        ge=0,
        description="Server-assigned ID (required on update, ignored on create)",
        examples=[1]
    )
    createdAt: Optional[str] = Field(
        default=None,
        description="Server-assigned creation time (ISO-8601 UTC)",
        examples=["2024-01-01T00:00:00.000Z"]
    )


class CreatedResponse(BaseModel):
    """Response for POST /pokemons."""
    path: str = Field(..., description="Path the record was posted to")


def parse_record(text: str) -> dict[str, Any]:
    """
    Parse the ``record`` form field into a record mapping.
    
    Args:
        text: JSON text of the record
        
    Returns:
        The record fields, with ``id`` coerced to int when present
        
    Raises:
        InvalidRecord: If the text is not a JSON object or ``id`` is not
            a non-negative integer
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidRecord(f"Record is not valid JSON: {e.msg}") from e
    
    if not isinstance(data, dict):
        raise InvalidRecord("Record must be a JSON object")
    
    try:
        record = PokemonRecord.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise InvalidRecord(f"Invalid record field {field!r}: {first['msg']}") from e
    
    return record.model_dump(exclude_unset=True)
