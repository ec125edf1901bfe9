"""
Pokemon collection CRUD endpoints.

RESTful API following the collection/member convention:
- POST /pokemons - Create a record
- GET /pokemons - List all records
- GET /pokemons/{id} - Get a record
- PUT /pokemons/{id} - Replace a record
- DELETE /pokemons/{id} - Delete a record
- DELETE /pokemons - Delete every record (practice reset)

Writes carry the record as JSON text in the ``record`` form field.
"""

from typing import Any

from fastapi import APIRouter, Depends, Form, HTTPException, Request, Response, status

from ...core.errors import (
    AllocationFailure,
    AtomicFailure,
    IdentityMismatch,
    InvalidIdentifier,
    InvalidRecord,
    NotFound,
    PokemonError,
)
from ...core.logging import get_logger
from ...kv.base import KvError
from ...schemas.pokemon import CreatedResponse, parse_record
from ...services.pokemon_service import PokemonService
from ..deps import get_pokemon_service


logger = get_logger(__name__)

router = APIRouter(prefix="/pokemons", tags=["pokemons"])


_STATUS_BY_ERROR = {
    InvalidIdentifier: status.HTTP_400_BAD_REQUEST,
    InvalidRecord: status.HTTP_400_BAD_REQUEST,
    IdentityMismatch: status.HTTP_400_BAD_REQUEST,
    NotFound: status.HTTP_404_NOT_FOUND,
    AllocationFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
    AtomicFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _to_http(error: Exception) -> HTTPException:
    """Map a collection or store error to an HTTP error."""
    if isinstance(error, PokemonError):
        return HTTPException(
            status_code=_STATUS_BY_ERROR.get(type(error), status.HTTP_400_BAD_REQUEST),
            detail=error.message
        )
    logger.error("Store unavailable", error=str(error))
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Store unavailable"
    )


# CREATE
@router.post(
    "",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a pokemon",
    responses={
        201: {"description": "Pokemon created; Location holds its path"},
        400: {"description": "Record is not a JSON object"},
        503: {"description": "ID allocation failed"},
    }
)
async def create_pokemon(
    request: Request,
    response: Response,
    record: str = Form(..., description="Pokemon record as JSON"),
    service: PokemonService = Depends(get_pokemon_service)
) -> CreatedResponse:
    """
    Create a pokemon record.
    
    The server assigns **id** and **createdAt**; values sent for them are
    ignored.
    """
    try:
        created = await service.create(parse_record(record))
    except (PokemonError, KvError) as e:
        raise _to_http(e)
    
    response.headers["Location"] = f"{request.url.path}/{created['id']}"
    return CreatedResponse(path=request.url.path)


# READ - List
@router.get(
    "",
    summary="List all pokemons",
    responses={
        200: {"description": "Every record, in ID order"},
        404: {"description": "The collection is empty"},
    }
)
async def list_pokemons(
    service: PokemonService = Depends(get_pokemon_service)
) -> list[dict[str, Any]]:
    """
    List every pokemon record.
    """
    try:
        return await service.list()
    except (PokemonError, KvError) as e:
        raise _to_http(e)


# READ - Get
@router.get(
    "/{id}",
    summary="Get pokemon by ID",
    responses={
        200: {"description": "Pokemon record"},
        400: {"description": "Malformed ID"},
        404: {"description": "Pokemon not found"},
    }
)
async def get_pokemon(
    id: str,
    service: PokemonService = Depends(get_pokemon_service)
) -> dict[str, Any]:
    """
    Get a single pokemon record.
    """
    try:
        return await service.get(id)
    except (PokemonError, KvError) as e:
        raise _to_http(e)


# UPDATE
@router.put(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Replace a pokemon",
    responses={
        204: {"description": "Pokemon replaced"},
        400: {"description": "Malformed ID or record, or record id differs from path"},
        404: {"description": "Pokemon not found"},
    }
)
async def update_pokemon(
    id: str,
    record: str = Form(..., description="Replacement record as JSON"),
    service: PokemonService = Depends(get_pokemon_service)
) -> Response:
    """
    Replace a pokemon record entirely.
    
    The record must embed the same **id** as the path. The original
    **createdAt** is kept.
    """
    try:
        await service.update(id, parse_record(record))
    except (PokemonError, KvError) as e:
        raise _to_http(e)
    
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# DELETE
@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a pokemon",
    responses={
        204: {"description": "Pokemon deleted"},
        400: {"description": "Malformed ID"},
        404: {"description": "Pokemon not found"},
    }
)
async def delete_pokemon(
    id: str,
    service: PokemonService = Depends(get_pokemon_service)
) -> Response:
    """
    Delete a pokemon record permanently.
    """
    try:
        await service.delete(id)
    except (PokemonError, KvError) as e:
        raise _to_http(e)
    
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete every pokemon",
    responses={
        204: {"description": "Collection emptied; IDs restart at 1"},
        503: {"description": "Bulk delete did not commit; nothing was deleted"},
    }
)
async def delete_all_pokemons(
    service: PokemonService = Depends(get_pokemon_service)
) -> Response:
    """
    Delete the whole collection atomically and reset ID allocation.
    """
    try:
        await service.delete_all()
    except (PokemonError, KvError) as e:
        raise _to_http(e)
    
    return Response(status_code=status.HTTP_204_NO_CONTENT)
