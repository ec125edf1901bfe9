"""
Health check endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from ...core.logging import get_logger
from ...kv.base import KvError, KvStore
from ..deps import get_store


logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
@router.get("/")
async def health_check() -> dict:
    """
    Health check endpoint.
    
    Returns basic service status.
    """
    return {
        "status": "healthy",
        "service": "pokekv"
    }


@router.get("/ready")
async def readiness_check(
    store: KvStore = Depends(get_store)
) -> dict:
    """
    Readiness check endpoint.
    
    Reports ready once the store answers a point lookup.
    """
    try:
        await store.get(("health",))
    except KvError as e:
        logger.error("Store not ready", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Store unavailable"
        )
    
    return {
        "status": "ready",
        "service": "pokekv"
    }
