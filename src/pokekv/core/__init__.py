"""
PokeKV Core Module

Configuration, logging, and the error taxonomy.
"""

from .config import (
    Settings,
    ServerSettings,
    StoreSettings,
    LogSettings,
    ApiSettings,
    get_settings,
)
from .errors import (
    PokemonError,
    InvalidIdentifier,
    InvalidRecord,
    IdentityMismatch,
    NotFound,
    AllocationFailure,
    AtomicFailure,
)
from .logging import setup_logging, get_logger

__all__ = [
    # Settings
    "Settings",
    "ServerSettings",
    "StoreSettings",
    "LogSettings",
    "ApiSettings",
    "get_settings",
    # Errors
    "PokemonError",
    "InvalidIdentifier",
    "InvalidRecord",
    "IdentityMismatch",
    "NotFound",
    "AllocationFailure",
    "AtomicFailure",
    # Logging
    "setup_logging",
    "get_logger",
]
