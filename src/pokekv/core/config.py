"""
PokeKV Configuration using Pydantic Settings.

Provides strongly typed configuration with environment variable support,
validation, and sensible defaults.

Environment variables use POKEKV_ prefix:
- POKEKV_HOST, POKEKV_PORT (server settings)
- POKEKV_STORE_BACKEND, POKEKV_STORE_PATH (store settings)
- POKEKV_LOG_LEVEL, POKEKV_LOG_FORMAT (log settings)
- POKEKV_API_CORS_ORIGINS, POKEKV_API_STATIC_DIR (api settings)
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_project_root() -> Path:
    """Get the project root directory."""
    if env_home := os.getenv("POKEKV_HOME"):
        return Path(env_home)
    
    return Path.cwd()


class ServerSettings(BaseSettings):
    """HTTP server configuration settings."""
    
    model_config = SettingsConfigDict(
        env_prefix="POKEKV_",
        extra="ignore",
    )
    
    host: str = Field(
        default="127.0.0.1",
        description="Server bind address"
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Server bind port"
    )


class StoreSettings(BaseSettings):
    """Key-value store configuration settings."""
    
    model_config = SettingsConfigDict(
        env_prefix="POKEKV_STORE_",
        extra="ignore",
    )
    
    backend: Literal["memory", "sqlite"] = Field(
        default="memory",
        description="Store backend (memory, sqlite)"
    )
    path: str = Field(
        default="data/pokekv.sqlite3",
        description="SQLite database file (relative to project root)"
    )


class LogSettings(BaseSettings):
    """Logging configuration settings."""
    
    model_config = SettingsConfigDict(
        env_prefix="POKEKV_LOG_",
        extra="ignore",
    )
    
    level: str = Field(
        default="INFO",
        description="Log level"
    )
    format: str = Field(
        default="json",
        description="Log format (json, console)"
    )
    file: Optional[str] = Field(
        default=None,
        description="Log file path"
    )
    
    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator('format')
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        v_lower = v.lower()
        if v_lower not in {"json", "console"}:
            raise ValueError(f"Invalid log format: {v}. Must be json or console")
        return v_lower


class ApiSettings(BaseSettings):
    """HTTP API configuration settings."""
    
    model_config = SettingsConfigDict(
        env_prefix="POKEKV_API_",
        extra="ignore",
    )
    
    cors_origins: str = Field(
        default="",
        description="Comma-separated CORS origins (empty disables CORS)"
    )
    static_dir: Optional[str] = Field(
        default="public",
        description="Directory served at / when it exists"
    )

    def get_cors_origins(self) -> list[str]:
        """Split the configured CORS origins."""
        return [
            origin.strip()
            for origin in self.cors_origins.split(",")
            if origin.strip()
        ]


class Settings(BaseSettings):
    """
    Main application settings.
    
    Loads configuration from:
    1. Environment variables (POKEKV_* prefix)
    2. YAML config file (config/config.yaml)
    3. Default values
    
    Values set in the YAML file win over the environment for the
    sections it defines.
    """
    
    model_config = SettingsConfigDict(
        env_prefix="POKEKV_",
        env_nested_delimiter="__",
        extra="ignore",
    )
    
    server: ServerSettings = Field(default_factory=ServerSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    
    @classmethod
    def load_from_yaml(cls, config_file: Path) -> "Settings":
        """Load settings from YAML file with environment overrides."""
        data = {}
        
        if config_file.exists():
            with open(config_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        
        settings_dict = {}
        
        if 'server' in data:
            settings_dict['server'] = ServerSettings(**data['server'])
        if 'store' in data:
            settings_dict['store'] = StoreSettings(**data['store'])
        if 'log' in data:
            settings_dict['log'] = LogSettings(**data['log'])
        if 'api' in data:
            settings_dict['api'] = ApiSettings(**data['api'])
        
        return cls(**settings_dict)
    
    def resolve_path(self, relative_path: str) -> Path:
        """Resolve a relative path against the project root."""
        path = Path(relative_path)
        if path.is_absolute():
            return path
        return get_project_root() / path
    
    def get_store_path(self) -> Path:
        """Get the absolute path to the SQLite store file."""
        return self.resolve_path(self.store.path)

    def get_static_dir(self) -> Optional[Path]:
        """Get the static site directory, if one is configured."""
        if not self.api.static_dir:
            return None
        return self.resolve_path(self.api.static_dir)
    
    def save_to_yaml(self, config_file: Path) -> None:
        """Save settings to YAML file."""
        config_file.parent.mkdir(parents=True, exist_ok=True)
        
        data = {
            'server': {
                'host': self.server.host,
                'port': self.server.port,
            },
            'store': {
                'backend': self.store.backend,
                'path': self.store.path,
            },
            'log': {
                'level': self.log.level,
                'format': self.log.format,
                'file': self.log.file,
            },
            'api': {
                'cors_origins': self.api.cors_origins,
                'static_dir': self.api.static_dir,
            },
        }
        
        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


def get_default_config_file() -> Path:
    """Get the default config file location."""
    return get_project_root() / "config" / "config.yaml"


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached singleton).
    
    First attempts to load from config/config.yaml, then applies
    environment variable overrides.
    """
    config_file = get_default_config_file()
    
    if config_file.exists():
        return Settings.load_from_yaml(config_file)
    
    return Settings()
