"""
Centralized configuration management for the Mongo to Elastic observer.

Uses Pydantic Settings for validation and environment variable loading.
Loads from .env file if present, falls back to environment variables, then defaults.
"""
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConnectionSettings(BaseSettings):
    """Named connection strings for the source and target stores.

    Looked up as MONGO_CONNECTION_STRING and ELASTIC_CONNECTION_STRING.
    Both are required by the observer; emptiness is checked there so the
    error surfaces as a configuration error at construction time.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    mongo_connection_string: str = Field(
        default="",
        description="Source store connection (MongoDB URI, replica set required for change streams)"
    )
    elastic_connection_string: str = Field(
        default="",
        description="Target store connection (Elasticsearch URL)"
    )


class ObserverSettings(BaseSettings):
    """Timing and cursor knobs for the observer worker."""

    model_config = SettingsConfigDict(
        env_prefix="OBSERVER_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    idle_interval_seconds: float = Field(
        default=5.0,
        description="Sleep between change stream pulls"
    )
    stop_timeout_seconds: float = Field(
        default=5.0,
        description="Max time stop() waits for the worker to exit"
    )
    max_await_time_ms: int = Field(
        default=1000,
        description="Server-side wait for new changes on each pull"
    )
    batch_size: int = Field(default=100, description="Max change events per pull")
    log_level: str = Field(default="INFO", description="Observer log level")

    @field_validator("idle_interval_seconds", "stop_timeout_seconds")
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("interval must be positive")
        return v

    @field_validator("max_await_time_ms", "batch_size")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of: {allowed}")
        return v.upper()


class Settings(BaseSettings):
    """Main application settings combining all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    connections: ConnectionSettings = Field(default_factory=ConnectionSettings)
    observer: ObserverSettings = Field(default_factory=ObserverSettings)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance (singleton pattern)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment (useful for testing)."""
    global _settings
    _settings = Settings()
    return _settings
