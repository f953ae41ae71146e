"""
Shared configuration management for the odds proxy.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="PROXY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Inbound surface
    host: str = Field(default="0.0.0.0")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int = Field(default=8000)

    def __init__(self, service_name: str, port: Optional[int] = None, **kwargs):
        # An explicit port wins over PROXY_PORT; otherwise the environment decides.
        if port is not None:
            kwargs["port"] = port
        super().__init__(service_name=service_name, **kwargs)


def get_config(service_name: str, port: Optional[int] = None) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port)
