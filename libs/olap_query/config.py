"""Query service configuration settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .cache import CacheConfig


class OlapQuerySettings(BaseSettings):
    """Settings for connections and the result cache."""

    model_config = SettingsConfigDict(
        env_prefix="OLAP_QUERY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    service_name: str = Field(default="olap-rest-api", description="Service name")
    connections_path: str = Field(
        default="config/connections",
        description="Connection file, or directory of JSON/YAML connection files",
    )
    remove_demo_connections: bool = Field(
        default=False, description="Skip connections flagged with IsDemo"
    )
    cache_max_entries: int = Field(
        default=1000, gt=0, description="Maximum number of cached results"
    )
    cache_ttl_seconds: int | None = Field(
        default=None, gt=0, description="Cached result lifetime; unset keeps results"
    )

    def get_cache_config(self) -> CacheConfig:
        """Build the result cache configuration."""
        return CacheConfig(
            max_entries=self.cache_max_entries, ttl_seconds=self.cache_ttl_seconds
        )


_settings: OlapQuerySettings | None = None


def get_olap_query_settings() -> OlapQuerySettings:
    """Get the settings singleton."""
    global _settings

    if _settings is None:
        _settings = OlapQuerySettings()

    return _settings


def configure_olap_query_settings(settings: OlapQuerySettings | None) -> None:
    """Override the settings singleton (for testing)."""
    global _settings
    _settings = settings
