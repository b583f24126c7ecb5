"""Configuration management."""

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Neo4j
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: SecretStr = SecretStr("password")
    max_connection_pool_size: int = Field(default=50, ge=1, description="Driver connection pool size")
    max_connection_lifetime: int = Field(default=3600, ge=1, description="Connection lifetime in seconds")

    # Result transformation
    stringify_unsafe_integers: bool = Field(
        default=False,
        description="Render integers beyond +/-(2**53 - 1) as decimal strings",
    )

    # Logging
    log_level: str = "INFO"
    logfire_enabled: bool = False

    model_config = SettingsConfigDict(
        env_prefix="CYPHER_BUILDER_",
        env_file=".env",
        extra="ignore",  # Ignore extra fields in .env file
    )


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings()
