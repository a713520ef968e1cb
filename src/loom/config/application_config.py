"""Configuration schema for loom applications."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from loom.config.service_logging_config import ServiceLoggingConfig


class WebConfig(BaseModel):
    """Hosting web server settings."""

    host: str = "0.0.0.0"
    port: int = 8080


class RedisConfig(BaseModel):
    """Key-value store connection settings."""

    host: str = "localhost"
    port: int = 6379
    password: Optional[str] = None
    db: int = 0
    key_prefix: str = "loom"


class DatabaseConfig(BaseModel):
    """Settings of one named PostgreSQL backing store."""

    name: str = "postgres"
    host: str = "localhost"
    port: int = 5432
    database: str
    username: str
    password: str = ""
    min_connections: int = 1
    max_connections: int = 20


class LoomConfig(BaseModel):
    """Base configuration every loom application inherits."""

    app_name: str
    version: str = "1.0.0"
    stage: str = "local"  # local | cicd | prod

    web: WebConfig = Field(default_factory=WebConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    databases: List[DatabaseConfig] = Field(default_factory=list)

    readiness_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound for a module to signal readiness during startup",
    )

    logging: ServiceLoggingConfig = Field(default_factory=ServiceLoggingConfig)

    parameters: Dict[str, Any] = Field(
        default_factory=dict,
        description="Initial values for application parameters",
    )
