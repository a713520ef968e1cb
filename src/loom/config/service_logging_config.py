"""Logging section of the application configuration."""

from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator

from loom.logging.log import LEVELS


class ServiceLoggingConfig(BaseModel):
    """Settings applied by configure_service_logging and the ``$L`` built-in."""

    level: str = "DEBUG"
    format: str = "%(asctime)s %(levelname)-8s %(name)s - %(message)s"
    console_enabled: bool = True
    json_format: bool = Field(
        default=False,
        description="One JSON object per record; always on for prod and cicd stages",
    )
    # e.g. {"werkzeug": {"level": "WARNING"}}
    third_party_loggers: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        if value.upper() not in LEVELS:
            raise ValueError(f"Unknown log level {value!r}, expected one of {sorted(LEVELS)}")
        return value.upper()
