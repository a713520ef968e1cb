from .application_config import DatabaseConfig, LoomConfig, RedisConfig, WebConfig
from .service_config_loader import ServiceConfigLoader
from .service_logging_config import ServiceLoggingConfig

__all__ = [
    "LoomConfig",
    "WebConfig",
    "RedisConfig",
    "DatabaseConfig",
    "ServiceLoggingConfig",
    "ServiceConfigLoader",
]
