from .log import LEVELS, LeveledLogger, Log
from .service_logger import configure_service_logging

__all__ = ["Log", "LeveledLogger", "LEVELS", "configure_service_logging"]
