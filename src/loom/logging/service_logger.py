"""
Logging configuration for loom applications.

Applies a dictConfig with a console handler for the application logger and
the framework's own ``loom`` loggers. Production-like stages (and
``json_format``) switch to one JSON object per record.
"""

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List

from loom.logging.log import LEVELS

if TYPE_CHECKING:
    from loom.config.service_logging_config import ServiceLoggingConfig

PRODUCTION_STAGES = ("prod", "cicd")


class StructuredFormatter(logging.Formatter):
    """JSON formatter for log aggregation systems."""

    def __init__(self, app_name: str):
        super().__init__()
        self.app_name = app_name

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'service': self.app_name,
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_service_logging(config: "ServiceLoggingConfig", app_name: str, stage: str = "local") -> None:
    """
    Configure logging for an application.

    Args:
        config: Logging section of the application configuration
        app_name: Name of the application logger
        stage: Deployment stage; production-like stages log JSON
    """
    level = LEVELS.get(config.level.upper(), logging.INFO)
    use_json = config.json_format or stage in PRODUCTION_STAGES

    formatters: Dict[str, Any] = {
        'human': {'format': config.format},
        'structured': {'()': StructuredFormatter, 'app_name': app_name},
    }
    handlers: Dict[str, Any] = {}
    handler_names: List[str] = []
    if config.console_enabled:
        handlers['console'] = {
            'class': 'logging.StreamHandler',
            'formatter': 'structured' if use_json else 'human',
            'stream': 'ext://sys.stdout',
        }
        handler_names.append('console')

    loggers: Dict[str, Any] = {
        app_name: {'level': level, 'handlers': handler_names, 'propagate': False},
        'loom': {'level': level, 'handlers': handler_names, 'propagate': False},
    }
    for logger_name, logger_config in config.third_party_loggers.items():
        loggers[logger_name] = {
            'level': logger_config.get('level', 'WARNING'),
            'handlers': handler_names,
            'propagate': False,
        }

    logging.config.dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': formatters,
        'handlers': handlers,
        'loggers': loggers,
    })
    logging.getLogger(app_name).info(
        f"Logging configured for {app_name} (stage={stage}, json={use_json}, level={config.level})"
    )
