"""
Logging configuration. Console output in development, JSON lines
(python-json-logger) when LOG_JSON is enabled.
"""
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger.json import JsonFormatter

from infrastructure.config import Settings


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter with timestamp, level and logger name"""

    environment = "development"

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)
        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['environment'] = self.environment


def build_logging_config(settings: Settings) -> Dict[str, Any]:
    CustomJsonFormatter.environment = settings.ENVIRONMENT
    level = "DEBUG" if settings.DEBUG else settings.LOG_LEVEL.upper()
    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
            },
            'json': {
                '()': CustomJsonFormatter,
                'format': '%(timestamp)s %(level)s %(logger)s %(message)s'
            },
        },
        'handlers': {
            'console': {
                'level': level,
                'class': 'logging.StreamHandler',
                'formatter': 'json' if settings.LOG_JSON else 'standard'
            },
        },
        'loggers': {
            '': {
                'handlers': ['console'],
                'level': level,
            },
            'uvicorn.access': {
                'handlers': ['console'],
                'level': 'WARNING',
                'propagate': False,
            },
        },
    }


def configure_logging(settings: Settings) -> None:
    logging.config.dictConfig(build_logging_config(settings))
