"""Logging configuration for the application."""

import logging
import sys
from typing import Optional

from ..config.settings import Config

# Third-party loggers that drown out the service's own messages below WARNING
NOISY_LOGGERS = (
    'urllib3',
    'httpx',
    'sqlalchemy.engine',
    'sqlalchemy.pool',
    'multipart',
)

_HANDLER_NAME = 'eventstaff-console'


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure logging for the application.

    Installs one stdout handler on the root logger. Calling it again (the app
    module is imported by both uvicorn and the tests) only adjusts the level.

    Args:
        level: Log level name; defaults to Config.LOG_LEVEL
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, (level or Config.LOG_LEVEL), logging.INFO))

    if not any(handler.get_name() == _HANDLER_NAME for handler in root_logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.set_name(_HANDLER_NAME)
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        root_logger.addHandler(console_handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
