"""
Centralized logging configuration for DashAI.

Modules log through ``logging.getLogger(__name__)``; entry points call
``setup_logging`` once to attach a console handler to the root logger.
"""

import logging
import sys

DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with a single console handler.

    Args:
        level: Log level name, e.g. "DEBUG" or "INFO". Unknown names fall
            back to INFO.
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(
        logging.Formatter(DEFAULT_LOG_FORMAT, datefmt=DEFAULT_LOG_DATE_FORMAT)
    )
    root_logger.addHandler(console_handler)

    logging.getLogger(__name__).debug("Logging configured at %s", logging.getLevelName(numeric_level))
