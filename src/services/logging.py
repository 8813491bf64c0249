"""
Logging - Application logging configuration.

Wallet modules log through module-level loggers; this configures the root
logger once with console output. Passwords, private keys and recovery
phrases are never logged.
"""

import logging


LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
LOG_DATE_FORMAT = '%H:%M:%S'


def configure_logging(level: int | str = logging.INFO) -> None:
    """
    Configure Python logging for the application.

    Sets up a root logger with console output.

    Args:
        level: Logging level or level name (default: INFO)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger()

    # Only configure if not already configured
    if root_logger.handlers:
        return

    root_logger.setLevel(level)

    # Console handler with simple format
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root_logger.addHandler(console_handler)
