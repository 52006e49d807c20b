"""
Logging setup for the raffle engine
Console output for the runner, an optional rotating log file, and quiet third-party loggers
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

# Logger hierarchies carrying the engine's own messages
PROJECT_LOGGERS = ('raffle_engine', 'utils')

# Kept at WARNING unless the engine itself runs at DEBUG
NOISY_LOGGERS = ('sqlalchemy.engine', 'redis', 'asyncio')

CONSOLE_FORMAT = '[%(asctime)s] %(levelname)-8s %(message)s'
FILE_FORMAT = '[%(asctime)s] %(levelname)-8s [%(name)s.%(funcName)s:%(lineno)d] %(message)s'

# Rotating file: 10MB per file, 5 backups
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def _file_handler(log_file):
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    handler = RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding='utf-8'
    )
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    return handler


def setup_logging(log_level=None, log_file=None, loggers=PROJECT_LOGGERS):
    """
    Route the engine's loggers to the console and an optional log file

    Calling it again replaces the handlers installed by the previous call.

    Args:
        log_level: Level name (default: LOG_LEVEL env, then INFO)
        log_file: Path of a rotating log file (optional)
        loggers: Names of the logger hierarchies that receive the handlers

    Returns:
        logging.Logger: The first configured logger
    """
    level_name = str(log_level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
    handlers = [console_handler]

    file_error = None
    if log_file:
        try:
            handlers.append(_file_handler(log_file))
        except OSError as e:
            file_error = e

    for name in loggers:
        logger = logging.getLogger(name)
        for old in list(logger.handlers):
            logger.removeHandler(old)
            old.close()
        logger.setLevel(numeric_level)
        for handler in handlers:
            logger.addHandler(handler)
        logger.propagate = False

    noisy_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)

    main_logger = logging.getLogger(loggers[0])
    if file_error:
        main_logger.error(f"Failed to setup file logging: {file_error}")
    elif log_file:
        main_logger.info(f"📝 File logging enabled: {log_file}")
    return main_logger


def log_error(logger, error, context=None):
    """Log error with optional context"""
    if context:
        logger.error(f"{context}: {error}", exc_info=True)
    else:
        logger.error(str(error), exc_info=True)
