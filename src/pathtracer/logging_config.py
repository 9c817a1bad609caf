"""Logging configuration for the path tracer."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

PACKAGE_LOGGER = "src.pathtracer"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Set up console logging for the package.

    Calling it again only changes the level; a second handler is never added.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        The package logger.
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(numeric_level)

    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(console_handler)

    for handler in logger.handlers:
        handler.setLevel(numeric_level)

    return logger
