"""Logging utilities for the mail composer.

This module provides a centralized logger accessor. The actual logging setup
(level, handlers, format) is configured via ``logging.basicConfig()`` in the
command line entry point to avoid duplicate handlers.

Example:
    Typical usage in a module::

        from mail_composer.logger import get_logger

        logger = get_logger("mail")
        logger.info("Message handed to sendmail")
"""

import logging

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str = "MailComposer") -> logging.Logger:
    """Retrieve a logger instance.

    This function returns a standard library logger with the specified name.
    It does not configure handlers or formatters; that responsibility lies
    with the application entry point.

    Args:
        name: The logger name. Defaults to "MailComposer".

    Returns:
        A ``logging.Logger`` instance bound to the given name.
    """
    return logging.getLogger(name)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for command line usage."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        force=True,
    )
