"""Logging utilities for the multiquery_rag package.

A small factory keeps logger setup consistent between the pipeline, its
components and the command-line entry point. ``logging.basicConfig`` is
applied once per process, so repeated factory calls never stack handlers.

Usage:
    >>> from multiquery_rag.utils.logging import LoggerFactory
    >>> logger = LoggerFactory(__name__).get_logger()
    >>> logger.info("Expanded into %d queries", 3)

    # Or take the level from the LOG_LEVEL environment variable
    >>> logger = LoggerFactory.configure_from_env(__name__).get_logger()
"""

import logging
import os
from typing import Any


DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class LoggerFactory:
    """Create named loggers backed by a single process-wide configuration.

    Attributes:
        logger_name (str): Name of the logger to hand out.
        log_level (int): Level applied to the root configuration and the logger.
        log_format (str): Format string for log records.
        logger (logging.Logger): The configured logger instance.
    """

    _is_logger_initialized: bool = False

    def __init__(
        self,
        logger_name: str,
        log_level: int = logging.INFO,
        log_format: str = DEFAULT_LOG_FORMAT,
    ) -> None:
        """Initialize the factory and configure logging if not done yet.

        Args:
            logger_name (str): Name of the logger to create.
            log_level (int, optional): Logging level (default is logging.INFO).
            log_format (str, optional): Format for log messages.
        """
        self.logger_name = logger_name
        self.log_level = log_level
        self.log_format = log_format
        self.logger = self._initialize_logger()

    def _initialize_logger(self) -> logging.Logger:
        if not LoggerFactory._is_logger_initialized:
            logging.basicConfig(level=self.log_level, format=self.log_format)
            LoggerFactory._is_logger_initialized = True

        logger = logging.getLogger(self.logger_name)
        logger.setLevel(self.log_level)
        return logger

    def get_logger(self) -> logging.Logger:
        """Return the configured logger instance."""
        return self.logger

    @staticmethod
    def configure_from_env(
        logger_name: str, env_var: str = "LOG_LEVEL"
    ) -> "LoggerFactory":
        """Build a factory whose level comes from an environment variable.

        Args:
            logger_name (str): Name of the logger to create.
            env_var (str, optional): Environment variable holding the level name.

        Returns:
            LoggerFactory: Factory configured with the resolved level.
        """
        log_level_str = os.getenv(env_var, "INFO").upper()
        # Unknown level names fall back to INFO
        log_level = getattr(logging, log_level_str, logging.INFO)
        return LoggerFactory(logger_name, log_level=log_level)


def setup_logger(config: dict[str, Any]) -> logging.Logger:
    """Set up a logger from the ``logging`` section of a configuration.

    Args:
        config: Configuration dictionary, optionally containing
            ``logging.name`` and ``logging.level``.

    Returns:
        Configured logger instance.
    """
    logging_config = config.get("logging") or {}
    logger_name = logging_config.get("name", "multiquery_rag")
    log_level_str = str(logging_config.get("level", "INFO"))
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)

    factory = LoggerFactory(logger_name, log_level=log_level)
    return factory.get_logger()
