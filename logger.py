"""Logging configuration for ledgerd.

The worker writes response envelopes to stdout, so console logging always
goes to stderr. A dated log file is kept alongside it.
"""

import logging
import sys
from datetime import date
from config import Config

LOGGER_NAME = "ledgerd"


def setup_logging(config: Config, console: bool = True) -> logging.Logger:
    """Set up application logging with file and (optionally) console handlers.

    Args:
        config: Application configuration containing log settings.
        console: Whether to also log to stderr.

    Returns:
        Configured logger instance.
    """
    config.log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(config.log_level)
    logger.propagate = False

    # Calling this twice must not duplicate output
    logger.handlers.clear()

    detailed_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    log_file_path = config.log_dir / f"ledgerd-{date.today().isoformat()}.log"
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(config.log_level)
    file_handler.setFormatter(detailed_formatter)
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(config.log_level)
        console_handler.setFormatter(logging.Formatter("%(levelname)s - %(message)s"))
        logger.addHandler(console_handler)

    return logger


def get_logger() -> logging.Logger:
    """Get the application logger.

    Returns:
        The ledgerd logger instance.
    """
    return logging.getLogger(LOGGER_NAME)
