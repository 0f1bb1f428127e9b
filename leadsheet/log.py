"""Logging configuration for leadsheet."""

import logging
import sys
from pathlib import Path


def setup_logging(
    level: str = "INFO", log_file: Path | None = None, verbose: bool = False
) -> logging.Logger:
    """Set up the ``leadsheet`` logger and return it."""
    logger = logging.getLogger("leadsheet")
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()

    if verbose:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    else:
        formatter = logging.Formatter("%(levelname)s: %(message)s")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = "leadsheet") -> logging.Logger:
    """Get logger instance."""
    return logging.getLogger(name)
