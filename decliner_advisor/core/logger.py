"""Logging infrastructure setup."""

import logging
from pathlib import Path

_FORMATTER = logging.Formatter(
    fmt="%(asctime)s | %(levelname)-8s | %(module)s.%(funcName)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)


def setup_logger(name: str = "decliner_advisor") -> logging.Logger:
    """
    Configure and return a standard logger that writes to the console.

    Args:
        name (str): The name of the logger.

    Returns:
        logging.Logger: The configured logger instance.
    """
    logger = logging.getLogger(name)

    # Avoid adding multiple handlers if setup is called multiple times
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(_FORMATTER)
    logger.addHandler(console_handler)

    return logger


def attach_log_file(log_file: str, name: str = "decliner_advisor") -> logging.Logger:
    """
    Add a file handler to the named logger (once per path).

    Args:
        log_file (str): The path to the log file. Parent directories are created.
        name (str): The name of the logger.

    Returns:
        logging.Logger: The logger with the file handler attached.
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    target = setup_logger(name)
    for handler in target.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == log_path.resolve():
            return target

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(_FORMATTER)
    target.addHandler(file_handler)
    return target


# Create a default logger instance
logger = setup_logger()
