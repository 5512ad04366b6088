"""
Logging configuration for testbridge
"""
import logging
import sys
from pathlib import Path
from typing import Union

ASSERTION_FILE_NAME = "AssertionResults.txt"


def setup_logger(name: str = "testbridge", log_file: str = None, level=logging.INFO):
    """
    Setup logger with console and file handlers

    Args:
        name: Logger name
        log_file: Optional log file path
        level: Logging level
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    detailed_formatter = logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    simple_formatter = logging.Formatter(
        '%(levelname)s: %(message)s'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(simple_formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)
        logger.addHandler(file_handler)

    return logger


def logger_setup(path: Union[str, Path]) -> logging.Logger:
    """
    Create the assertion results logger for a test result directory.

    Lines go to stdout and are appended to `<path>/AssertionResults.txt`.
    The directory is created when missing.
    """
    result_dir = Path(path)
    result_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(f"testbridge.assertions.{result_dir.resolve()}")
    logger.setLevel(logging.INFO)
    logger.propagate = False
    close_logger(logger)

    message_formatter = logging.Formatter('%(message)s')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(message_formatter)
    logger.addHandler(console_handler)

    file_handler = logging.FileHandler(result_dir / ASSERTION_FILE_NAME, mode='a', encoding='utf-8')
    file_handler.setFormatter(message_formatter)
    logger.addHandler(file_handler)

    return logger


def write_log(message: str, logger: logging.Logger):
    """Display a log line in the console and append it to the log file"""
    logger.info(message)


def close_logger(logger: logging.Logger):
    """Flush and close every handler attached to the logger"""
    for handler in list(logger.handlers):
        handler.flush()
        handler.close()
        logger.removeHandler(handler)
