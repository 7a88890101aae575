"""
Logging Configuration Module
============================

Provides centralized logging configuration for s3hub.

Log records from the delete pipeline go to stderr through a Rich
handler, so they never interleave with the progress bar and summary
printed on stdout. A plain-text log file can be added for long runs.

Functions
---------
setup_logging
    Configure application-wide logging.
parse_level
    Convert a level name or number into a logging level.

Example
-------
>>> from s3hub.core.logging import setup_logging
>>>
>>> # Setup logging at application start
>>> setup_logging(level="INFO", log_file="s3hub.log")
>>>
>>> # Modules log through their own logger
>>> logger = logging.getLogger(__name__)
>>> logger.info("Deleting 12000 objects from my-bucket")

Log Levels
----------
- DEBUG: Chunk dispatch and completion, state transitions
- INFO: Start and end of each bulk delete, bucket operations
- WARNING: Retries, failed chunks, cancellation
- ERROR: Region lookup or listing failures

See Also
--------
logging : Python standard library logging module.
rich.logging : Rich library's logging handler.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

# Default format for log messages
DEFAULT_FORMAT = "%(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# AWS SDK loggers that are far too chatty at INFO and DEBUG.
NOISY_LOGGERS = ("boto3", "botocore", "urllib3", "s3transfer")


def parse_level(level: Union[str, int]) -> int:
    """
    Convert a level name (``"debug"``, ``"INFO"``) or number to an int.

    Raises
    ------
    ValueError
        If the name is not a standard logging level.
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[str] = None,
    rich_tracebacks: bool = True,
    console: Optional[Console] = None,
    aws_debug: bool = False,
) -> None:
    """
    Configure application-wide logging.

    Parameters
    ----------
    level : str or int, default="INFO"
        Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    log_file : str, optional
        Path to log file. Records include the worker thread name.
    rich_tracebacks : bool, default=True
        Whether to use Rich for exception tracebacks.
    console : Console, optional
        Rich Console instance. Defaults to a stderr console.
    aws_debug : bool, default=False
        Let boto3 and botocore log at ``level`` instead of WARNING.

    Examples
    --------
    >>> setup_logging(level="DEBUG", log_file="s3hub.log")

    Quiet mode (errors only):

    >>> setup_logging(level="ERROR")

    Notes
    -----
    Handlers installed by a previous call are replaced, so the CLI and
    tests can call it repeatedly.
    """
    level = parse_level(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=True,
        show_path=False,
        rich_tracebacks=rich_tracebacks,
        tracebacks_show_locals=False,
        markup=False,
    )
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    sdk_level = level if aws_debug else max(level, logging.WARNING)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(sdk_level)

    root_logger.debug(
        f"Logging configured: level={logging.getLevelName(level)}, "
        f"file={log_file or 'None'}"
    )
