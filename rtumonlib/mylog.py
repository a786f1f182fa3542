# -------------------------------------------------------------------------------
# PURPOSE: setup logging
#
#  AUTHOR: Jason G Yates
#    DATE: 03-Dec-2016
#
# MODIFICATIONS:
# -------------------------------------------------------------------------------

"""
Module for setting up and configuring logging.

Every module of the package writes its errors to its own rotating log file
and, for messages meant for the operator, to a console logger. Both are
plain `logging` loggers built by `SetupLogger`.
"""

import logging
import logging.handlers


def SetupLogger(
    logger_name: str,
    log_file: str,
    level: int = logging.INFO,
    stream: bool = False,
    max_bytes: int = 50000,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configures and returns a logger instance.

    Handlers already attached to the named logger are removed first so that
    repeated setup (a reconnect, a second session in the same process) does
    not duplicate output.

    Args:
        logger_name (str): The name of the logger to retrieve.
        log_file (str): Path of the rotating log file. An empty string skips
            file logging.
        level (int, optional): The logging level. Defaults to logging.INFO.
        stream (bool, optional): If True, also log unformatted messages to
            the console. Defaults to False.
        max_bytes (int, optional): Rotation size of the log file.
        backup_count (int, optional): Number of rotated files kept.

    Returns:
        logging.Logger: The configured logger instance.
    """
    logger = logging.getLogger(logger_name)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    logger.setLevel(level)
    logger.propagate = False

    if log_file != "":
        try:
            rotate = logging.handlers.RotatingFileHandler(
                log_file, mode="a", maxBytes=max_bytes, backupCount=backup_count
            )
            rotate.setFormatter(logging.Formatter("%(asctime)s : %(message)s"))
            logger.addHandler(rotate)
        except OSError:
            # missing or unwritable log location, keep going without a file
            logger.addHandler(logging.NullHandler())

    if stream:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(stream_handler)

    return logger
