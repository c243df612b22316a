#
# Copyright (c) 2023 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
#
# NVIDIA CORPORATION, its affiliates and licensors retain all intellectual
# property and proprietary rights in and to this material, related
# documentation and any modifications thereto. Any use, reproduction,
# disclosure or distribution of this material and related documentation
# without an express license agreement from NVIDIA CORPORATION or
# its affiliates is strictly prohibited.
#
"""
Logging helpers of robot_self_filter, thin wrappers around :py:class:`logging.Logger`.

Degraded operation (missing links, failed transform lookups, unusable meshes) is reported with
:py:func:`log_warn` and never interrupts a frame update or a classification. Misuse of the API is
reported with :py:func:`log_error`, which also raises. Call :py:func:`setup_logger` to print
messages of a given level.
"""
# Standard Library
import logging

#: Name of the logger used by all modules of this package.
LOGGER_NAME = "robot_self_filter"

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def setup_logger(level: str = "info", logger_name: str = LOGGER_NAME):
    """Print messages of ``logger_name`` from ``level`` upwards.

    Args:
        level: One of "debug", "info", "warn", "warning" or "error".
        logger_name: Logger to configure.

    Raises:
        ValueError: If level is not a known level name.
    """
    if level not in _LOG_LEVELS:
        raise ValueError("Log level should be one of " + ", ".join(_LOG_LEVELS.keys()))
    logging.basicConfig(format="[%(levelname)s] [%(name)s] %(message)s")
    logging.getLogger(logger_name).setLevel(_LOG_LEVELS[level])


def log_debug(txt: str, logger_name: str = LOGGER_NAME, *args, **kwargs):
    logging.getLogger(logger_name).debug(txt, *args, **kwargs)


def log_info(txt: str, logger_name: str = LOGGER_NAME, *args, **kwargs):
    logging.getLogger(logger_name).info(txt, *args, **kwargs)


def log_warn(txt: str, logger_name: str = LOGGER_NAME, *args, **kwargs):
    """Report a recoverable problem. Execution continues in a degraded mode."""
    logging.getLogger(logger_name).warning(txt, *args, **kwargs)


def log_error(txt: str, logger_name: str = LOGGER_NAME, exc_info: bool = False, *args, **kwargs):
    """Log an error and raise it as :py:class:`ValueError`.

    Args:
        txt: Description of the error, also used as the exception message.
        logger_name: Logger to write to.
        exc_info: Attach the exception being handled, if any, to the log record.

    Raises:
        ValueError: Always.
    """
    # stacklevel 2 reports the caller of log_error as the origin of the record
    logging.getLogger(logger_name).error(txt, *args, exc_info=exc_info, stacklevel=2, **kwargs)
    raise ValueError(txt)
