"""Error handling utilities for the SMART collector."""
from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from ..exceptions import SmartctlDecodeError

_LOGGER = logging.getLogger(__name__)

T = TypeVar('T')


def safe_parse(
    parser_func: Callable[[Any], T],
    data: Any,
    error_msg: str = "Error parsing data"
) -> T:
    """Parse data, converting any parser failure into SmartctlDecodeError.

    Args:
        parser_func: Function to parse the data
        data: Data to parse
        error_msg: Prefix for the raised error and the log line

    Returns:
        Parsed data
    """
    try:
        return parser_func(data)
    except SmartctlDecodeError:
        raise
    except Exception as err:
        _LOGGER.debug("%s: %s", error_msg, err)
        raise SmartctlDecodeError(f"{error_msg}: {err}") from err


def command_preview(command: str, limit: int = 100) -> str:
    """Shorten a command line for log output."""
    return command[:limit] + ("..." if len(command) > limit else "")
