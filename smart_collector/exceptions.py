"""Exceptions for the SMART collector."""
from __future__ import annotations

from typing import List, Optional


class SmartCollectorError(Exception):
    """Base exception for the SMART collector."""


class SmartctlExecutionError(SmartCollectorError):
    """Exception raised when smartctl could not be run."""


class SmartctlDecodeError(SmartCollectorError):
    """Exception raised when smartctl output does not have the expected shape."""


class SmartctlToolError(SmartCollectorError):
    """Exception raised when smartctl ran but reported an internal failure."""

    def __init__(
        self,
        message: str,
        messages: Optional[List[str]] = None,
        exit_status: Optional[int] = None
    ) -> None:
        super().__init__(message)
        self.messages = list(messages or [])
        self.exit_status = exit_status


class SmartctlVersionError(SmartCollectorError):
    """Exception raised when the installed smartctl version is not supported."""


class SmartCollectorConfigError(SmartCollectorError):
    """Exception raised when the collector configuration is invalid."""
