"""smartctl version gate."""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence

from ..const import SUPPORTED_SMARTCTL_VERSION, VERSION_ARGS, VERSION_CHECK_INTERVAL
from ..exceptions import SmartCollectorError, SmartctlExecutionError, SmartctlVersionError
from .executor import SmartctlExecutor
from .parser import parse_version

_LOGGER = logging.getLogger(__name__)


def evaluate_version(version_digits: Sequence[int]) -> float:
    """Check smartctl version digits against the minimum supported version.

    The first one or two digits are read as a decimal ``major.minor``.
    Returns the evaluated version.
    """
    if len(version_digits) < 1:
        raise SmartctlVersionError("Invalid smartctl version")

    if len(version_digits) >= 2:
        version = f"{version_digits[0]}.{version_digits[1]}"
    else:
        version = f"{version_digits[0]}"

    try:
        value = float(version)
    except ValueError as err:
        raise SmartctlVersionError(f"Cannot parse smartctl version {version!r}") from err

    if value < SUPPORTED_SMARTCTL_VERSION:
        raise SmartctlVersionError(
            f"Incorrect smartctl version, must be {SUPPORTED_SMARTCTL_VERSION} or higher"
        )
    return value


class VersionCheckState:
    """Time of the last version check, guarded by one lock."""

    def __init__(self, last_check: Optional[datetime] = None) -> None:
        self.last_check = last_check
        self.lock = threading.Lock()

    def reset(self) -> None:
        with self.lock:
            self.last_check = None


_VERSION_STATE = VersionCheckState()


def get_version_state() -> VersionCheckState:
    """Return the process-wide version check state."""
    return _VERSION_STATE


class VersionGate:
    """Periodically verifies that the installed smartctl is supported.

    Gates share the process-wide check state unless given their own, so
    collectors built per poll still check at most once per interval. The
    last check time is refreshed when a check starts, not when it
    succeeds, so a failing check runs at most once per interval.
    """

    def __init__(
        self,
        executor: SmartctlExecutor,
        clock: Callable[[], datetime] = datetime.now,
        interval: timedelta = VERSION_CHECK_INTERVAL,
        state: Optional[VersionCheckState] = None
    ) -> None:
        self._executor = executor
        self._clock = clock
        self._interval = interval
        self.state = state if state is not None else get_version_state()

    @property
    def last_check(self) -> Optional[datetime]:
        return self.state.last_check

    def check_needed(self) -> bool:
        """Return True and mark the check as started if the last one is stale."""
        with self.state.lock:
            now = self._clock()
            last_check = self.state.last_check
            if last_check is None or now > last_check + self._interval:
                self.state.last_check = now
                return True
            return False

    async def ensure_version(self) -> None:
        """Raise SmartCollectorError if smartctl is missing or too old."""
        if not self.check_needed():
            return

        try:
            output = await self._executor.execute(VERSION_ARGS, suppress_error_log=True)
        except SmartctlExecutionError as err:
            raise SmartctlExecutionError(f"Failed to execute smartctl: {err}") from err

        digits: List[int] = parse_version(output)
        try:
            version = evaluate_version(digits)
        except SmartCollectorError as err:
            _LOGGER.warning("smartctl version check failed: %s", err)
            raise

        _LOGGER.debug("smartctl version %s is supported", version)
