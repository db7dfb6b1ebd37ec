"""Default cadences for the finalizer, recounter and watchdog jobs."""

from datetime import timedelta

DEFAULT_FINALIZER_PERIOD = timedelta(seconds=10)
DEFAULT_FINALIZER_LIMIT = 50

DEFAULT_RECOUNTER_PERIOD = timedelta(seconds=5)
DEFAULT_RECOUNTER_LIMIT = 50
DEFAULT_RECOUNTER_LOCK_TIMEOUT = timedelta(seconds=4)

DEFAULT_WATCHDOG_PERIOD = timedelta(seconds=5)
DEFAULT_WATCHDOG_LIMIT = 10
DEFAULT_WATCHDOG_LOCK_TIMEOUT = timedelta(seconds=4)

__all__ = [
    "DEFAULT_FINALIZER_PERIOD",
    "DEFAULT_FINALIZER_LIMIT",
    "DEFAULT_RECOUNTER_PERIOD",
    "DEFAULT_RECOUNTER_LIMIT",
    "DEFAULT_RECOUNTER_LOCK_TIMEOUT",
    "DEFAULT_WATCHDOG_PERIOD",
    "DEFAULT_WATCHDOG_LIMIT",
    "DEFAULT_WATCHDOG_LOCK_TIMEOUT",
]
