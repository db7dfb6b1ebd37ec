from __future__ import annotations

import logging
import logging.handlers
import queue
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from sapi.config.schema import LogConfig, LogLevel

# Custom PANIC level above CRITICAL.
PANIC_LEVEL_NUM = 60
logging.addLevelName(PANIC_LEVEL_NUM, "PANIC")


def panic(self: logging.Logger, message: str, *args, **kwargs) -> None:
    """Logger helper for PANIC level."""
    if self.isEnabledFor(PANIC_LEVEL_NUM):
        self._log(PANIC_LEVEL_NUM, message, args, **kwargs)


logging.Logger.panic = panic  # type: ignore

# Keyed by configured level names; "" (disabled) is absent.
LEVEL_MAP: Dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": PANIC_LEVEL_NUM,
}

LOG_QUEUE: "queue.Queue[logging.LogRecord]" = queue.Queue()
QUEUE_LISTENER: Optional[logging.handlers.QueueListener] = None

LOGGER = logging.getLogger("sapi.app")
ACCESS_LOGGER = logging.getLogger("sapi.access")
USER_LOGGER = logging.getLogger("sapi.user")


def level_for(level: LogLevel) -> Optional[int]:
    """Return the logging level for a configured level; None disables."""
    return LEVEL_MAP.get(level.value)


def _apply_level(logger: logging.Logger, level: LogLevel) -> None:
    numeric_level = level_for(level)
    if numeric_level is None:
        logger.disabled = True
        return
    logger.disabled = False
    logger.setLevel(numeric_level)


def configure_logging(log_config: LogConfig, log_file: Optional[str] = None) -> None:
    """Configure root logging with queue-based handlers."""
    global QUEUE_LISTENER
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    handlers: List[logging.Handler] = []
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    queue_handler = logging.handlers.QueueHandler(LOG_QUEUE)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(queue_handler)

    _apply_level(LOGGER, log_config.app.level)
    _apply_level(ACCESS_LOGGER, log_config.access.level)
    _apply_level(USER_LOGGER, log_config.user.level)

    if QUEUE_LISTENER:
        QUEUE_LISTENER.stop()
    QUEUE_LISTENER = logging.handlers.QueueListener(
        LOG_QUEUE, *handlers, respect_handler_level=True
    )
    QUEUE_LISTENER.start()


def stop_logging() -> None:
    """Flush queued records and close the listener's handlers."""
    global QUEUE_LISTENER
    if QUEUE_LISTENER:
        QUEUE_LISTENER.stop()
        for handler in QUEUE_LISTENER.handlers:
            handler.close()
        QUEUE_LISTENER = None


__all__ = [
    "configure_logging",
    "level_for",
    "stop_logging",
    "LOGGER",
    "ACCESS_LOGGER",
    "USER_LOGGER",
    "PANIC_LEVEL_NUM",
]
