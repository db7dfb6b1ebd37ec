import logging
from pathlib import Path

import pytest

from sapi.config.schema import LogConfig, LogLevel, LogSection
from sapi.utils.logger import (
    ACCESS_LOGGER,
    LOGGER,
    PANIC_LEVEL_NUM,
    USER_LOGGER,
    configure_logging,
    level_for,
    stop_logging,
)


def _log_config(app: str, access: str, user: str) -> LogConfig:
    return LogConfig(
        app=LogSection(level=LogLevel.parse(app)),
        access=LogSection(level=LogLevel.parse(access)),
        user=LogSection(level=LogLevel.parse(user)),
    )


def test_each_log_section_sets_its_own_level(tmp_path: Path) -> None:
    """Test app/access/user loggers follow their configured levels."""
    log_path = tmp_path / "sapi.log"
    configure_logging(_log_config("debug", "warn", "info"), str(log_path))
    try:
        LOGGER.debug("app-debug-line")
        ACCESS_LOGGER.info("access-info-line")
        ACCESS_LOGGER.warning("access-warn-line")
        USER_LOGGER.info("user-info-line")
    finally:
        stop_logging()

    content = log_path.read_text(encoding="utf-8")
    assert "[DEBUG] sapi.app: app-debug-line" in content
    assert "access-info-line" not in content
    assert "[WARNING] sapi.access: access-warn-line" in content
    assert "[INFO] sapi.user: user-info-line" in content


def test_empty_level_disables_logger(tmp_path: Path) -> None:
    """Ensure an empty level silences that logger entirely."""
    log_path = tmp_path / "sapi.log"
    configure_logging(_log_config("info", "info", ""), str(log_path))
    try:
        USER_LOGGER.critical("user-critical-line")
        LOGGER.info("app-info-line")
    finally:
        stop_logging()

    content = log_path.read_text(encoding="utf-8")
    assert "user-critical-line" not in content
    assert "app-info-line" in content


def test_panic_level_filters_fatal(tmp_path: Path) -> None:
    log_path = tmp_path / "sapi.log"
    configure_logging(_log_config("panic", "info", "info"), str(log_path))
    try:
        LOGGER.critical("fatal-line")
        LOGGER.panic("panic-line")  # type: ignore[attr-defined]
    finally:
        stop_logging()

    content = log_path.read_text(encoding="utf-8")
    assert "fatal-line" not in content
    assert "[PANIC] sapi.app: panic-line" in content


def test_reconfiguring_reenables_disabled_logger(tmp_path: Path) -> None:
    configure_logging(_log_config("info", "info", ""))
    assert USER_LOGGER.disabled

    log_path = tmp_path / "sapi.log"
    configure_logging(_log_config("info", "info", "error"), str(log_path))
    try:
        USER_LOGGER.error("user-error-line")
    finally:
        stop_logging()

    assert not USER_LOGGER.disabled
    assert "user-error-line" in log_path.read_text(encoding="utf-8")


@pytest.mark.parametrize(
    ("level", "expected"),
    [
        (LogLevel.DEBUG, logging.DEBUG),
        (LogLevel.INFO, logging.INFO),
        (LogLevel.WARN, logging.WARNING),
        (LogLevel.ERROR, logging.ERROR),
        (LogLevel.FATAL, logging.CRITICAL),
        (LogLevel.PANIC, PANIC_LEVEL_NUM),
        (LogLevel.DISABLED, None),
    ],
)
def test_level_mapping(level: LogLevel, expected) -> None:
    assert level_for(level) == expected


def test_log_level_parsing() -> None:
    assert LogLevel.parse("WARNING") is LogLevel.WARN
    assert LogLevel.parse(" Error ") is LogLevel.ERROR
    assert LogLevel.parse("") is LogLevel.DISABLED
    assert [level.value for level in LogLevel] == [
        "debug",
        "info",
        "warn",
        "error",
        "fatal",
        "panic",
        "",
    ]
    with pytest.raises(ValueError, match="possible values"):
        LogLevel.parse("verbose")
    with pytest.raises(ValueError):
        LogLevel.parse(3)
