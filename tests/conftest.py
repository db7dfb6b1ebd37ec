import logging
import logging.handlers
import os

import pytest

from sapi.utils.logger import ACCESS_LOGGER, LOGGER, USER_LOGGER, stop_logging


@pytest.fixture(autouse=True)
def reset_sapi_logging():
    """Undo configure_logging side effects between tests."""
    yield
    stop_logging()
    for logger in (LOGGER, ACCESS_LOGGER, USER_LOGGER):
        logger.disabled = False
        logger.setLevel(logging.NOTSET)
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if isinstance(handler, logging.handlers.QueueHandler):
            root_logger.removeHandler(handler)


@pytest.fixture(autouse=True)
def clean_sapi_env(monkeypatch):
    """AppConfig reads SAPI_* variables; start every test without them."""
    for name in list(os.environ):
        if name.upper().startswith("SAPI_"):
            monkeypatch.delenv(name)


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Run from an empty directory so no stray .env is picked up."""
    monkeypatch.chdir(tmp_path)
    return tmp_path
