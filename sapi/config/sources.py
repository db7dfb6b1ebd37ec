"""Settings sources and environment naming for AppConfig.

Environment variables are read by pydantic-settings: ``<prefix>`` followed
by the dotted key with dots replaced by ``__``, e.g. ``SAPI_MODE__DEBUG``
or ``SAPI_DB__MYSQL__CONNECTIONS__MAX_IDLE``. The parsed configuration file
sits below the environment as its own source.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Mapping, Optional

from pydantic_settings import BaseSettings, InitSettingsSource

DEFAULT_ENV_PREFIX = "SAPI_"
ENV_NESTED_DELIMITER = "__"
CONFIG_PATH_ENV = "SAPI_CONFIG"

_FILE_LAYER: ContextVar[Optional[Mapping[str, Any]]] = ContextVar(
    "sapi_config_file_layer", default=None
)


class ConfigFileSettingsSource(InitSettingsSource):
    """Values read from the configuration file by the loader."""

    def __init__(self, settings_cls: type[BaseSettings]) -> None:
        super().__init__(settings_cls, dict(_FILE_LAYER.get() or {}))

    def __repr__(self) -> str:
        return f"ConfigFileSettingsSource(keys={sorted(self.init_kwargs)!r})"


@contextmanager
def file_layer(data: Mapping[str, Any]) -> Iterator[None]:
    """Expose ``data`` to ConfigFileSettingsSource while settings are built."""
    token = _FILE_LAYER.set(data)
    try:
        yield
    finally:
        _FILE_LAYER.reset(token)


def env_var_name(key: str, prefix: str = DEFAULT_ENV_PREFIX) -> str:
    return prefix + key.replace(".", ENV_NESTED_DELIMITER).upper()


__all__ = [
    "CONFIG_PATH_ENV",
    "ConfigFileSettingsSource",
    "DEFAULT_ENV_PREFIX",
    "ENV_NESTED_DELIMITER",
    "env_var_name",
    "file_layer",
]
