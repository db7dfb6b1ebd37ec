"""Default values for the service-facing configuration sections."""

from datetime import timedelta
from typing import List

DEFAULT_DEBUG = False

DEFAULT_SHARD_URL = "http://127.0.0.1"
DEFAULT_HTTP_PORT = 8081
DEFAULT_GRPC_PORT = 8082
DEFAULT_HEALTHZ_PORT = 10025
DEFAULT_METRICS_PORT = 9199

DEFAULT_LOG_LEVEL = "info"

DEFAULT_USER_PASSWORD_SALT = ""
DEFAULT_RENEWAL_DURATION = timedelta(minutes=5)

DEFAULT_SHUTDOWN_TIMEOUT = timedelta(seconds=30)
DEFAULT_MAX_MESSAGE_LENGTH = 1000
DEFAULT_IDLE_TIMEOUT = timedelta(seconds=5)
DEFAULT_STARTING_TIMEOUT = timedelta(seconds=20)

DEFAULT_ICE_SERVERS: List[str] = ["turn:access_token:qwerty@127.0.0.1:3478"]


def default_ice_servers() -> List[str]:
    """Return a fresh copy of the default ICE server list."""
    return list(DEFAULT_ICE_SERVERS)


__all__ = [
    "DEFAULT_DEBUG",
    "DEFAULT_SHARD_URL",
    "DEFAULT_HTTP_PORT",
    "DEFAULT_GRPC_PORT",
    "DEFAULT_HEALTHZ_PORT",
    "DEFAULT_METRICS_PORT",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_USER_PASSWORD_SALT",
    "DEFAULT_RENEWAL_DURATION",
    "DEFAULT_SHUTDOWN_TIMEOUT",
    "DEFAULT_MAX_MESSAGE_LENGTH",
    "DEFAULT_IDLE_TIMEOUT",
    "DEFAULT_STARTING_TIMEOUT",
    "DEFAULT_ICE_SERVERS",
    "default_ice_servers",
]
