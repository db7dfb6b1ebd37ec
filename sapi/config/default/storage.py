"""Default values for database and media server connections."""

DEFAULT_MYSQL_HOST = "127.0.0.1"
DEFAULT_MYSQL_PORT = 3306
DEFAULT_MYSQL_USER = "root"
DEFAULT_MYSQL_PASS = ""
DEFAULT_DATING_DATABASE = "dating"
DEFAULT_SOCIAL_DATABASE = "social"
DEFAULT_MAX_IDLE_CONNECTIONS = 30
DEFAULT_MAX_OPEN_CONNECTIONS = 30

DEFAULT_REDIS_HOST = "127.0.0.1"
DEFAULT_REDIS_PORT = 6379

DEFAULT_OPENVIDU_HOST = "127.0.0.1"
DEFAULT_OPENVIDU_GRPC_PORT = 8080
DEFAULT_OPENVIDU_METRICS_PORT = 9321

__all__ = [
    "DEFAULT_MYSQL_HOST",
    "DEFAULT_MYSQL_PORT",
    "DEFAULT_MYSQL_USER",
    "DEFAULT_MYSQL_PASS",
    "DEFAULT_DATING_DATABASE",
    "DEFAULT_SOCIAL_DATABASE",
    "DEFAULT_MAX_IDLE_CONNECTIONS",
    "DEFAULT_MAX_OPEN_CONNECTIONS",
    "DEFAULT_REDIS_HOST",
    "DEFAULT_REDIS_PORT",
    "DEFAULT_OPENVIDU_HOST",
    "DEFAULT_OPENVIDU_GRPC_PORT",
    "DEFAULT_OPENVIDU_METRICS_PORT",
]
