"""Typed configuration model for the SAPI service.

Every section of the configuration file maps onto one pydantic model below;
``AppConfig`` is the settings root that layers the file, ``.env`` and the
process environment over the defaults. Value kinds (ports, durations, log
levels, ...) are ``Annotated`` types whose validators produce the messages
operators see and whose serializers write the file's own encoding back.
"""

from __future__ import annotations

from datetime import timedelta
from enum import Enum
from typing import Annotated, Any, Dict, Iterator, List, NamedTuple, Optional, Tuple
from urllib.parse import urlparse

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    SecretStr,
    SerializationInfo,
    model_validator,
)
from pydantic_settings import (
    BaseSettings,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from sapi.config.default import (
    DEFAULT_DATING_DATABASE,
    DEFAULT_DEBUG,
    DEFAULT_FINALIZER_LIMIT,
    DEFAULT_FINALIZER_PERIOD,
    DEFAULT_GRPC_PORT,
    DEFAULT_HEALTHZ_PORT,
    DEFAULT_HTTP_PORT,
    DEFAULT_IDLE_TIMEOUT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_IDLE_CONNECTIONS,
    DEFAULT_MAX_MESSAGE_LENGTH,
    DEFAULT_MAX_OPEN_CONNECTIONS,
    DEFAULT_METRICS_PORT,
    DEFAULT_MYSQL_HOST,
    DEFAULT_MYSQL_PASS,
    DEFAULT_MYSQL_PORT,
    DEFAULT_MYSQL_USER,
    DEFAULT_OPENVIDU_GRPC_PORT,
    DEFAULT_OPENVIDU_HOST,
    DEFAULT_OPENVIDU_METRICS_PORT,
    DEFAULT_RECOUNTER_LIMIT,
    DEFAULT_RECOUNTER_LOCK_TIMEOUT,
    DEFAULT_RECOUNTER_PERIOD,
    DEFAULT_REDIS_HOST,
    DEFAULT_REDIS_PORT,
    DEFAULT_RENEWAL_DURATION,
    DEFAULT_SHARD_URL,
    DEFAULT_SHUTDOWN_TIMEOUT,
    DEFAULT_SOCIAL_DATABASE,
    DEFAULT_STARTING_TIMEOUT,
    DEFAULT_USER_PASSWORD_SALT,
    DEFAULT_WATCHDOG_LIMIT,
    DEFAULT_WATCHDOG_LOCK_TIMEOUT,
    DEFAULT_WATCHDOG_PERIOD,
    default_ice_servers,
)
from sapi.config.duration import format_duration, parse_duration
from sapi.config.ice import IceServer, parse_ice_server
from sapi.config.sources import (
    DEFAULT_ENV_PREFIX,
    ENV_NESTED_DELIMITER,
    ConfigFileSettingsSource,
)
from sapi.utils.logger import LOGGER

REDACTED = "***"


class LogLevel(str, Enum):
    """Minimum level of log entries, in ascending order; empty disables."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"
    PANIC = "panic"
    DISABLED = ""

    @classmethod
    def parse(cls, value: Any) -> "LogLevel":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"expected a string, got {type(value).__name__}")
        normalized = value.strip().lower()
        if normalized == "warning":
            normalized = "warn"
        for level in cls:
            if level.value == normalized:
                return level
        allowed = ", ".join(f'"{level.value}"' for level in cls)
        raise ValueError(f"unknown log level {value!r}; possible values: {allowed}")


def _describe(value: Any) -> str:
    return f"{type(value).__name__} {value!r}"


def _reject_bool(value: Any) -> Any:
    # bool is an int subclass; a port of ``true`` is always a mistake.
    if isinstance(value, bool):
        raise ValueError(f"expected an integer, got {_describe(value)}")
    return value


def _check_port(port: int) -> int:
    if not 0 < port <= 65535:
        raise ValueError(f"port must be within 1..65535, got {port}")
    return port


def _check_count(count: int) -> int:
    if count <= 0:
        raise ValueError(f"must be greater than zero, got {count}")
    return count


def _check_size(size: int) -> int:
    if size < 0:
        raise ValueError(f"must not be negative, got {size}")
    return size


def _non_empty(text: str) -> str:
    text = text.strip()
    if not text:
        raise ValueError("must not be empty")
    return text


def _check_url(text: str) -> str:
    text = _non_empty(text)
    parsed = urlparse(text)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ValueError(f"expected an http(s) URL with a host, got {text!r}")
    return text


def _duration_input(value: Any) -> timedelta:
    if isinstance(value, timedelta):
        return value
    if not isinstance(value, str):
        raise ValueError(f"expected a duration string like \"5s\", got {_describe(value)}")
    return parse_duration(value)


def _check_positive(duration: timedelta) -> timedelta:
    if duration <= timedelta(0):
        raise ValueError(f"duration must be positive, got {format_duration(duration)!r}")
    return duration


def _dump_level(level: LogLevel) -> str:
    return level.value


def _dump_secret(secret: SecretStr, info: SerializationInfo) -> str:
    value = secret.get_secret_value()
    if value and (info.context or {}).get("redact_secrets"):
        return REDACTED
    return value


def _split_list(value: Any) -> Any:
    # Environment variables carry lists as comma-separated text.
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


def _check_ice_servers(servers: List[str]) -> List[str]:
    checked: List[str] = []
    for index, uri in enumerate(servers):
        uri = uri.strip()
        try:
            parse_ice_server(uri)
        except ValueError as exc:
            raise ValueError(f"[{index}] {exc}") from exc
        checked.append(uri)
    return checked


Port = Annotated[int, BeforeValidator(_reject_bool), AfterValidator(_check_port)]
Count = Annotated[int, BeforeValidator(_reject_bool), AfterValidator(_check_count)]
Size = Annotated[int, BeforeValidator(_reject_bool), AfterValidator(_check_size)]
Name = Annotated[str, AfterValidator(_non_empty)]
Url = Annotated[str, AfterValidator(_check_url)]
Secret = Annotated[SecretStr, PlainSerializer(_dump_secret)]
Duration = Annotated[
    timedelta,
    BeforeValidator(_duration_input),
    AfterValidator(_check_positive),
    PlainSerializer(format_duration),
]
Level = Annotated[LogLevel, BeforeValidator(LogLevel.parse), PlainSerializer(_dump_level)]
IceServers = Annotated[
    List[str], NoDecode, BeforeValidator(_split_list), AfterValidator(_check_ice_servers)
]


class ModeConfig(BaseModel):
    debug: bool = DEFAULT_DEBUG


class ServerConfig(BaseModel):
    shard_url: Url = DEFAULT_SHARD_URL
    http_port: Port = DEFAULT_HTTP_PORT
    grpc_port: Port = DEFAULT_GRPC_PORT
    healthz_port: Port = DEFAULT_HEALTHZ_PORT
    metrics_port: Port = DEFAULT_METRICS_PORT


class MySQLDatabases(BaseModel):
    dating: Name = DEFAULT_DATING_DATABASE
    social: Name = DEFAULT_SOCIAL_DATABASE


class MySQLConnections(BaseModel):
    max_idle: Size = DEFAULT_MAX_IDLE_CONNECTIONS
    max_open: Size = DEFAULT_MAX_OPEN_CONNECTIONS

    @model_validator(mode="after")
    def clamp_idle_to_open(self) -> "MySQLConnections":
        # max_open = 0 means unlimited.
        if 0 < self.max_open < self.max_idle:
            LOGGER.warning(
                "db.mysql.connections.max_idle=%s exceeds max_open=%s; reducing",
                self.max_idle,
                self.max_open,
            )
            self.max_idle = self.max_open
        return self


class MySQLConfig(BaseModel):
    host: Name = DEFAULT_MYSQL_HOST
    port: Port = DEFAULT_MYSQL_PORT
    user: Name = DEFAULT_MYSQL_USER
    password: Secret = Field(default=SecretStr(DEFAULT_MYSQL_PASS), alias="pass")
    databases: MySQLDatabases = Field(default_factory=MySQLDatabases)
    connections: MySQLConnections = Field(default_factory=MySQLConnections)


class RedisAddr(BaseModel):
    """One member of the Redis ring."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    host: Name = DEFAULT_REDIS_HOST
    port: Port = DEFAULT_REDIS_PORT

    @model_validator(mode="before")
    @classmethod
    def from_short_forms(cls, data: Any) -> Any:
        """Accept ``{host, port}`` tables, ``[host, port]`` pairs and ``"host:port"``."""
        if isinstance(data, (RedisAddr, dict)):
            if isinstance(data, dict):
                unknown = sorted(str(key) for key in set(data) - {"host", "port"})
                if unknown:
                    raise ValueError(
                        f"unknown field(s) {', '.join(unknown)}; expected host, port"
                    )
            return data
        if isinstance(data, (list, tuple)):
            if len(data) != 2:
                raise ValueError(f"expected [host, port], got {len(data)} element(s)")
            return {"host": data[0], "port": data[1]}
        if isinstance(data, str):
            host, port = _split_redis_addr(data)
            return {"host": host, "port": port}
        raise ValueError(f"expected a table with host and port, got {_describe(data)}")

    def __str__(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{host}:{self.port}"


def _split_redis_addr(text: str) -> Tuple[str, Any]:
    text = text.strip()
    if text.startswith("["):
        host, sep, tail = text[1:].partition("]")
        if not sep:
            raise ValueError(f"unterminated IPv6 host in {text!r}")
        if not tail:
            return host, DEFAULT_REDIS_PORT
        if not tail.startswith(":"):
            raise ValueError(f"expected host:port, got {text!r}")
        port_text = tail[1:]
    elif text.count(":") == 1:
        host, _, port_text = text.partition(":")
    else:
        # No colon, or an unbracketed IPv6 address: the whole text is the host.
        return text, DEFAULT_REDIS_PORT
    if not port_text.isdigit():
        raise ValueError(f"invalid port {port_text!r} in {text!r}")
    return host, int(port_text)


def _check_ring(addrs: List[RedisAddr]) -> List[RedisAddr]:
    if not addrs:
        raise ValueError("at least one Redis address is required")
    seen = set()
    for index, addr in enumerate(addrs):
        if addr in seen:
            raise ValueError(f"[{index}] duplicate ring member {addr}")
        seen.add(addr)
    return addrs


RedisAddrs = Annotated[
    List[RedisAddr], NoDecode, BeforeValidator(_split_list), AfterValidator(_check_ring)
]


def _default_redis_addrs() -> List[RedisAddr]:
    return [RedisAddr()]


class RedisConfig(BaseModel):
    addrs: RedisAddrs = Field(default_factory=_default_redis_addrs)


class DbConfig(BaseModel):
    mysql: MySQLConfig = Field(default_factory=MySQLConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)


class OpenViduConfig(BaseModel):
    host: Name = DEFAULT_OPENVIDU_HOST
    grpc_port: Port = DEFAULT_OPENVIDU_GRPC_PORT
    metrics_port: Port = DEFAULT_OPENVIDU_METRICS_PORT


class MsConfig(BaseModel):
    openvidu: OpenViduConfig = Field(default_factory=OpenViduConfig)


class LogSection(BaseModel):
    level: Level = LogLevel(DEFAULT_LOG_LEVEL)


class LogConfig(BaseModel):
    app: LogSection = Field(default_factory=LogSection)
    access: LogSection = Field(default_factory=LogSection)
    user: LogSection = Field(default_factory=LogSection)


class AuthConfig(BaseModel):
    user_password_salt: Secret = SecretStr(DEFAULT_USER_PASSWORD_SALT)
    renewal_duration: Duration = DEFAULT_RENEWAL_DURATION


class StreamTimeouts(BaseModel):
    """Re-check and start-up timeouts shared by visits, previews and setup streams."""

    idle_timeout: Duration = DEFAULT_IDLE_TIMEOUT
    starting_timeout: Duration = DEFAULT_STARTING_TIMEOUT


class LiveStreamConfig(BaseModel):
    max_message_length: Count = DEFAULT_MAX_MESSAGE_LENGTH
    idle_timeout: Duration = DEFAULT_IDLE_TIMEOUT
    starting_timeout: Duration = DEFAULT_STARTING_TIMEOUT
    visit: StreamTimeouts = Field(default_factory=StreamTimeouts)
    preview: StreamTimeouts = Field(default_factory=StreamTimeouts)


class AppSection(BaseModel):
    shutdown_timeout: Duration = DEFAULT_SHUTDOWN_TIMEOUT
    live_stream: LiveStreamConfig = Field(default_factory=LiveStreamConfig)
    setup_stream: StreamTimeouts = Field(default_factory=StreamTimeouts)


class FinalizerConfig(BaseModel):
    period: Duration = DEFAULT_FINALIZER_PERIOD
    limit: Count = DEFAULT_FINALIZER_LIMIT


class RecounterConfig(BaseModel):
    period: Duration = DEFAULT_RECOUNTER_PERIOD
    limit: Count = DEFAULT_RECOUNTER_LIMIT
    lock_timeout: Duration = DEFAULT_RECOUNTER_LOCK_TIMEOUT


class WatchdogConfig(BaseModel):
    period: Duration = DEFAULT_WATCHDOG_PERIOD
    limit: Count = DEFAULT_WATCHDOG_LIMIT
    lock_timeout: Duration = DEFAULT_WATCHDOG_LOCK_TIMEOUT


class BackgroundConfig(BaseModel):
    finalizer: FinalizerConfig = Field(default_factory=FinalizerConfig)
    recounter: RecounterConfig = Field(default_factory=RecounterConfig)
    watchdog: WatchdogConfig = Field(default_factory=WatchdogConfig)


class IceConfig(BaseModel):
    servers: IceServers = Field(default_factory=default_ice_servers)

    def parsed(self) -> List[IceServer]:
        return [parse_ice_server(uri) for uri in self.servers]

    def rtc_servers(self) -> List[Dict[str, Any]]:
        """RTCIceServer entries handed to web clients along with media URLs."""
        return [server.to_rtc() for server in self.parsed()]


class AppConfig(BaseSettings):
    """The main structure containing all configuration settings.

    Sources, highest priority first: keyword arguments (``--set``
    overrides), ``SAPI_*`` environment variables, the ``.env`` file, the
    configuration file, then the defaults above.
    """

    model_config = SettingsConfigDict(
        env_prefix=DEFAULT_ENV_PREFIX,
        env_nested_delimiter=ENV_NESTED_DELIMITER,
        case_sensitive=False,
        extra="ignore",
    )

    mode: ModeConfig = Field(default_factory=ModeConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    db: DbConfig = Field(default_factory=DbConfig)
    ms: MsConfig = Field(default_factory=MsConfig)
    log: LogConfig = Field(default_factory=LogConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    app: AppSection = Field(default_factory=AppSection)
    background: BackgroundConfig = Field(default_factory=BackgroundConfig)
    ice: IceConfig = Field(default_factory=IceConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            ConfigFileSettingsSource(settings_cls),
        )

    @model_validator(mode="after")
    def force_debug_levels(self) -> "AppConfig":
        if self.mode.debug:
            for name in ("app", "access"):
                section = getattr(self.log, name)
                if section.level is not LogLevel.DEBUG:
                    LOGGER.info("Debug mode forces log.%s.level to debug", name)
                    section.level = LogLevel.DEBUG
        return self

    def get(self, key: str) -> Any:
        """Return a value by dotted key, e.g. ``"db.mysql.host"``."""
        node: Any = self
        for part in key.split("."):
            if not isinstance(node, BaseModel):
                raise KeyError(key)
            entry = schema_keys(type(node)).get(part)
            if entry is None:
                raise KeyError(key)
            node = getattr(node, entry[0])
        return node

    def to_dict(self, redact_secrets: bool = False) -> Dict[str, Any]:
        """Encode back into the nested form used by the configuration file."""
        return self.model_dump(by_alias=True, context={"redact_secrets": redact_secrets})


class LeafKey(NamedTuple):
    path: str
    attr: str


def schema_keys(cls: type[BaseModel]) -> Dict[str, Tuple[str, Optional[type[BaseModel]]]]:
    """Map file keys of ``cls`` to (attribute, nested section model or None)."""
    keys: Dict[str, Tuple[str, Optional[type[BaseModel]]]] = {}
    for name, info in cls.model_fields.items():
        annotation = info.annotation
        section = (
            annotation
            if isinstance(annotation, type) and issubclass(annotation, BaseModel)
            else None
        )
        keys[info.alias or name] = (name, section)
    return keys


def iter_leaf_keys(cls: type[BaseModel] = AppConfig, prefix: str = "") -> Iterator[LeafKey]:
    """Yield every dotted leaf key of the schema in declaration order."""
    for key, (attr, section) in schema_keys(cls).items():
        path = f"{prefix}.{key}" if prefix else key
        if section is not None:
            yield from iter_leaf_keys(section, path)
        else:
            yield LeafKey(path, attr)


__all__ = [
    "AppConfig",
    "AppSection",
    "AuthConfig",
    "BackgroundConfig",
    "DbConfig",
    "FinalizerConfig",
    "IceConfig",
    "LeafKey",
    "LiveStreamConfig",
    "LogConfig",
    "LogLevel",
    "LogSection",
    "ModeConfig",
    "MsConfig",
    "MySQLConfig",
    "MySQLConnections",
    "MySQLDatabases",
    "OpenViduConfig",
    "RecounterConfig",
    "RedisAddr",
    "RedisConfig",
    "ServerConfig",
    "StreamTimeouts",
    "WatchdogConfig",
    "iter_leaf_keys",
    "schema_keys",
]
