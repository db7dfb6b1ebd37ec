from datetime import timedelta

import pytest

from sapi.config.loader import load_config
from sapi.config.schema import AppConfig, RedisAddr, iter_leaf_keys
from sapi.config.sources import env_var_name
from sapi.errors import ConfigValidationError, ErrorCode, SAPIError


@pytest.fixture
def shard_config(tmp_path):
    path = tmp_path / "sapi.toml"
    path.write_text(
        '[server]\nhttp_port = 8000\n\n[db.mysql]\nhost = "mysql.file"\n',
        encoding="utf-8",
    )
    return path


def test_env_var_names_follow_dotted_keys() -> None:
    assert env_var_name("mode.debug") == "SAPI_MODE__DEBUG"
    assert (
        env_var_name("db.mysql.connections.max_idle")
        == "SAPI_DB__MYSQL__CONNECTIONS__MAX_IDLE"
    )
    assert env_var_name("mode.debug", prefix="") == "MODE__DEBUG"

    names = {env_var_name(leaf.path) for leaf in iter_leaf_keys()}
    assert "SAPI_SERVER__HTTP_PORT" in names
    assert "SAPI_DB__MYSQL__PASS" in names
    assert len(names) == 42


def test_environment_overrides_file_values(shard_config, monkeypatch) -> None:
    monkeypatch.setenv("SAPI_SERVER__HTTP_PORT", "9090")
    monkeypatch.setenv("SAPI_MODE__DEBUG", "true")
    monkeypatch.setenv("SAPI_DB__REDIS__ADDRS", "10.0.0.1:7000, 10.0.0.2")
    monkeypatch.setenv("SAPI_ICE__SERVERS", "stun:a.example.org,turn:u:p@b.example.org:3479")
    monkeypatch.setenv("SAPI_AUTH__RENEWAL_DURATION", "10m")
    monkeypatch.setenv("SAPI_LOG__USER__LEVEL", "")
    monkeypatch.setenv("SAPI_DB__MYSQL__PASS", "from-env")
    monkeypatch.setenv("UNRELATED", "ignored")

    config = load_config(shard_config)

    assert config.server.http_port == 9090
    assert config.db.mysql.host == "mysql.file"
    assert config.db.mysql.password.get_secret_value() == "from-env"
    assert config.mode.debug is True
    assert config.db.redis.addrs == [
        RedisAddr(host="10.0.0.1", port=7000),
        RedisAddr(host="10.0.0.2", port=6379),
    ]
    assert config.ice.servers == ["stun:a.example.org", "turn:u:p@b.example.org:3479"]
    assert config.auth.renewal_duration == timedelta(minutes=10)
    assert config.log.user.level.value == ""


def test_unbracketed_ipv6_redis_host_from_environment(shard_config, monkeypatch) -> None:
    monkeypatch.setenv("SAPI_DB__REDIS__ADDRS", "::1,[::2]:7000")

    config = load_config(shard_config)

    assert config.db.redis.addrs == [
        RedisAddr(host="::1", port=6379),
        RedisAddr(host="::2", port=7000),
    ]


def test_invalid_environment_values_are_collected(shard_config, monkeypatch) -> None:
    monkeypatch.setenv("SAPI_SERVER__HTTP_PORT", "eighty")
    monkeypatch.setenv("SAPI_MODE__DEBUG", "maybe")
    monkeypatch.setenv("SAPI_BACKGROUND__WATCHDOG__LIMIT", "1.5")

    with pytest.raises(ConfigValidationError) as excinfo:
        load_config(shard_config)

    assert excinfo.value.code is ErrorCode.CONFIG_VALUE_INVALID
    assert {issue.key for issue in excinfo.value.issues} == {
        "server.http_port",
        "mode.debug",
        "background.watchdog.limit",
    }


def test_dotenv_fills_only_unset_variables(tmp_path, shard_config, monkeypatch) -> None:
    dotenv_path = tmp_path / ".env"
    dotenv_path.write_text(
        "SAPI_DB__MYSQL__HOST=db.internal\nSAPI_DB__MYSQL__PORT=3307\nOTHER_TOOL=1\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("SAPI_DB__MYSQL__PORT", "3308")

    config = load_config(shard_config, dotenv_path=dotenv_path, strict=True)

    assert config.db.mysql.host == "db.internal"
    assert config.db.mysql.port == 3308


def test_config_path_from_dotenv(tmp_path) -> None:
    other = tmp_path / "other.toml"
    other.write_text("[server]\ngrpc_port = 9002\n", encoding="utf-8")
    dotenv_path = tmp_path / ".env"
    dotenv_path.write_text(f"SAPI_CONFIG={other}\n", encoding="utf-8")

    config = load_config(dotenv_path=dotenv_path)

    assert config.server.grpc_port == 9002


def test_missing_dotenv_file_is_ignored(tmp_path, shard_config) -> None:
    config = load_config(shard_config, dotenv_path=tmp_path / "absent.env")

    assert config.server.http_port == 8000


def test_explicit_overrides_win_over_environment(shard_config, monkeypatch) -> None:
    monkeypatch.setenv("SAPI_DB__MYSQL__HOST", "mysql.env")
    monkeypatch.setenv("SAPI_SERVER__HTTP_PORT", "9090")

    config = load_config(
        shard_config,
        overrides=[
            "db.mysql.host=127.0.0.2",
            "server.http_port=8088",
            "ice.servers=[]",
            "log.access.level=",
            'app.shutdown_timeout="1m"',
        ],
    )

    assert config.db.mysql.host == "127.0.0.2"
    assert config.server.http_port == 8088
    assert config.ice.servers == []
    assert config.log.access.level.value == ""
    assert config.app.shutdown_timeout == timedelta(minutes=1)


@pytest.mark.parametrize("override", ["db.mysql.host", "=1", "db.mysql.hostname=x", "db=1"])
def test_malformed_overrides_are_rejected(shard_config, override: str) -> None:
    with pytest.raises(SAPIError) as excinfo:
        load_config(shard_config, overrides=[override])

    assert excinfo.value.code is ErrorCode.CONFIG_OVERRIDE_INVALID


def test_custom_prefix(shard_config, monkeypatch) -> None:
    monkeypatch.setenv("MODE__DEBUG", "1")
    monkeypatch.setenv("SHARD7_SERVER__GRPC_PORT", "9999")

    assert load_config(shard_config, env_prefix="").mode.debug is True
    assert load_config(shard_config, env_prefix="SHARD7_").server.grpc_port == 9999


def test_app_config_reads_the_environment(monkeypatch) -> None:
    monkeypatch.setenv("SAPI_MS__OPENVIDU__HOST", "openvidu.internal")

    assert AppConfig().ms.openvidu.host == "openvidu.internal"
