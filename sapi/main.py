import argparse
import json
import sys
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple

import yaml

from sapi.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from sapi.config.loader import resolve_config_path
from sapi.config.schema import iter_leaf_keys
from sapi.config.sources import CONFIG_PATH_ENV, DEFAULT_ENV_PREFIX, env_var_name
from sapi.errors import ConfigValidationError, SAPIError
from sapi.utils.logger import LOGGER, configure_logging, stop_logging

DEFAULT_ENV_FILE = ".env"


def _add_show_secrets(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--show-secrets",
        action="store_true",
        help="Print passwords and salts instead of redacting them",
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sapi-config",
        description="Inspect and validate SAPI service configuration",
    )
    parser.add_argument(
        "--config",
        type=str,
        help=f"Path to TOML/YAML config (default: ${CONFIG_PATH_ENV} or {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--env-file",
        type=str,
        default=None,
        help=f"dotenv file read below the environment (default: ./{DEFAULT_ENV_FILE} if present)",
    )
    parser.add_argument(
        "--env-prefix",
        default=DEFAULT_ENV_PREFIX,
        help="Prefix of environment variable overrides",
    )
    parser.add_argument(
        "--set",
        action="append",
        dest="overrides",
        metavar="KEY=VALUE",
        default=[],
        help="Override a single key, e.g. --set db.mysql.host=10.0.0.5; repeatable",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Treat unknown configuration keys as errors",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional log file path",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("check", help="Validate the effective configuration")
    dump = commands.add_parser("dump", help="Print the effective configuration")
    dump.add_argument("--format", choices=("yaml", "json"), default="yaml")
    _add_show_secrets(dump)
    get = commands.add_parser("get", help="Print one effective value")
    get.add_argument("key", help="Dotted key, e.g. server.http_port")
    env = commands.add_parser("env", help="List environment variable overrides")
    _add_show_secrets(env)
    commands.add_parser("ice", help="Print ICE servers as RTCIceServer JSON")
    return parser.parse_args(argv)


def _config_path(args: argparse.Namespace) -> Optional[Path]:
    return Path(args.config).expanduser() if args.config else None


def _env_file(args: argparse.Namespace) -> Path:
    if args.env_file:
        return Path(args.env_file).expanduser()
    return Path(DEFAULT_ENV_FILE)


def configure_from_args(args: argparse.Namespace) -> AppConfig:
    config = load_config(
        _config_path(args),
        dotenv_path=_env_file(args),
        overrides=args.overrides,
        strict=args.strict,
        env_prefix=args.env_prefix,
    )
    configure_logging(config.log, args.log_file)
    return config


def _lookup(data: Mapping[str, Any], key: str) -> Tuple[bool, Any]:
    node: Any = data
    for part in key.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return False, None
        node = node[part]
    return True, node


def _print_value(value: Any) -> None:
    if isinstance(value, (dict, list)):
        print(json.dumps(value, indent=2))
    elif isinstance(value, bool):
        print("true" if value else "false")
    else:
        print(value)


def _env_value(value: Any) -> str:
    if isinstance(value, list):
        return ",".join(
            f"{item['host']}:{item['port']}" if isinstance(item, dict) else str(item)
            for item in value
        )
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def run(args: argparse.Namespace) -> int:
    config = configure_from_args(args)

    if args.command == "check":
        path, _explicit = resolve_config_path(_config_path(args), _env_file(args))
        LOGGER.debug("Configuration check passed for %s", path)
        source = path if path.exists() else "defaults"
        print(f"ok: {source}")
    elif args.command == "dump":
        data = config.to_dict(redact_secrets=not args.show_secrets)
        if args.format == "json":
            print(json.dumps(data, indent=2))
        else:
            print(yaml.safe_dump(data, sort_keys=False), end="")
    elif args.command == "get":
        found, value = _lookup(config.to_dict(), args.key)
        if not found:
            print(f"unknown key: {args.key}", file=sys.stderr)
            return 2
        _print_value(value)
    elif args.command == "env":
        data = config.to_dict(redact_secrets=not args.show_secrets)
        for leaf in iter_leaf_keys():
            _found, value = _lookup(data, leaf.path)
            print(f"{env_var_name(leaf.path, args.env_prefix)}={_env_value(value)}")
    elif args.command == "ice":
        print(json.dumps(config.ice.rtc_servers(), indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        return run(args)
    except ConfigValidationError as exc:
        for issue in exc.issues:
            print(f"{exc.code.value} {issue}", file=sys.stderr)
        return exc.exit_status
    except SAPIError as exc:
        print(str(exc), file=sys.stderr)
        return exc.exit_status
    finally:
        stop_logging()


if __name__ == "__main__":
    sys.exit(main())
