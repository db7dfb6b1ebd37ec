"""Layered configuration loading.

Priority, lowest to highest: defaults in this package, the configuration
file, a ``.env`` file, the process environment, explicit overrides. The
layering itself is pydantic-settings' job (see ``AppConfig``); this module
reads the file, checks its shape and turns validation failures into
ConfigIssues.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

import yaml
from dotenv import dotenv_values
from pydantic import BaseModel, ValidationError
from pydantic_settings import SettingsError

from sapi import PROJECT_ROOT
from sapi.config.schema import AppConfig, iter_leaf_keys, schema_keys
from sapi.config.sources import CONFIG_PATH_ENV, DEFAULT_ENV_PREFIX, file_layer
from sapi.errors import ConfigIssue, ConfigValidationError, ErrorCode, SAPIError
from sapi.utils.logger import LOGGER

DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "sapi.toml"

TOML_SUFFIXES = (".toml",)
YAML_SUFFIXES = (".yaml", ".yml")


def load_config(
    path: Optional[Path] = None,
    *,
    dotenv_path: Optional[Path] = None,
    overrides: Optional[Iterable[str]] = None,
    strict: bool = False,
    env_prefix: str = DEFAULT_ENV_PREFIX,
) -> AppConfig:
    """Load the configuration, falling back to defaults for anything unset."""
    config_path, explicit = resolve_config_path(path, dotenv_path)
    raw: Dict[str, Any] = {}
    if config_path.exists():
        raw = read_config_file(config_path)
        LOGGER.info("Loaded configuration from %s", config_path)
    elif explicit:
        raise SAPIError(ErrorCode.CONFIG_FILE_NOT_FOUND, f"{config_path} does not exist")
    else:
        LOGGER.debug("No configuration file at %s; using defaults", config_path)

    override_values = parse_overrides(overrides or ())
    issues, unknown = inspect_layer(raw)

    def build() -> AppConfig:
        with file_layer(raw):
            return AppConfig(
                _env_file=dotenv_path,
                _env_prefix=env_prefix,
                **override_values,
            )

    return _validated(build, issues, unknown, strict)


def build_config(raw: Mapping[str, Any], *, strict: bool = False) -> AppConfig:
    """Validate a nested mapping on its own, without file or environment layers."""
    issues, unknown = inspect_layer(raw)
    return _validated(lambda: AppConfig.model_validate(raw), issues, unknown, strict)


def resolve_config_path(
    path: Optional[Path] = None, dotenv_path: Optional[Path] = None
) -> Tuple[Path, bool]:
    """Return the file to read and whether it was asked for explicitly."""
    if path is not None:
        return Path(path).expanduser(), True
    from_env = os.environ.get(CONFIG_PATH_ENV)
    if not from_env and dotenv_path is not None and Path(dotenv_path).is_file():
        from_env = dotenv_values(dotenv_path).get(CONFIG_PATH_ENV)
    if from_env:
        return Path(from_env).expanduser(), True
    return DEFAULT_CONFIG_PATH, False


def read_config_file(path: Path) -> Dict[str, Any]:
    """Read a TOML (or YAML) configuration file into a nested mapping."""
    suffix = path.suffix.lower()
    if suffix not in TOML_SUFFIXES + YAML_SUFFIXES:
        raise SAPIError(
            ErrorCode.CONFIG_FORMAT_UNSUPPORTED,
            f"{path}: expected one of {', '.join(TOML_SUFFIXES + YAML_SUFFIXES)}",
        )
    try:
        if suffix in TOML_SUFFIXES:
            with path.open("rb") as fh:
                data = tomllib.load(fh)
        else:
            with path.open("r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh)
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        raise SAPIError(ErrorCode.CONFIG_PARSE_FAILED, f"{path}: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise SAPIError(ErrorCode.CONFIG_FILE_UNREADABLE, f"{path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SAPIError(
            ErrorCode.CONFIG_PARSE_FAILED, f"{path}: top level must be a table"
        )
    return data


def parse_overrides(overrides: Iterable[str]) -> Dict[str, Any]:
    """Parse ``key=value`` overrides; values are TOML literals or raw strings."""
    known = {leaf.path for leaf in iter_leaf_keys()}
    raw: Dict[str, Any] = {}
    for item in overrides:
        key, sep, text = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise SAPIError(ErrorCode.CONFIG_OVERRIDE_INVALID, f"{item!r} is not key=value")
        if key not in known:
            raise SAPIError(ErrorCode.CONFIG_OVERRIDE_INVALID, f"unknown key {key!r}")
        _set_dotted(raw, key, _parse_override_value(text))
    return raw


def _parse_override_value(text: str) -> Any:
    try:
        return tomllib.loads(f"value = {text}")["value"]
    except tomllib.TOMLDecodeError:
        return text


def _set_dotted(raw: Dict[str, Any], key: str, value: Any) -> None:
    node = raw
    parts = key.split(".")
    for part in parts[:-1]:
        node = node.setdefault(part, {})
    node[parts[-1]] = value


def inspect_layer(
    raw: Mapping[str, Any],
) -> Tuple[List[ConfigIssue], List[str]]:
    """Check a file layer's shape before it is merged with other sources.

    Returns (issues, unknown keys). A section given as a scalar is an issue
    here: once the environment fills in keys below it, the merged input
    would no longer show the mistake.
    """
    issues: List[ConfigIssue] = []
    unknown: List[str] = []
    _inspect_section(AppConfig, raw, "", issues, unknown)
    return issues, unknown


def _inspect_section(
    cls: type[BaseModel],
    raw: Mapping[str, Any],
    path: str,
    issues: List[ConfigIssue],
    unknown: List[str],
) -> None:
    keys = schema_keys(cls)
    for key, value in raw.items():
        dotted = f"{path}.{key}" if path else str(key)
        entry = keys.get(key)
        if entry is None:
            unknown.append(dotted)
            continue
        section = entry[1]
        if section is None:
            continue
        if isinstance(value, Mapping):
            _inspect_section(section, value, dotted, issues, unknown)
        else:
            issues.append(ConfigIssue(dotted, "expected a table"))


def _validated(
    build: Callable[[], AppConfig],
    issues: List[ConfigIssue],
    unknown: List[str],
    strict: bool,
) -> AppConfig:
    """Run ``build`` and raise every collected problem as one error."""
    config: Optional[AppConfig] = None
    try:
        config = build()
    except ValidationError as exc:
        reported = [issue.key for issue in issues]
        issues.extend(
            issue
            for issue in issues_from_validation_error(exc)
            if not any(issue.key == key or issue.key.startswith(key + ".") for key in reported)
        )
    except SettingsError as exc:
        raise SAPIError(ErrorCode.CONFIG_VALUE_INVALID, str(exc)) from exc

    if issues:
        if strict:
            issues.extend(ConfigIssue(key, "unknown key") for key in unknown)
        raise ConfigValidationError(ErrorCode.CONFIG_VALUE_INVALID, issues)
    if unknown:
        if strict:
            raise ConfigValidationError(
                ErrorCode.CONFIG_KEY_UNKNOWN,
                [ConfigIssue(key, "unknown key") for key in unknown],
            )
        for key in unknown:
            LOGGER.warning("Ignoring unknown configuration key %s", key)
    assert config is not None
    return config


def issues_from_validation_error(exc: ValidationError) -> List[ConfigIssue]:
    """Convert pydantic errors into ``dotted.key: message`` issues.

    List positions stay in the message: ``db.redis.addrs: [1].port: ...``.
    """
    issues: List[ConfigIssue] = []
    for error in exc.errors():
        loc = error["loc"]
        keys: List[str] = []
        position = ""
        for index, part in enumerate(loc):
            if isinstance(part, int):
                position = "".join(
                    f"[{item}]" if isinstance(item, int) else f".{item}"
                    for item in loc[index:]
                )
                break
            keys.append(str(part))
        if error["type"] == "value_error":
            message = str(error["ctx"]["error"])
        else:
            message = error["msg"]
        if position:
            message = f"{position}: {message}"
        issues.append(ConfigIssue(".".join(keys), message))
    return issues


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "build_config",
    "inspect_layer",
    "issues_from_validation_error",
    "load_config",
    "parse_overrides",
    "read_config_file",
    "resolve_config_path",
]
