from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("/config/config.yml")
DEFAULT_LISTEN_PORT = 9101

_HOSTS_ENV = "AWAIR_HOSTS"
_LISTEN_PORT_ENV = "LISTEN_PORT"
_CONFIG_PATH_ENV = "AWAIR_CONFIG_PATH"
_LOG_LEVEL_ENV = "LOG_LEVEL"


class ConfigError(ValueError):
    """Raised when the exporter configuration cannot be resolved."""


@dataclass(frozen=True)
class Settings:
    hosts: Tuple[str, ...]
    listen_port: int
    config_path: Path
    log_level: str


def _read_str_env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    candidate = value.strip()
    return candidate or None


def _read_hosts_env() -> Optional[Tuple[str, ...]]:
    value = _read_str_env(_HOSTS_ENV)
    if value is None:
        return None
    return tuple(host.strip() for host in value.split(",") if host.strip())


def _read_port_env() -> Optional[int]:
    value = _read_str_env(_LISTEN_PORT_ENV)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigError(f"{_LISTEN_PORT_ENV} must be an integer, got {value!r}") from exc


def _read_log_level(default: str) -> str:
    value = _read_str_env(_LOG_LEVEL_ENV)
    if value is None:
        return default
    return value.upper()


def _load_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    logger.info("Loading configuration from %s", path, extra={"config_path": str(path)})
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read config file {path}: {exc}") from exc
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Unable to parse config file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level.")
    return data


def _parse_file_hosts(value: Any, path: Path) -> Tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"'hosts' in {path} must be a list of strings.")
    return tuple(item.strip() for item in value if item.strip())


def _parse_file_port(value: Any, path: Path) -> int:
    if value is None:
        return DEFAULT_LISTEN_PORT
    # bool is an int subclass; `listen_port: yes` is not a port.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'listen_port' in {path} must be an integer.")
    return value


def _resolve_config_path(config_path: Optional[Path]) -> Path:
    if config_path is not None:
        return Path(config_path)
    env_path = _read_str_env(_CONFIG_PATH_ENV)
    return Path(env_path) if env_path else DEFAULT_CONFIG_PATH


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Resolve settings from the optional YAML file and environment overrides.

    Environment variables always win. ``AWAIR_HOSTS`` replaces the file host
    list outright rather than extending it.
    """
    path = _resolve_config_path(config_path)
    data = _load_config_file(path)

    hosts = _parse_file_hosts(data.get("hosts"), path)
    listen_port = _parse_file_port(data.get("listen_port"), path)

    env_hosts = _read_hosts_env()
    if env_hosts is not None:
        hosts = env_hosts

    env_port = _read_port_env()
    if env_port is not None:
        listen_port = env_port

    if not 1 <= listen_port <= 65535:
        raise ConfigError(f"Listen port must be between 1 and 65535, got {listen_port}")

    if not hosts:
        raise ConfigError(
            f"No Awair hosts specified. Please set {_HOSTS_ENV} or define hosts in {path}"
        )

    return Settings(
        hosts=hosts,
        listen_port=listen_port,
        config_path=path,
        log_level=_read_log_level("INFO"),
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()
