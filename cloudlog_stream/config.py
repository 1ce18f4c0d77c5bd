"""Configuration module: frozen dataclass loaded from YAML, env vars and CLI args."""

import logging
import os
import sys
from dataclasses import dataclass

import yaml

from cloudlog_stream.severity import INFO, resolve_level

logger = logging.getLogger(__name__)


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class Config:
    level: int = INFO
    high_water_mark: int = 16
    service_version: str | None = None
    halt_on_format_error: bool = False
    validate_entries: bool = False
    logger_name: str = "app"

    def __post_init__(self) -> None:
        if self.high_water_mark < 1:
            object.__setattr__(self, "high_water_mark", 1)

    def stream_options(self) -> dict:
        """Keyword arguments for ``create_stream``."""
        return {
            "high_water_mark": self.high_water_mark,
            "service_version": self.service_version,
            "halt_on_format_error": self.halt_on_format_error,
            "validate_entries": self.validate_entries,
        }


_CONVERTERS = {
    "level": resolve_level,
    "high_water_mark": int,
    "service_version": lambda v: str(v) if v not in (None, "") else None,
    "halt_on_format_error": _parse_bool,
    "validate_entries": _parse_bool,
    "logger_name": str,
}

_ENV_VARS = {
    "level": "LOG_LEVEL",
    "high_water_mark": "HIGH_WATER_MARK",
    "service_version": "SERVICE_VERSION",
    "halt_on_format_error": "HALT_ON_FORMAT_ERROR",
    "validate_entries": "VALIDATE_ENTRIES",
    "logger_name": "LOGGER_NAME",
}


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, ignoring it", path)
        return {}
    logger.info("Loaded YAML config from %s", path)
    return data


def _parse_cli(argv: list[str]) -> dict:
    """Simple --key=value / --key value parsing; bare flags mean true."""
    values: dict = {}
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg.startswith("--"):
            if "=" in arg:
                key, value = arg[2:].split("=", 1)
            elif i + 1 < len(argv) and not argv[i + 1].startswith("--"):
                key = arg[2:]
                value = argv[i + 1]
                i += 1
            else:
                key = arg[2:]
                value = "true"
            values[key.replace("-", "_")] = value
        i += 1
    return values


def load_config(argv: list[str] | None = None) -> Config:
    """Build Config from defaults <- YAML file <- env vars <- CLI args (highest priority)."""
    if argv is None:
        argv = sys.argv[1:]

    cli = _parse_cli(argv)
    yaml_data = load_yaml_config(cli.pop("config", None) or os.environ.get("CONFIG_FILE"))

    raw: dict = {}
    for key in _CONVERTERS:
        if key in yaml_data:
            raw[key] = yaml_data[key]
        env_value = os.environ.get(_ENV_VARS[key])
        if env_value is not None:
            raw[key] = env_value
        if key in cli:
            raw[key] = cli[key]

    unknown = sorted(set(cli) - set(_CONVERTERS))
    if unknown:
        logger.warning("Ignoring unknown options: %s", ", ".join(unknown))

    return Config(**{key: _CONVERTERS[key](value) for key, value in raw.items()})
