"""Configuration loading from CLI args, env vars, and optional YAML file."""

import logging
import os
from dataclasses import dataclass

import yaml

from slowlog.errors import ConfigError

logger = logging.getLogger(__name__)

MIN_CHUNK_SIZE = 100
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Config:
    input_path: str = ""
    output_dir: str = ""
    chunk_size: int = 0
    log_level: str = "INFO"

    @property
    def output_prefix(self) -> str:
        """Input basename with its last extension removed."""
        name = os.path.basename(self.input_path)
        return os.path.splitext(name)[0]


def load_yaml_config(path: str | None) -> dict:
    """Load options from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigError(f"config file not found: {path}") from None
    except yaml.YAMLError as exc:
        raise ConfigError(f"config file {path} is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping")
    logger.info("Loaded YAML config from %s", path)
    return data


def _pick(cli_value, yaml_data: dict, yaml_key: str, env_key: str, default):
    if cli_value is not None:
        return cli_value
    if yaml_data.get(yaml_key) is not None:
        return yaml_data[yaml_key]
    return os.environ.get(env_key, default)


def _parse_chunk_size(value) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ConfigError(f"chunk size must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"chunk size must be an integer, got {value!r}") from None


def validate_config(config: Config) -> Config:
    """Check every required option. Raises ConfigError on the first violation."""
    if not config.input_path:
        raise ConfigError("input file (-i) is required")
    if not os.path.isfile(config.input_path):
        raise ConfigError(f"input file not found: {config.input_path}")
    if not config.output_dir:
        raise ConfigError("output folder (-o) is required")
    if config.chunk_size < MIN_CHUNK_SIZE:
        raise ConfigError(f"chunk size (-s) must be at least {MIN_CHUNK_SIZE}")
    if config.log_level not in LOG_LEVELS:
        raise ConfigError(
            f"log level must be one of {', '.join(LOG_LEVELS)}, got {config.log_level!r}"
        )
    return config


def load_config(cli_args, yaml_data: dict) -> Config:
    """Build a validated Config from CLI args, YAML data, and env vars.

    Precedence per option: CLI flag, then YAML key, then environment variable.
    """
    config = Config(
        input_path=str(_pick(
            getattr(cli_args, "input", None), yaml_data, "input", "SLOWLOG_INPUT", ""
        )),
        output_dir=str(_pick(
            getattr(cli_args, "output", None), yaml_data, "output", "SLOWLOG_OUTPUT_DIR", ""
        )),
        chunk_size=_parse_chunk_size(_pick(
            getattr(cli_args, "chunk_size", None), yaml_data, "chunk_size", "SLOWLOG_CHUNK_SIZE", 0
        )),
        log_level=str(_pick(
            getattr(cli_args, "log_level", None), yaml_data, "log_level", "SLOWLOG_LOG_LEVEL", "INFO"
        )).upper(),
    )
    return validate_config(config)
