"""
Configuration management for the TRX report converter.
"""

import logging
import os
import threading
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

# Module-level lock for thread-safe config loading
_config_lock = threading.Lock()

TRX_NAMESPACE = "http://microsoft.com/schemas/VisualStudio/TeamTest/2010"

UNKNOWN_OUTCOME_POLICIES = ("error", "inconclusive")

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


@dataclass
class ConverterConfig:
    """Settings that control how a result document is converted.

    Example config YAML::

        namespace: http://microsoft.com/schemas/VisualStudio/TeamTest/2010
        unknown_outcome: inconclusive
        clamp_negative_durations: false
    """

    # XML namespace of the result document elements
    namespace: str = TRX_NAMESPACE

    # What to do with an outcome token outside the known vocabulary:
    # "error" aborts the conversion, "inconclusive" maps it to Inconclusive
    unknown_outcome: str = "error"

    # Replace negative durations (explicit or computed) with zero
    clamp_negative_durations: bool = True


def _parse_env_bool(var_name: str) -> Optional[bool]:
    """
    Safely parse a boolean from an environment variable.

    Args:
        var_name: Name of the environment variable

    Returns:
        Parsed boolean value, or None if the variable is not set

    Raises:
        ConfigurationError: If the value is not a recognised boolean
    """
    value = os.environ.get(var_name)
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"Environment variable {var_name} must be a boolean (true/false), got: '{value}'"
    )


def _read_config_file(config_file: str) -> Dict[str, Any]:
    """Read the top-level mapping of a YAML config file; an empty file is an empty mapping."""
    path = Path(config_file)
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file '{config_file}': {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Unable to read config file '{config_file}': {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file '{config_file}' must contain a mapping at the top level"
        )
    return data


def load_config(config_file: Optional[str] = None) -> ConverterConfig:
    """
    Load configuration from file and environment variables.

    Environment variables override values from the file, which override
    the ConverterConfig defaults.

    Args:
        config_file: Path to YAML configuration file (optional)

    Returns:
        ConverterConfig object with merged configuration

    Raises:
        FileNotFoundError: If config_file is specified but doesn't exist
        ConfigurationError: If the file is unreadable, has invalid YAML or
            unknown keys, or an environment variable is invalid
    """
    with _config_lock:
        settings: Dict[str, Any] = {}
        if config_file:
            logger.info("Loading configuration from %s", config_file)
            settings.update(_read_config_file(config_file))

        unknown = sorted(str(key) for key in set(settings) - {f.name for f in fields(ConverterConfig)})
        if unknown:
            raise ConfigurationError(f"Invalid configuration: unknown keys {unknown}")

        overrides = _load_from_env()
        if overrides:
            logger.debug("Environment overrides: %s", sorted(overrides))
        settings.update(overrides)

        return ConverterConfig(**settings)


def _load_from_env() -> Dict[str, Any]:
    """
    Load configuration from environment variables.

    Supported environment variables:
    - TRX_REPORT_NAMESPACE: XML namespace of the result document
    - TRX_REPORT_UNKNOWN_OUTCOME: Unknown outcome policy (error, inconclusive)
    - TRX_REPORT_CLAMP_NEGATIVE_DURATIONS: Clamp negative durations (true/false)

    Returns:
        Dictionary of configuration values from environment

    Raises:
        ConfigurationError: If environment variable values are invalid
    """
    env_config: Dict[str, Any] = {}

    if "TRX_REPORT_NAMESPACE" in os.environ:
        env_config["namespace"] = os.environ["TRX_REPORT_NAMESPACE"]

    if "TRX_REPORT_UNKNOWN_OUTCOME" in os.environ:
        env_config["unknown_outcome"] = os.environ["TRX_REPORT_UNKNOWN_OUTCOME"].strip().lower()

    clamp = _parse_env_bool("TRX_REPORT_CLAMP_NEGATIVE_DURATIONS")
    if clamp is not None:
        env_config["clamp_negative_durations"] = clamp

    return env_config


def validate_config(config: ConverterConfig) -> List[str]:
    """
    Validate configuration and return list of errors.

    Args:
        config: ConverterConfig to validate

    Returns:
        List of error messages (empty if valid)
    """
    errors: List[str] = []

    if not config.namespace or not isinstance(config.namespace, str):
        errors.append("namespace is required")

    if config.unknown_outcome not in UNKNOWN_OUTCOME_POLICIES:
        errors.append(
            f"unknown_outcome must be one of {list(UNKNOWN_OUTCOME_POLICIES)}: "
            f"{config.unknown_outcome}"
        )

    if not isinstance(config.clamp_negative_durations, bool):
        errors.append(
            f"clamp_negative_durations must be a boolean: {config.clamp_negative_durations!r}"
        )

    return errors
