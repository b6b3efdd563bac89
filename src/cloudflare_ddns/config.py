"""
Configuration management for Cloudflare DDNS Updater.

This module handles loading and validating configuration from TOML files,
environment variables and command-line arguments. Configuration priority
(high to low):
1. Command-line arguments
2. Environment variables
3. Configuration file
4. Default values
"""

from __future__ import annotations

import argparse
import copy
import logging
import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from cloudflare_ddns.logging_config import DATE_FORMAT, LOG_FORMAT
from cloudflare_ddns.public_ip import IPIFY_URL

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Any, Final

# Configure basic logging for early startup messages.
# This ensures log messages during config loading (before "setup_logging()" is called)
# are visible with proper formatting. The main logging setup in "setup_logging()"
# will reconfigure the "cloudflare_ddns" logger with full settings later.
logger_basic = logging.getLogger(__name__)
logger_basic.setLevel(logging.DEBUG)
handler = logging.StreamHandler()
formatter = logging.Formatter(
    fmt=LOG_FORMAT,
    datefmt=DATE_FORMAT,
)
handler.setFormatter(formatter)
logger_basic.addHandler(handler)
logger_basic.propagate = False


# Environment variable -> (section, key)
ENV_VARS: Final[dict[str, tuple[str, str]]] = {
    "API_TOKEN": ("cloudflare", "api_token"),
    "ZONE_ID": ("cloudflare", "zone_id"),
    "DOMAIN": ("cloudflare", "domain"),
    "PROXIED": ("cloudflare", "proxied"),
    "MAX_RETRIES": ("updater", "max_retries"),
    "RETRY_DELAY": ("updater", "retry_delay"),
    "UPDATE_INTERVAL": ("updater", "update_interval"),
    "IP_SOURCE_URL": ("updater", "ip_source_url"),
    "HTTP_TIMEOUT": ("updater", "http_timeout"),
    "LOG_LEVEL": ("logging", "level"),
}

# Fields whose values are never echoed in error messages
SECRET_FIELDS: Final[frozenset[str]] = frozenset({"cloudflare.api_token"})


class ConfigValidationError(Exception):
    """
    Exception raised when configuration validation fails.

    This exception is raised when required settings are missing, or when
    the configuration contains invalid types or values.

    Attributes
    ----------
    message : str
        Human-readable error message describing the validation failures.
    config_path : Path | None
        Path to the configuration file that failed validation.
    """

    def __init__(self, message: str, config_path: Path | None = None) -> None:
        """
        Initialize ConfigValidationError.

        Parameters
        ----------
        message : str
            Human-readable error message.
        config_path : Path | None, optional
            Path to the configuration file.
        """
        self.config_path = config_path
        super().__init__(message)


# Configuration models (Pydantic with type validation and coercion)


class CloudFlareConfig(BaseModel):
    """
    CloudFlare configuration.

    Attributes
    ----------
    api_token : str
        CloudFlare API token with "DNS:Edit" permission.
    zone_id : str
        CloudFlare Zone ID of the target domain.
    domain : str
        Fully qualified domain name whose "A" records are updated.
    proxied : bool
        Whether updated records are proxied through CloudFlare.
    """

    api_token: str = Field(..., min_length=1)
    zone_id: str = Field(..., min_length=1)
    domain: str = Field(..., min_length=1)
    proxied: bool

    @field_validator("proxied", mode="before")
    @classmethod
    def check_proxied(cls, value: Any) -> Any:
        """
        Accept only booleans or the strings "true" and "false".

        Parameters
        ----------
        value : Any
            Raw value.

        Returns
        -------
        Any
            The boolean value.

        Raises
        ------
        PydanticCustomError
            If the value is any other string or type.
        """
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value in {"true", "false"}:
            return value == "true"
        err_type = "proxied_error"
        raise PydanticCustomError(
            err_type,
            "Must be either 'true' or 'false'",
        )


class UpdaterConfig(BaseModel):
    """
    Update loop configuration.

    Attributes
    ----------
    max_retries : int
        Maximum attempts for each network operation.
    retry_delay : float
        Base retry delay in seconds, doubled after each failed attempt.
    update_interval : float
        Seconds between the end of a cycle and the start of the next.
    ip_source_url : str
        URL of the public IP endpoint.
    http_timeout : float
        HTTP timeout in seconds.
    """

    max_retries: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=5.0, ge=0)
    update_interval: float = Field(default=60.0, gt=0)
    ip_source_url: str = IPIFY_URL
    http_timeout: float = Field(default=30.0, gt=0)


class LoggingConfig(BaseModel):
    """
    Logging configuration.

    Attributes
    ----------
    level : str
        Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    file_enabled : bool
        Whether to log to file.
    file_path : str
        Path to the log file.
    """

    level: str = "INFO"
    file_enabled: bool = False
    file_path: str = "/var/log/cloudflare-ddns.log"

    @property
    def file_path_as_path(self) -> Path:
        """
        Get the log file path as a Path object.

        Returns
        -------
        Path
            The resolved log file path.
        """
        return Path(self.file_path)


class Config(BaseModel):
    """
    Application configuration.

    Attributes
    ----------
    cloudflare : CloudFlareConfig
        CloudFlare configuration.
    updater : UpdaterConfig
        Update loop configuration.
    logging : LoggingConfig
        Logging configuration.
    """

    cloudflare: CloudFlareConfig
    updater: UpdaterConfig = UpdaterConfig()
    logging: LoggingConfig = LoggingConfig()


def _env_var_for(field_path: str) -> str | None:
    """
    Get the environment variable that sets a configuration field.

    Parameters
    ----------
    field_path : str
        Dotted field path (e.g., "cloudflare.zone_id").

    Returns
    -------
    str | None
        The environment variable name, or None if there is none.
    """
    for name, (section, key) in ENV_VARS.items():
        if field_path == f"{section}.{key}":
            return name
    return None


def _format_validation_errors(
    error: ValidationError,
    config_path: Path | None,
) -> str:
    """
    Format Pydantic validation errors into human-readable messages.

    Parameters
    ----------
    error : ValidationError
        Pydantic validation error.
    config_path : Path | None
        Path to the configuration file.

    Returns
    -------
    str
        Human-readable error message.
    """
    lines: list[str] = []

    if config_path:
        lines.append(f'Configuration error in "{config_path}":')
    else:
        lines.append("Configuration error:")

    for err in error.errors():
        # Build field path (e.g., "cloudflare.zone_id")
        field_path = ".".join(str(loc) for loc in err["loc"])
        env_var = _env_var_for(field_path)
        hint = f" (set {env_var})" if env_var else ""

        error_type = err["type"]
        error_input = err["input"]
        input_type = type(error_input).__name__

        value_repr = (
            f'"{error_input}"' if isinstance(error_input, str) else repr(error_input)
        )
        if field_path in SECRET_FIELDS:
            value_repr = value_hint = ""
        else:
            value_hint = f" (value: {value_repr})"

        if error_type == "missing":
            lines.append(f"  [{field_path}]: Missing required config{hint}.")
        elif error_type == "proxied_error":
            lines.append(
                f"  [{field_path}]: Invalid value {value_repr}{hint}. {err['msg']}.",
            )
        else:
            # Determine expected type from error type
            expected_type = _get_expected_type(error_type)
            lines.append(
                f"  [{field_path}]: Expected {expected_type}, got {input_type}{value_hint}. {err['msg']}.",
            )

    return "\n".join(lines)


def _get_expected_type(error_type: str) -> str:
    """
    Get human-readable expected type from Pydantic error type.

    Parameters
    ----------
    error_type : str
        Pydantic error type string.

    Returns
    -------
    str
        Human-readable type name.
    """
    type_mapping = {
        "int_type": "int",
        "int_parsing": "int",
        "float_type": "float",
        "float_parsing": "float",
        "bool_type": "bool",
        "bool_parsing": "bool",
        "string_type": "str",
        "string_too_short": "non-empty str",
        "greater_than": "larger number",
        "greater_than_equal": "larger number",
    }
    return type_mapping.get(error_type, error_type)


def validate_config_dict(
    data: dict[str, Any],
    config_path: Path | None = None,
) -> Config:
    """
    Validate a configuration dictionary using Pydantic.

    Parameters
    ----------
    data : dict[str, Any]
        Configuration dictionary to validate.
    config_path : Path | None, optional
        Path to the configuration file (for error messages).

    Returns
    -------
    Config
        The validated configuration.

    Raises
    ------
    ConfigValidationError
        If validation fails.
    """
    # An absent section reports each of its missing fields
    data = {"cloudflare": {}, **data}
    try:
        return dict_to_config(data)
    except ValidationError as e:
        msg = _format_validation_errors(e, config_path)
        raise ConfigValidationError(msg, config_path) from e


def load_config_from_file(config_path: Path) -> dict[str, Any]:
    """
    Load configuration from a TOML file.

    Parameters
    ----------
    config_path : Path
        Path to the configuration file.

    Returns
    -------
    dict[str, Any]
        Parsed configuration dictionary.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    tomllib.TOMLDecodeError
        If the configuration file is not valid TOML.
    """
    with config_path.open("rb") as f:
        return tomllib.load(f)


def load_config_from_env(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """
    Collect configuration values from environment variables.

    Empty variables are treated as unset.

    Parameters
    ----------
    environ : Mapping[str, str] | None, optional
        Environment to read. If None, uses os.environ.

    Returns
    -------
    dict[str, Any]
        Nested configuration dictionary with the values found.
    """
    if environ is None:
        environ = os.environ

    result: dict[str, Any] = {}
    for name, (section, key) in ENV_VARS.items():
        value = environ.get(name)
        if value:
            result.setdefault(section, {})[key] = value
    return result


def merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively merge two configuration dictionaries.

    Parameters
    ----------
    base : dict[str, Any]
        Base configuration.
    override : dict[str, Any]
        Override configuration (takes precedence).

    Returns
    -------
    dict[str, Any]
        Merged configuration.
    """
    # Use deep copy to avoid modifying the original base configuration
    result = copy.deepcopy(base)

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_config(result[key], value)
        else:
            result[key] = value
    return result


def dict_to_config(data: dict[str, Any]) -> Config:
    """
    Convert a dictionary to a Config object.

    Parameters
    ----------
    data : dict[str, Any]
        Configuration dictionary.

    Returns
    -------
    Config
        Configuration object.

    Raises
    ------
    ValidationError
        If the dictionary is not a valid configuration.
    """
    # Handle file_path expansion before Pydantic validation
    if "logging" in data and "file_path" in data["logging"]:
        data = copy.deepcopy(data)
        data["logging"]["file_path"] = str(
            Path(data["logging"]["file_path"]).expanduser(),
        )

    return Config.model_validate(data)


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Parameters
    ----------
    args : list[str] | None, optional
        Command-line arguments. If None, uses sys.argv.

    Returns
    -------
    argparse.Namespace
        Parsed arguments.
    """
    parser = argparse.ArgumentParser(
        prog="cloudflare-ddns",
        description="Cloudflare DDNS Updater - keep DNS A records on the current public IP",
    )

    # Config arguments
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.toml)",
    )

    # CloudFlare arguments (the API token is only read from file or environment)
    parser.add_argument(
        "--zone-id",
        type=str,
        dest="zone_id",
        default=None,
        help="CloudFlare Zone ID",
    )
    parser.add_argument(
        "--domain",
        type=str,
        default=None,
        help="Domain name whose A records are updated",
    )
    proxied_group = parser.add_mutually_exclusive_group()
    proxied_group.add_argument(
        "--proxied",
        action="store_true",
        dest="proxied",
        default=None,
        help="Proxy updated records through CloudFlare",
    )
    proxied_group.add_argument(
        "--no-proxied",
        action="store_false",
        dest="proxied",
        default=None,
        help="Do not proxy updated records",
    )

    # Updater arguments
    parser.add_argument(
        "--max-retries",
        type=int,
        dest="max_retries",
        default=None,
        help="Maximum attempts for each network operation",
    )
    parser.add_argument(
        "--retry-delay",
        type=float,
        dest="retry_delay",
        default=None,
        help="Base retry delay in seconds",
    )
    parser.add_argument(
        "--update-interval",
        type=float,
        dest="update_interval",
        default=None,
        help="Seconds between update cycles",
    )
    parser.add_argument(
        "--ip-source-url",
        type=str,
        dest="ip_source_url",
        default=None,
        help="URL of the public IP endpoint",
    )

    # Logging arguments
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Log level",
    )
    log_file_group = parser.add_mutually_exclusive_group()
    log_file_group.add_argument(
        "--log-file-enabled",
        action="store_true",
        dest="log_file_enabled",
        default=None,
        help="Enable logging to file",
    )
    log_file_group.add_argument(
        "--log-file-disabled",
        action="store_false",
        dest="log_file_enabled",
        default=None,
        help="Disable logging to file",
    )
    parser.add_argument(
        "--log-file-path",
        type=Path,
        dest="log_file_path",
        default=None,
        help="Path to the log file",
    )

    return parser.parse_args(args)


def _cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """
    Collect configuration values given on the command line.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command-line arguments.

    Returns
    -------
    dict[str, Any]
        Nested configuration dictionary with the values given.
    """
    overrides: dict[str, Any] = {}

    # CloudFlare overrides
    if args.zone_id is not None:
        overrides.setdefault("cloudflare", {})["zone_id"] = args.zone_id
    if args.domain is not None:
        overrides.setdefault("cloudflare", {})["domain"] = args.domain
    if args.proxied is not None:
        overrides.setdefault("cloudflare", {})["proxied"] = args.proxied

    # Updater overrides
    for key in ("max_retries", "retry_delay", "update_interval", "ip_source_url"):
        value = getattr(args, key)
        if value is not None:
            overrides.setdefault("updater", {})[key] = value

    # Logging overrides
    if args.log_level is not None:
        overrides.setdefault("logging", {})["level"] = args.log_level
    if args.log_file_enabled is not None:
        overrides.setdefault("logging", {})["file_enabled"] = args.log_file_enabled
    if args.log_file_path is not None:
        overrides.setdefault("logging", {})["file_path"] = str(args.log_file_path)

    return overrides


def load_config(
    args: argparse.Namespace | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """
    Load configuration from file, environment and command-line arguments.

    Priority (high to low):
    1. Command-line arguments
    2. Environment variables
    3. Configuration file
    4. Default values

    Parameters
    ----------
    args : argparse.Namespace | None, optional
        Parsed command-line arguments.
    environ : Mapping[str, str] | None, optional
        Environment to read. If None, uses os.environ.

    Returns
    -------
    Config
        Loaded configuration.

    Raises
    ------
    ConfigValidationError
        If the configuration file cannot be read or the merged
        configuration is invalid.
    """
    if args is None:
        args = parse_args()

    config_dict: dict[str, Any] = {}

    # Load from config file if specified or if default exists
    config_path = args.config
    if config_path is not None:
        config_path = config_path.expanduser()
    if config_path is None:
        default_config = Path("config.toml")
        if default_config.exists():
            config_path = default_config

    if config_path is not None:
        if not config_path.exists():
            msg = f'Configuration file not found: "{config_path}"'
            raise ConfigValidationError(msg, config_path)
        logger_basic.info('Loading configuration from "%s".', config_path)
        try:
            config_dict = load_config_from_file(config_path)
        except (OSError, tomllib.TOMLDecodeError) as e:
            msg = f'Failed to parse configuration file "{config_path}": {e}'
            raise ConfigValidationError(msg, config_path) from e

    config_dict = merge_config(config_dict, load_config_from_env(environ))
    config_dict = merge_config(config_dict, _cli_overrides(args))

    return validate_config_dict(config_dict, config_path)
