"""
Client configuration management.

This module handles loading configuration from multiple sources with a clear
priority order:

    1. Command-line flags (highest priority) - passed in as overrides
    2. Environment variables - for shell rc files and CI jobs
    3. Config file (INI) - for a persistent per-user setup
    4. Built-in defaults (lowest priority) - sensible fallbacks

The config file is located by, in order: the ``--config`` flag, the
``COLLABCTL_CONFIG`` environment variable, then
``~/.config/collabctl/config.ini``. A missing file is not an error.

Usage:
    from collabctl.config import load_config

    cfg = load_config(overrides={"server.url": "https://chat.example.com"})
    print(cfg.server.url)

Environment Variable Mapping:
    COLLABCTL_SERVER_URL       -> server.url
    COLLABCTL_ACCESS_TOKEN     -> server.token
    COLLABCTL_REQUEST_TIMEOUT  -> server.timeout
    COLLABCTL_FORMAT           -> output.format
    COLLABCTL_LOG_LEVEL        -> logging.level

Example config.ini:
    [server]
    url = https://chat.example.com
    token = xxxxxxxxxxxxxxxxxxxxxxxxxx
    timeout = 30

    [output]
    format = plain
    quiet = no

    [logging]
    level = WARNING
    format = simple
"""

from __future__ import annotations

import configparser
import logging
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

# =============================================================================
# DEFAULT CONFIGURATION VALUES
# =============================================================================

# Default server URL - the collaboration server's stock HTTP port.
DEFAULT_SERVER_URL = "http://localhost:8065"

# Default HTTP request timeout in seconds.
DEFAULT_TIMEOUT = 30.0

# Output formats understood by the printer.
OUTPUT_FORMATS = ("plain", "json")

# Config file locations.
ENV_CONFIG_FILE = "COLLABCTL_CONFIG"
DEFAULT_CONFIG_FILE = Path.home() / ".config" / "collabctl" / "config.ini"

# Environment variable names for configuration.
ENV_SERVER_URL = "COLLABCTL_SERVER_URL"
ENV_TOKEN = "COLLABCTL_ACCESS_TOKEN"  # nosec B105 - variable name, not a secret
ENV_TIMEOUT = "COLLABCTL_REQUEST_TIMEOUT"
ENV_FORMAT = "COLLABCTL_FORMAT"
ENV_LOG_LEVEL = "COLLABCTL_LOG_LEVEL"

LOG_FORMATS = {
    "simple": "%(levelname)s: %(message)s",
    "detailed": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
}


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class ServerSettings:
    """Remote server connection settings."""

    url: str = DEFAULT_SERVER_URL
    token: str = field(default="", repr=False)
    timeout: float = DEFAULT_TIMEOUT


@dataclass
class OutputSettings:
    """Terminal output settings."""

    format: Literal["plain", "json"] = "plain"
    quiet: bool = False


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "WARNING"
    format: Literal["simple", "detailed"] = "simple"


@dataclass
class ClientConfig:
    """
    Complete client configuration.

    Aggregates all settings sections. Build one with `load_config()`; the
    object is then passed explicitly to whatever needs it.
    """

    server: ServerSettings = field(default_factory=ServerSettings)
    output: OutputSettings = field(default_factory=OutputSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    source: Path | None = None

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: If the server URL is empty, the timeout is not positive,
                or the output format is unknown.
        """
        if not self.server.url:
            raise ValueError("server url cannot be empty")

        if self.server.timeout <= 0:
            raise ValueError("timeout must be a positive number")

        if self.output.format not in OUTPUT_FORMATS:
            raise ValueError(
                f"unknown output format '{self.output.format}' "
                f"(expected one of: {', '.join(OUTPUT_FORMATS)})"
            )


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _parse_timeout(value: str) -> float:
    """Parse a timeout value, reporting the offending text on failure."""
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"invalid timeout '{value}'") from None


def _load_from_ini(parser: configparser.ConfigParser, cfg: ClientConfig) -> None:
    """Load configuration from parsed INI file into ClientConfig."""
    # Server section
    if parser.has_section("server"):
        if parser.has_option("server", "url"):
            cfg.server.url = parser.get("server", "url")
        if parser.has_option("server", "token"):
            cfg.server.token = parser.get("server", "token")
        if parser.has_option("server", "timeout"):
            cfg.server.timeout = _parse_timeout(parser.get("server", "timeout"))

    # Output section
    if parser.has_section("output"):
        if parser.has_option("output", "format"):
            cfg.output.format = parser.get("output", "format").lower()  # type: ignore[assignment]
        if parser.has_option("output", "quiet"):
            cfg.output.quiet = parser.getboolean("output", "quiet")

    # Logging section
    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in LOG_FORMATS:
                cfg.logging.format = val  # type: ignore[assignment]


def _apply_env_overrides(cfg: ClientConfig) -> None:
    """Apply environment variable overrides to configuration."""
    if env_url := os.getenv(ENV_SERVER_URL):
        cfg.server.url = env_url
    if env_token := os.getenv(ENV_TOKEN):
        cfg.server.token = env_token
    if env_timeout := os.getenv(ENV_TIMEOUT):
        cfg.server.timeout = _parse_timeout(env_timeout)
    if env_format := os.getenv(ENV_FORMAT):
        cfg.output.format = env_format.lower()  # type: ignore[assignment]
    if env_log := os.getenv(ENV_LOG_LEVEL):
        cfg.logging.level = env_log.upper()


def _apply_overrides(cfg: ClientConfig, overrides: Mapping[str, Any]) -> None:
    """
    Apply command-line overrides given as ``"section.option": value``.

    ``None`` values mean "not given on the command line" and are skipped.
    """
    for key, value in overrides.items():
        if value is None:
            continue
        section_name, _, option = key.partition(".")
        section = getattr(cfg, section_name, None)
        if section is None or not hasattr(section, option):
            raise ValueError(f"unknown configuration key '{key}'")
        setattr(section, option, value)


def resolve_config_file(path: str | Path | None = None) -> Path | None:
    """
    Find the INI file to read, if any.

    Args:
        path: Explicit path from the command line. When given it must exist.

    Returns:
        Path to the config file, or None when no file should be read.

    Raises:
        ValueError: If an explicitly requested file does not exist.
    """
    if path:
        explicit = Path(path).expanduser()
        if not explicit.is_file():
            raise ValueError(f"config file not found: {explicit}")
        return explicit

    if env_path := os.getenv(ENV_CONFIG_FILE):
        candidate = Path(env_path).expanduser()
        return candidate if candidate.is_file() else None

    if DEFAULT_CONFIG_FILE.is_file():
        return DEFAULT_CONFIG_FILE
    return None


def load_config(
    config_file: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ClientConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. ``overrides`` (command-line flags)
        2. Environment variables
        3. INI config file
        4. Built-in defaults

    Args:
        config_file: Explicit INI file path (``--config``).
        overrides: Mapping of ``"section.option"`` to value; None values are ignored.

    Returns:
        ClientConfig: Fully populated and validated configuration object.

    Raises:
        ValueError: If any source holds an invalid value.
    """
    cfg = ClientConfig()

    source = resolve_config_file(config_file)
    if source:
        parser = configparser.ConfigParser()
        parser.read(source)
        _load_from_ini(parser, cfg)
        cfg.source = source

    _apply_env_overrides(cfg)

    if overrides:
        _apply_overrides(cfg, overrides)

    # Remove trailing slash if present for consistency
    cfg.server.url = cfg.server.url.rstrip("/")

    cfg.validate()
    return cfg


# =============================================================================
# LOGGING
# =============================================================================


def configure_logging(settings: LoggingSettings) -> logging.Logger:
    """
    Install a stderr handler on the package logger.

    Calling this more than once replaces the previous handler, so repeated
    invocations of ``main()`` in one process (tests) do not duplicate output.

    Args:
        settings: Logging section of the loaded configuration.

    Returns:
        The configured ``collabctl`` logger.
    """
    logger = logging.getLogger("collabctl")

    level = logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        raise ValueError(f"unknown log level '{settings.level}'")

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMATS[settings.format]))
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
