"""
Tests for collabctl.config.

Covers the precedence between defaults, the INI file, environment variables
and command-line overrides, plus validation and logging setup.
"""

import configparser
import logging

import pytest

from collabctl.config import (
    DEFAULT_SERVER_URL,
    DEFAULT_TIMEOUT,
    ENV_CONFIG_FILE,
    ENV_FORMAT,
    ENV_LOG_LEVEL,
    ENV_SERVER_URL,
    ENV_TIMEOUT,
    ENV_TOKEN,
    ClientConfig,
    LoggingSettings,
    _load_from_ini,
    configure_logging,
    load_config,
    resolve_config_file,
)

INI_CONTENT = """
[server]
url = https://ini.example.com/
token = ini-token
timeout = 12.5

[output]
format = JSON

[logging]
level = info
format = detailed
"""


@pytest.fixture
def ini_file(tmp_path):
    path = tmp_path / "collabctl.ini"
    path.write_text(INI_CONTENT)
    return path


# ============================================================================
# DEFAULTS
# ============================================================================


@pytest.mark.unit
def test_defaults_without_any_source():
    cfg = load_config()

    assert cfg.server.url == DEFAULT_SERVER_URL
    assert cfg.server.token == ""
    assert cfg.server.timeout == DEFAULT_TIMEOUT
    assert cfg.output.format == "plain"
    assert cfg.logging.level == "WARNING"
    assert cfg.source is None


@pytest.mark.unit
def test_token_not_in_repr():
    cfg = ClientConfig()
    cfg.server.token = "very-secret"

    assert "very-secret" not in repr(cfg)


# ============================================================================
# INI FILE
# ============================================================================


@pytest.mark.unit
def test_ini_values_are_loaded(ini_file):
    cfg = load_config(ini_file)

    assert cfg.server.url == "https://ini.example.com"  # trailing slash stripped
    assert cfg.server.token == "ini-token"
    assert cfg.server.timeout == 12.5
    assert cfg.output.format == "json"
    assert cfg.logging.level == "INFO"
    assert cfg.logging.format == "detailed"
    assert cfg.source == ini_file


@pytest.mark.unit
def test_ini_unknown_log_format_is_ignored():
    parser = configparser.ConfigParser()
    parser.read_dict({"logging": {"format": "xml"}})

    cfg = ClientConfig()
    _load_from_ini(parser, cfg)

    assert cfg.logging.format == "simple"


@pytest.mark.unit
def test_config_file_from_environment(monkeypatch, ini_file):
    monkeypatch.setenv(ENV_CONFIG_FILE, str(ini_file))

    assert resolve_config_file() == ini_file
    assert load_config().server.token == "ini-token"


@pytest.mark.unit
def test_missing_env_config_file_is_not_an_error(monkeypatch, tmp_path):
    monkeypatch.setenv(ENV_CONFIG_FILE, str(tmp_path / "nope.ini"))

    assert resolve_config_file() is None


@pytest.mark.unit
def test_missing_explicit_config_file_is_an_error(tmp_path):
    with pytest.raises(ValueError, match="config file not found"):
        load_config(tmp_path / "nope.ini")


# ============================================================================
# PRECEDENCE
# ============================================================================


@pytest.mark.unit
def test_environment_overrides_ini(monkeypatch, ini_file):
    monkeypatch.setenv(ENV_SERVER_URL, "https://env.example.com")
    monkeypatch.setenv(ENV_TOKEN, "env-token")
    monkeypatch.setenv(ENV_TIMEOUT, "3")
    monkeypatch.setenv(ENV_FORMAT, "plain")
    monkeypatch.setenv(ENV_LOG_LEVEL, "debug")

    cfg = load_config(ini_file)

    assert cfg.server.url == "https://env.example.com"
    assert cfg.server.token == "env-token"
    assert cfg.server.timeout == 3.0
    assert cfg.output.format == "plain"
    assert cfg.logging.level == "DEBUG"


@pytest.mark.unit
def test_overrides_win_over_environment(monkeypatch, ini_file):
    monkeypatch.setenv(ENV_SERVER_URL, "https://env.example.com")
    monkeypatch.setenv(ENV_TOKEN, "env-token")

    cfg = load_config(
        ini_file,
        overrides={
            "server.url": "https://flag.example.com/",
            "server.token": None,  # not given on the command line
            "server.timeout": 1.5,
        },
    )

    assert cfg.server.url == "https://flag.example.com"
    assert cfg.server.token == "env-token"
    assert cfg.server.timeout == 1.5


@pytest.mark.unit
def test_unknown_override_key_is_rejected():
    with pytest.raises(ValueError, match="unknown configuration key"):
        load_config(overrides={"server.colour": "blue"})


# ============================================================================
# VALIDATION
# ============================================================================


@pytest.mark.unit
def test_invalid_timeout_in_environment(monkeypatch):
    monkeypatch.setenv(ENV_TIMEOUT, "soon")

    with pytest.raises(ValueError, match="invalid timeout 'soon'"):
        load_config()


@pytest.mark.unit
@pytest.mark.parametrize("timeout", [0, -5.0])
def test_non_positive_timeout_is_rejected(timeout):
    with pytest.raises(ValueError, match="timeout must be a positive number"):
        load_config(overrides={"server.timeout": timeout})


@pytest.mark.unit
def test_empty_url_is_rejected():
    with pytest.raises(ValueError, match="server url cannot be empty"):
        load_config(overrides={"server.url": "/"})


@pytest.mark.unit
def test_unknown_format_is_rejected(monkeypatch):
    monkeypatch.setenv(ENV_FORMAT, "yaml")

    with pytest.raises(ValueError, match="unknown output format 'yaml'"):
        load_config()


# ============================================================================
# LOGGING
# ============================================================================


@pytest.mark.unit
def test_configure_logging_sets_level_and_single_handler():
    logger = configure_logging(LoggingSettings(level="debug"))
    configure_logging(LoggingSettings(level="INFO", format="detailed"))

    assert logger.name == "collabctl"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1


@pytest.mark.unit
def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError, match="unknown log level"):
        configure_logging(LoggingSettings(level="chatty"))


@pytest.mark.unit
def test_quiet_from_ini_and_overrides(tmp_path):
    path = tmp_path / "quiet.ini"
    path.write_text("[output]\nquiet = yes\n")

    assert load_config(path).output.quiet is True
    assert load_config(overrides={"output.quiet": True}).output.quiet is True
    assert load_config(overrides={"output.quiet": None}).output.quiet is False
