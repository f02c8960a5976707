"""
Shared pytest fixtures for the collabctl test suite.

This module provides fixtures that are automatically available to all test files:
- Server settings pointing at a fake server URL
- A real APIClient (for respx-mocked HTTP tests)
- A Mock standing in for APIClient (for command tests)
- A Printer writing into in-memory streams
"""

import io
import logging
import os
from collections.abc import Generator
from unittest.mock import Mock

import pytest

from collabctl import config as config_module
from collabctl.api.client import APIClient
from collabctl.api.models import Channel, PostList, Team, User
from collabctl.config import ServerSettings
from collabctl.printer import Printer
from tests.constants import (
    CHANNEL_ID,
    TEAM_ID,
    TEST_SERVER_URL,
    TEST_TOKEN,
    USER_ID,
)

# ============================================================================
# ENVIRONMENT ISOLATION
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """
    Keep the developer's own environment and config file out of every test.

    Clears all COLLABCTL_* variables, points the default config file at a
    path that does not exist and removes any handler installed by
    configure_logging().
    """
    for name in list(os.environ):
        if name.startswith("COLLABCTL_"):
            monkeypatch.delenv(name)
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_FILE", tmp_path / "missing.ini")

    yield

    # Undo configure_logging() calls made by the test
    package_logger = logging.getLogger("collabctl")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


# ============================================================================
# CLIENT FIXTURES
# ============================================================================


@pytest.fixture
def settings() -> ServerSettings:
    """Server settings for a fake server with a token configured."""
    return ServerSettings(url=TEST_SERVER_URL, token=TEST_TOKEN, timeout=5.0)


@pytest.fixture
def client(settings: ServerSettings) -> Generator[APIClient, None, None]:
    """A real API client, opened for the duration of the test."""
    with APIClient(settings) as api_client:
        yield api_client


@pytest.fixture
def fake_client(settings: ServerSettings) -> Mock:
    """
    A Mock standing in for APIClient.

    Preconfigured with one team ("myteam"), one channel ("town-square") and
    one user ("alice"); tests override individual methods as needed.
    """
    fake = Mock(spec=APIClient)
    fake.settings = settings
    fake.websocket_url = "ws://test-server:8065/api/v4/websocket"

    fake.get_team_by_name.return_value = Team(id=TEAM_ID, name="myteam")
    fake.get_channel_by_name.return_value = Channel(
        id=CHANNEL_ID, team_id=TEAM_ID, name="town-square"
    )
    fake.get_user.return_value = User(id=USER_ID, username="alice")
    fake.get_posts_for_channel.return_value = PostList()
    return fake


# ============================================================================
# OUTPUT FIXTURES
# ============================================================================


@pytest.fixture
def out() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def err() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def printer(out: io.StringIO, err: io.StringIO) -> Printer:
    """A plain-format printer writing into in-memory streams."""
    return Printer(stream=out, error_stream=err)

