"""Tests for version management.

``collabctl.__version__`` comes from the installed package metadata and is
surfaced by ``--version`` and the HTTP User-Agent.
"""

from __future__ import annotations

import re

import pytest

import collabctl
from collabctl.api.client import APIClient
from collabctl.config import ServerSettings

_SEMVER_RE = re.compile(r"^\d+\.\d+\.\d+(-[A-Za-z0-9]+(\.[A-Za-z0-9]+)*)?$")


@pytest.mark.unit
class TestVersionAttribute:
    def test_version_matches_semver(self) -> None:
        assert _SEMVER_RE.match(collabctl.__version__)

    def test_user_agent_carries_version(self) -> None:
        with APIClient(ServerSettings()) as client:
            user_agent = client.http_client.headers["User-Agent"]

        assert user_agent == f"collabctl/{collabctl.__version__}"
