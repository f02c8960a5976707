"""
HTTP API client for the collaboration server.

This module provides a synchronous HTTP client for the server's v4 REST API.
It handles bearer-token authentication, error mapping and response parsing
into the models from `collabctl.api.models`.

The client is designed to be used as a context manager to ensure proper
resource cleanup:

    with APIClient(config.server) as client:
        me = client.get_me()
        post = client.get_post("abc123")

Key Features:
    - Sync HTTP requests using httpx
    - Custom exceptions for error handling
    - One method per REST endpoint the commands need
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, urlsplit, urlunsplit

import httpx

from collabctl import __version__
from collabctl.api.models import Channel, Post, PostList, Status, Team, User
from collabctl.config import ServerSettings

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v4"

# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


@dataclass
class APIError(Exception):
    """
    Exception raised when an API request fails.

    This exception is raised for any non-2xx response from the server,
    except for authentication-specific errors which raise AuthenticationError.
    A status_code of 0 means the server could not be reached at all.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code from the response.
        detail: Additional detail from the server response, if available.

    Example:
        try:
            client.get_post(post_id)
        except APIError as e:
            print(f"API error {e.status_code}: {e}")
    """

    message: str
    status_code: int = 0
    detail: str = ""

    def __str__(self) -> str:
        """Return a formatted error message."""
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class AuthenticationError(APIError):
    """
    Exception raised for authentication-related failures.

    This includes:
        - Invalid or expired token (401)
        - Permission denied (403)
        - No token configured
    """

    pass


def _error_detail(response: httpx.Response) -> str:
    """Pull the human-readable message out of a server error body."""
    try:
        data = response.json()
    except ValueError:
        return response.text.strip() or "Unknown error"
    if isinstance(data, dict):
        return str(data.get("message") or data.get("detail") or "Unknown error")
    return "Unknown error"


def _segment(value: str) -> str:
    """
    Percent-encode one path parameter.

    Every reserved character is escaped, so "/", "#" and "?" stay inside the
    segment. Empty and dot-only values would address a different endpoint and
    are rejected.

    Raises:
        APIError: If the value cannot be used as a path segment.
    """
    if value in ("", ".", ".."):
        raise APIError(
            message="Invalid identifier",
            status_code=400,
            detail=f"{value!r} cannot be used in a request path",
        )
    return quote(value, safe="")


# =============================================================================
# API CLIENT
# =============================================================================


@dataclass
class APIClient:
    """
    Sync HTTP client for the collaboration server's v4 API.

    It must be used as a context manager to properly manage the underlying
    HTTP connection pool.

    Attributes:
        settings: Server section of the client configuration (url, token, timeout).

    Example:
        settings = ServerSettings(url="https://chat.example.com", token="...")

        with APIClient(settings) as client:
            team = client.get_team_by_name("myteam")
            channel = client.get_channel_by_name(team.id, "town-square")
    """

    settings: ServerSettings

    _http_client: httpx.Client | None = field(default=None, repr=False)

    # -------------------------------------------------------------------------
    # Context Manager Protocol
    # -------------------------------------------------------------------------

    def __enter__(self) -> APIClient:
        self._http_client = httpx.Client(
            base_url=f"{self.settings.url}{API_PREFIX}",
            timeout=self.settings.timeout,
            headers=self._default_headers(),
        )
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._http_client:
            self._http_client.close()
            self._http_client = None

    @property
    def http_client(self) -> httpx.Client:
        """
        Get the HTTP client, ensuring it's been initialized.

        Raises:
            RuntimeError: If accessed outside of the context manager.
        """
        if self._http_client is None:
            raise RuntimeError(
                "APIClient must be used as a context manager. "
                "Use 'with APIClient(settings) as client:'"
            )
        return self._http_client

    def _default_headers(self) -> dict[str, str]:
        headers = {
            "X-Requested-With": "XMLHttpRequest",
            "User-Agent": f"collabctl/{__version__}",
        }
        if self.settings.token:
            headers["Authorization"] = f"Bearer {self.settings.token}"
        return headers

    @property
    def websocket_url(self) -> str:
        """WebSocket endpoint derived from the server URL (http -> ws, https -> wss)."""
        parts = urlsplit(self.settings.url)
        scheme = "wss" if parts.scheme == "https" else "ws"
        path = f"{parts.path.rstrip('/')}{API_PREFIX}/websocket"
        return urlunsplit((scheme, parts.netloc, path, "", ""))

    # -------------------------------------------------------------------------
    # Request Plumbing
    # -------------------------------------------------------------------------

    def _require_auth(self) -> None:
        """
        Verify that a token is configured.

        Raises:
            AuthenticationError: If no token is set.
        """
        if not self.settings.token:
            raise AuthenticationError(
                message="Not authenticated",
                status_code=401,
                detail="Set an access token with --token or COLLABCTL_ACCESS_TOKEN",
            )

    def _request(
        self,
        method: str,
        path: str,
        action: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """
        Perform one authenticated request and return the decoded JSON body.

        Args:
            method: HTTP method.
            path: Endpoint path relative to /api/v4.
            action: Short description used as the error message ("Failed to get post").
            params: Query string parameters.
            json: JSON request body.

        Raises:
            AuthenticationError: On 401/403 or when no token is configured.
            APIError: On transport failures, non-2xx responses or non-JSON bodies.
        """
        self._require_auth()

        logger.debug("%s %s%s params=%s", method, API_PREFIX, path, params)
        try:
            response = self.http_client.request(method, path, params=params, json=json)
        except httpx.TimeoutException as e:
            raise APIError(
                message=action,
                status_code=0,
                detail=f"Request to {self.settings.url} timed out after "
                f"{self.settings.timeout} seconds",
            ) from e
        except httpx.HTTPError as e:
            raise APIError(
                message=action,
                status_code=0,
                detail=f"Cannot connect to server at {self.settings.url}: {e}",
            ) from e

        if response.status_code == 401:
            raise AuthenticationError(
                message="Authentication failed",
                status_code=401,
                detail=_error_detail(response),
            )

        if response.status_code == 403:
            raise AuthenticationError(
                message="Permission denied",
                status_code=403,
                detail=_error_detail(response),
            )

        if not response.is_success:
            raise APIError(
                message=action,
                status_code=response.status_code,
                detail=_error_detail(response),
            )

        try:
            return response.json()
        except ValueError as e:
            # Response is not valid JSON (empty, HTML error page, proxy page, etc.)
            raise APIError(
                message=action,
                status_code=response.status_code,
                detail=f"Server returned invalid response (status {response.status_code}). "
                f"Check that the server is running at {self.settings.url}",
            ) from e

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def get_me(self) -> User:
        """Get the user the token belongs to."""
        return User.model_validate(self._request("GET", "/users/me", "Failed to get current user"))

    def get_user(self, user_id: str) -> User:
        data = self._request("GET", f"/users/{_segment(user_id)}", "Failed to get user")
        return User.model_validate(data)

    def get_user_by_username(self, username: str) -> User:
        data = self._request("GET", f"/users/username/{_segment(username)}", "Failed to get user")
        return User.model_validate(data)

    def get_user_by_email(self, email: str) -> User:
        data = self._request("GET", f"/users/email/{_segment(email)}", "Failed to get user")
        return User.model_validate(data)

    # -------------------------------------------------------------------------
    # Teams & Channels
    # -------------------------------------------------------------------------

    def get_team(self, team_id: str) -> Team:
        data = self._request("GET", f"/teams/{_segment(team_id)}", "Failed to get team")
        return Team.model_validate(data)

    def get_team_by_name(self, name: str) -> Team:
        data = self._request("GET", f"/teams/name/{_segment(name)}", "Failed to get team")
        return Team.model_validate(data)

    def get_channel(self, channel_id: str) -> Channel:
        data = self._request("GET", f"/channels/{_segment(channel_id)}", "Failed to get channel")
        return Channel.model_validate(data)

    def get_channel_by_name(
        self, team_id: str, name: str, include_deleted: bool = True
    ) -> Channel:
        """
        Look up a channel by its name within a team.

        Args:
            team_id: Id of the team that owns the channel.
            name: Channel name (not display name).
            include_deleted: Also match archived channels.
        """
        data = self._request(
            "GET",
            f"/teams/{_segment(team_id)}/channels/name/{_segment(name)}",
            "Failed to get channel",
            params={"include_deleted": str(include_deleted).lower()},
        )
        return Channel.model_validate(data)

    # -------------------------------------------------------------------------
    # Posts
    # -------------------------------------------------------------------------

    def get_post(self, post_id: str) -> Post:
        data = self._request("GET", f"/posts/{_segment(post_id)}", "Failed to get post")
        return Post.model_validate(data)

    def get_posts_for_channel(self, channel_id: str, page: int = 0, per_page: int = 60) -> PostList:
        """
        Get one page of a channel's posts, newest first.

        Args:
            channel_id: Channel to read.
            page: Zero-based page number.
            per_page: Page size.
        """
        data = self._request(
            "GET",
            f"/channels/{_segment(channel_id)}/posts",
            "Failed to get posts",
            params={"page": page, "per_page": per_page},
        )
        return PostList.model_validate(data)

    def create_post(self, post: Post, set_online: bool = False) -> Post:
        """
        Create a post.

        Args:
            post: Post to create; only channel_id, message and root_id are sent.
            set_online: Whether the server should mark the author as online.

        Returns:
            The post as stored by the server, with its id filled in.
        """
        data = self._request(
            "POST",
            "/posts",
            "Failed to create post",
            params={"set_online": str(set_online).lower()},
            json=post.to_create_payload(),
        )
        return Post.model_validate(data)

    # -------------------------------------------------------------------------
    # Statuses
    # -------------------------------------------------------------------------

    def get_user_status(self, user_id: str) -> Status:
        data = self._request("GET", f"/users/{_segment(user_id)}/status", "Failed to get status")
        return Status.model_validate(data)

    def get_user_statuses(self, user_ids: list[str]) -> list[Status]:
        """Get the statuses of several users in one call."""
        data = self._request(
            "POST", "/users/status/ids", "Failed to get statuses", json=list(user_ids)
        )
        return [Status.model_validate(item) for item in data or []]

    def update_user_status(self, status: Status) -> Status:
        """
        Set a user's status.

        Args:
            status: New status; user_id selects the user.
        """
        payload: dict[str, Any] = {
            "user_id": status.user_id,
            "status": status.status,
            "manual": status.manual,
        }
        if status.dnd_end_time:
            payload["dnd_end_time"] = status.dnd_end_time
        path = f"/users/{_segment(status.user_id)}/status"
        data = self._request("PUT", path, "Failed to update status", json=payload)
        return Status.model_validate(data)
