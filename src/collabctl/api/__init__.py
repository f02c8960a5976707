"""
API client modules for collabctl.

This package contains the HTTP client for the server's v4 REST API (httpx),
the WebSocket event stream (websockets) and the pydantic models both of them
return.

Example:
    from collabctl.api import APIClient, APIError

    with APIClient(config.server) as client:
        channel = client.get_channel(channel_id)
"""

from collabctl.api.client import (
    APIClient,
    APIError,
    AuthenticationError,
)
from collabctl.api.websocket import EventStream

__all__ = [
    "APIClient",
    "APIError",
    "AuthenticationError",
    "EventStream",
]
