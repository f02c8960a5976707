"""
WebSocket event stream for the collaboration server.

The server pushes events (new posts, status changes, ...) over a single
WebSocket at /api/v4/websocket. After connecting, the client authenticates by
sending an ``authentication_challenge`` action carrying its token; the server
answers with a reply frame (``seq_reply``) and then starts sending events.

Usage:
    with EventStream(client.websocket_url, token) as stream:
        for event in stream.events():
            if event.event == "posted":
                ...

There is no reconnection: when the connection drops the iteration ends (clean
close) or raises APIError (abnormal close).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError
from websockets.exceptions import ConnectionClosedError, WebSocketException
from websockets.sync.client import ClientConnection, connect

from collabctl.api.client import APIError, AuthenticationError
from collabctl.api.models import WebSocketEvent

logger = logging.getLogger(__name__)

AUTHENTICATION_CHALLENGE = "authentication_challenge"

# Default time allowed for the opening handshake, in seconds.
DEFAULT_OPEN_TIMEOUT = 10.0


@dataclass
class EventStream:
    """
    One persistent, authenticated event-stream connection.

    Attributes:
        url: ws:// or wss:// endpoint (see APIClient.websocket_url).
        token: Access token used for the authentication challenge.
        open_timeout: Seconds allowed for the opening handshake.
    """

    url: str
    token: str = field(repr=False)
    open_timeout: float = DEFAULT_OPEN_TIMEOUT

    _connection: ClientConnection | None = field(default=None, repr=False)
    _seq: int = field(default=0, repr=False)
    _auth_seq: int | None = field(default=None, repr=False)

    def __enter__(self) -> EventStream:
        self.connect()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    @property
    def connection(self) -> ClientConnection:
        if self._connection is None:
            raise RuntimeError("EventStream is not connected; call connect() first")
        return self._connection

    def connect(self) -> None:
        """
        Open the connection and send the authentication challenge.

        Raises:
            APIError: If the connection cannot be established.
        """
        logger.debug("Connecting to event stream at %s", self.url)
        try:
            self._connection = connect(
                self.url,
                additional_headers={"Authorization": f"Bearer {self.token}"},
                open_timeout=self.open_timeout,
            )
        except (OSError, TimeoutError, WebSocketException) as e:
            raise APIError(
                message="Unable to connect to event stream",
                status_code=0,
                detail=f"{self.url}: {e}",
            ) from e

        self._auth_seq = self.send_action(AUTHENTICATION_CHALLENGE, {"token": self.token})

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def send_action(self, action: str, data: dict[str, Any] | None = None) -> int:
        """
        Send one client action and return the sequence number it was sent with.
        """
        self._seq += 1
        frame = {"seq": self._seq, "action": action, "data": data or {}}
        self.connection.send(json.dumps(frame))
        return self._seq

    def _handle_reply(self, frame: dict[str, Any]) -> None:
        """Process a reply to one of our own actions."""
        status = frame.get("status")
        if frame.get("seq_reply") == self._auth_seq and status != "OK":
            error = frame.get("error") or {}
            raise AuthenticationError(
                message="Event stream authentication failed",
                status_code=401,
                detail=str(error.get("message", "")) if isinstance(error, dict) else str(error),
            )
        logger.debug("Reply to action %s: %s", frame.get("seq_reply"), status)

    def events(self) -> Iterator[WebSocketEvent]:
        """
        Yield server events until the connection closes.

        Reply frames are consumed internally; frames that cannot be decoded are
        logged and skipped.

        Raises:
            AuthenticationError: If the server rejects the authentication challenge.
            APIError: If the connection closes abnormally.
        """
        try:
            for message in self.connection:
                try:
                    frame = json.loads(message)
                except ValueError:
                    logger.warning("Skipping undecodable event frame: %r", message[:200])
                    continue

                if not isinstance(frame, dict):
                    logger.warning("Skipping non-object event frame: %r", frame)
                    continue

                if "seq_reply" in frame:
                    self._handle_reply(frame)
                    continue

                try:
                    event = WebSocketEvent.model_validate(frame)
                except ValidationError as e:
                    logger.warning("Skipping malformed event: %s", e)
                    continue
                yield event
        except ConnectionClosedError as e:
            raise APIError(
                message="Event stream closed",
                status_code=0,
                detail=str(e),
            ) from e
