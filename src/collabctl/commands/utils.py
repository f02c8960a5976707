"""
Shared plumbing for command implementations.

- `with_client`: wraps a command function so it receives a ready API client
  and printer, and turns errors into an exit code.
- Argument resolvers that turn human-friendly references ("team:channel",
  usernames, emails) into server entities.
"""

from __future__ import annotations

import argparse
import functools
import logging
from collections.abc import Callable
from typing import TypeVar

from collabctl.api.client import APIClient, APIError, AuthenticationError
from collabctl.api.models import Channel, Team, User
from collabctl.api.websocket import EventStream
from collabctl.config import ClientConfig
from collabctl.printer import Printer

logger = logging.getLogger(__name__)

CommandFunc = Callable[[APIClient, Printer, argparse.Namespace], int | None]


class CommandError(Exception):
    """A command cannot proceed because of its input (not a server failure)."""


def with_client(func: CommandFunc) -> Callable[[argparse.Namespace], int]:
    """
    Adapt a ``func(client, printer, args)`` command to ``cmd(args) -> int``.

    The wrapper builds the API client and printer from ``args.config`` (set by
    the CLI entry point), flushes printer output on success and reports
    errors on stderr.

    Returns:
        0 on success, 1 on error
    """

    @functools.wraps(func)
    def wrapper(args: argparse.Namespace) -> int:
        config: ClientConfig = args.config
        printer = Printer(format=config.output.format, quiet=config.output.quiet)

        try:
            with APIClient(config.server) as client:
                result = func(client, printer, args)
        except (APIError, CommandError) as e:
            printer.flush()
            printer.print_error(f"Error: {e}")
            return 1

        printer.flush()
        return result or 0

    return wrapper


def init_event_stream(client: APIClient) -> EventStream:
    """Create an (unconnected) event stream for the client's server and token."""
    return EventStream(client.websocket_url, client.settings.token)


# ============================================================================
# ARGUMENT RESOLVERS
# ============================================================================

T = TypeVar("T")


def _lookup(lookup: Callable[[str], T], arg: str, what: str) -> T | None:
    """
    Run one lookup, mapping "not found"-style API errors to None.

    Authentication failures are re-raised: a bad token should be reported as
    such, not as a missing channel or user.
    """
    try:
        return lookup(arg)
    except AuthenticationError:
        raise
    except APIError as e:
        logger.debug("%s lookup for '%s' failed: %s", what, arg, e)
        return None


def get_team_from_team_arg(client: APIClient, team_arg: str) -> Team | None:
    """
    Resolve a team by name, falling back to treating the argument as an id.

    Returns:
        The team, or None if neither lookup succeeds.
    """
    team = _lookup(client.get_team_by_name, team_arg, "Team name")
    if team is None:
        team = _lookup(client.get_team, team_arg, "Team id")
    return team


def get_channel_from_channel_arg(client: APIClient, channel_arg: str) -> Channel | None:
    """
    Resolve a "team:channel" reference (or a bare channel id).

    For "team:channel" the channel is looked up by name inside the team,
    including archived channels; if that fails the part after the colon is
    tried as a channel id.

    Returns:
        The channel, or None if it cannot be found.
    """
    team_arg, sep, channel_part = channel_arg.partition(":")
    if not sep:
        return _lookup(client.get_channel, channel_arg, "Channel id")

    if not team_arg or not channel_part:
        return None

    team = get_team_from_team_arg(client, team_arg)
    if team is None:
        return None

    channel = _lookup(
        functools.partial(client.get_channel_by_name, team.id, include_deleted=True),
        channel_part,
        "Channel name",
    )
    if channel is None:
        channel = _lookup(client.get_channel, channel_part, "Channel id")
    return channel


def get_user_from_user_arg(client: APIClient, user_arg: str) -> User | None:
    """
    Resolve a user by username, then email (if it looks like one), then id.

    Returns:
        The user, or None if no lookup succeeds.
    """
    lookups: list[tuple[Callable[[str], User], str]] = [(client.get_user_by_username, "Username")]
    if "@" in user_arg:
        lookups.append((client.get_user_by_email, "Email"))
    lookups.append((client.get_user, "User id"))

    for lookup, what in lookups:
        user = _lookup(lookup, user_arg, what)
        if user is not None:
            return user
    return None


def print_group_help(parser: argparse.ArgumentParser) -> int:
    """Default action for a command group invoked without a subcommand."""
    parser.print_help()
    return 0
