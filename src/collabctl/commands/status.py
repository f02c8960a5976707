"""
User status commands.

- status get: show the presence status of one or more users
- status set: set a user's status (online, away, dnd, offline)

Usage:
    collabctl status get alice bob@example.com
    collabctl status set alice dnd --dnd-end-time 1767225600
"""

from __future__ import annotations

import argparse

from collabctl.api.client import APIClient
from collabctl.api.models import SETTABLE_STATUSES, STATUS_DND, STATUS_OFFLINE, Status, User
from collabctl.commands.utils import (
    CommandError,
    get_user_from_user_arg,
    print_group_help,
    with_client,
)
from collabctl.printer import Printer, format_timestamp

STATUS_TEMPLATE = "{username}: {status}{manual_flag} (last activity: {last_activity})"


def _require_user(client: APIClient, user_arg: str) -> User:
    user = get_user_from_user_arg(client, user_arg)
    if user is None:
        raise CommandError(f"Unable to find user '{user_arg}'")
    return user


def _print_status(printer: Printer, status: Status, username: str) -> None:
    printer.print_template(
        STATUS_TEMPLATE,
        status.to_public_dict(),
        username=username,
        manual_flag=" (manual)" if status.manual else "",
        last_activity=format_timestamp(status.last_activity_at),
    )


def status_get(client: APIClient, printer: Printer, args: argparse.Namespace) -> int:
    """
    Print the status of every user given on the command line.

    All users are resolved first so a typo fails before any status is fetched.
    Users the server returns no status for are shown as offline.
    """
    users = [_require_user(client, user_arg) for user_arg in args.users]

    statuses = {s.user_id: s for s in client.get_user_statuses([u.id for u in users])}
    for user in users:
        status = statuses.get(user.id) or Status(user_id=user.id, status=STATUS_OFFLINE)
        _print_status(printer, status, user.username)
    return 0


def status_set(client: APIClient, printer: Printer, args: argparse.Namespace) -> int:
    """
    Set a user's status manually.

    ``--dnd-end-time`` (unix seconds) only applies to ``dnd``.
    """
    if args.dnd_end_time and args.status != STATUS_DND:
        raise CommandError("--dnd-end-time can only be used with the 'dnd' status")

    user = _require_user(client, args.user)

    requested = Status(
        user_id=user.id,
        status=args.status,
        manual=True,
        dnd_end_time=args.dnd_end_time or 0,
    )
    updated = client.update_user_status(requested)

    printer.single = True
    _print_status(printer, updated, user.username)
    return 0


# ============================================================================
# PARSER REGISTRATION
# ============================================================================


def register(subparsers: argparse._SubParsersAction) -> None:
    """Add the ``status`` command group to the top-level subparsers."""
    status_parser = subparsers.add_parser(
        "status",
        help="Management of user statuses",
        description="Show or change user presence statuses",
    )
    status_parser.set_defaults(func=lambda args: print_group_help(status_parser))
    status_subparsers = status_parser.add_subparsers(dest="status_command")

    get_parser = status_subparsers.add_parser(
        "get",
        help="Show user statuses",
        description="Show the status of one or more users (username, email or id)",
    )
    get_parser.add_argument("users", nargs="+", metavar="user", help="Username, email or user id")
    get_parser.set_defaults(func=with_client(status_get))

    set_parser = status_subparsers.add_parser(
        "set",
        help="Set a user's status",
        description="Set a user's status manually",
    )
    set_parser.add_argument("user", help="Username, email or user id")
    set_parser.add_argument("status", choices=SETTABLE_STATUSES, help="New status")
    set_parser.add_argument(
        "--dnd-end-time",
        type=int,
        default=0,
        help="Unix time (seconds) at which Do Not Disturb ends",
    )
    set_parser.set_defaults(func=with_client(status_set))
