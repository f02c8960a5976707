"""
Post management commands.

- post create: create a post in a channel, optionally as a reply
- post list:   print the latest posts of a channel, optionally following
               new ones as they are posted

Usage:
    collabctl post create myteam:mychannel --message "some text for the post"
    collabctl post list myteam:mychannel --number 20 --show-ids
    collabctl post list myteam:mychannel --follow
"""

from __future__ import annotations

import argparse
import logging

from collabctl.api.client import APIClient, APIError
from collabctl.api.models import EVENT_POSTED, Channel, Post, post_from_event
from collabctl.commands.utils import (
    CommandError,
    get_channel_from_channel_arg,
    init_event_stream,
    print_group_help,
    with_client,
)
from collabctl.printer import Printer

logger = logging.getLogger(__name__)

DEFAULT_LIST_NUMBER = 20

POST_TEMPLATE = "\x1b[34;1m[{username}]\x1b[0m {message}"
POST_TEMPLATE_WITH_ID = "\x1b[31m{id}\x1b[0m \x1b[34;1m[{username}]\x1b[0m {message}"


def _require_channel(client: APIClient, channel_arg: str) -> Channel:
    channel = get_channel_from_channel_arg(client, channel_arg)
    if channel is None:
        raise CommandError(f"Unable to find channel '{channel_arg}'")
    return channel


# ============================================================================
# POST CREATE
# ============================================================================


def post_create(client: APIClient, printer: Printer, args: argparse.Namespace) -> int:
    """
    Create a post.

    When replying to a post that is itself part of a thread, the new post is
    attached to that thread's root.

    Returns:
        0 on success (errors are raised and reported by `with_client`)
    """
    message = args.message or ""
    if not message:
        raise CommandError("message cannot be empty")

    root_id = ""
    if args.reply_to:
        reply_to_post = client.get_post(args.reply_to)
        root_id = reply_to_post.root_id or reply_to_post.id

    channel = _require_channel(client, args.channel)

    post = Post(channel_id=channel.id, message=message, root_id=root_id)
    try:
        created = client.create_post(post, set_online=False)
    except APIError as e:
        raise CommandError(f"could not create post: {e}") from e

    logger.info("Created post %s in channel %s", created.id, channel.id)
    return 0


# ============================================================================
# POST LIST
# ============================================================================


def resolve_username(client: APIClient, user_id: str, usernames: dict[str, str]) -> str:
    """
    Return the username for a user id, using and filling the cache.

    If the user cannot be looked up the id itself is returned and nothing is
    cached, so a later post by the same user retries the lookup.
    """
    if usernames.get(user_id):
        return usernames[user_id]

    try:
        user = client.get_user(user_id)
    except APIError as e:
        logger.debug("Unable to resolve user %s: %s", user_id, e)
        return user_id

    usernames[user_id] = user.username
    return user.username


def print_post(
    client: APIClient,
    printer: Printer,
    post: Post,
    usernames: dict[str, str],
    show_ids: bool,
) -> None:
    """Queue one post on the printer as ``[username] message``."""
    username = resolve_username(client, post.user_id, usernames)
    template = POST_TEMPLATE_WITH_ID if show_ids else POST_TEMPLATE
    printer.print_template(template, post, username=username)


def follow_channel(
    client: APIClient,
    printer: Printer,
    channel_id: str,
    usernames: dict[str, str],
    show_ids: bool,
) -> None:
    """
    Print new posts of a channel as they arrive on the event stream.

    Blocks until the stream ends. Events for other channels and events that
    are not new posts are ignored; a post that cannot be decoded is reported
    and skipped.
    """
    with init_event_stream(client) as stream:
        for event in stream.events():
            if event.event != EVENT_POSTED:
                continue

            try:
                post = post_from_event(event)
            except ValueError as e:
                printer.print_error(f"Error parsing incoming post: {e}")
                continue

            if post.channel_id != channel_id:
                continue

            print_post(client, printer, post, usernames, show_ids)
            printer.flush()


def post_list(client: APIClient, printer: Printer, args: argparse.Namespace) -> int:
    """
    List the latest posts of a channel, oldest first.

    With ``--follow`` the command keeps running after the listing and prints
    every new post in the channel until interrupted (Ctrl+C).

    Returns:
        0 on success or interruption
    """
    printer.single = True

    channel = _require_channel(client, args.channel)

    post_list_page = client.get_posts_for_channel(channel.id, 0, args.number)

    usernames: dict[str, str] = {}
    for post in reversed(post_list_page.to_list()):
        print_post(client, printer, post, usernames, args.show_ids)

    if not args.follow:
        return 0

    printer.flush()
    try:
        follow_channel(client, printer, channel.id, usernames, args.show_ids)
    except KeyboardInterrupt:
        logger.debug("Follow interrupted")
    return 0


# ============================================================================
# PARSER REGISTRATION
# ============================================================================


def register(subparsers: argparse._SubParsersAction) -> None:
    """Add the ``post`` command group to the top-level subparsers."""
    post_parser = subparsers.add_parser(
        "post",
        help="Management of posts",
        description="Management of posts",
    )
    post_parser.set_defaults(func=lambda args: print_group_help(post_parser))
    post_subparsers = post_parser.add_subparsers(dest="post_command")

    create_parser = post_subparsers.add_parser(
        "create",
        help="Create a post",
        description="Create a post",
        epilog=(
            "Example:\n"
            '  collabctl post create myteam:mychannel --message "some text for the post"'
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    create_parser.add_argument("channel", help="Channel as team:channel, or a channel id")
    create_parser.add_argument("--message", "-m", default="", help="Message for the post")
    create_parser.add_argument("--reply-to", "-r", default="", help="Post id to reply to")
    create_parser.set_defaults(func=with_client(post_create))

    list_parser = post_subparsers.add_parser(
        "list",
        help="List posts for a channel",
        description="List posts for a channel",
        epilog=(
            "Examples:\n"
            "  collabctl post list myteam:mychannel\n"
            "  collabctl post list myteam:mychannel --number 20"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    list_parser.add_argument("channel", help="Channel as team:channel, or a channel id")
    list_parser.add_argument(
        "--number",
        "-n",
        type=int,
        default=DEFAULT_LIST_NUMBER,
        help=f"Number of messages to list (default: {DEFAULT_LIST_NUMBER})",
    )
    list_parser.add_argument("--show-ids", "-i", action="store_true", help="Show posts ids")
    list_parser.add_argument(
        "--follow",
        "-f",
        action="store_true",
        help="Output appended data as new messages are posted to the channel",
    )
    list_parser.set_defaults(func=with_client(post_list))