"""Command groups; each module exposes ``register(subparsers)``."""

from collabctl.commands import post, status

COMMAND_GROUPS = (post, status)

__all__ = ["COMMAND_GROUPS"]
