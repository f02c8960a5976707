"""Builders for server payloads used across test modules."""

from collabctl.api.models import Post, PostList


def make_post_list(*posts: Post) -> PostList:
    """
    Build a PostList the way the server returns it: newest first.

    Posts are passed oldest first for readability.
    """
    ordered = list(reversed(posts))
    return PostList(
        order=[p.id for p in ordered],
        posts={p.id: p for p in ordered},
    )
