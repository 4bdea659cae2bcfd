"""OAuth 2.0 scopes for the X API and their wire encoding.

A set of scopes is represented by the :class:`Scope` flag type; any
combination of members is a valid set and :attr:`Scope.NONE` is the empty
set. On the wire scopes travel as a space-separated list of dot-separated
names (``"tweet.read users.read offline.access"``).

The mapping between flags and wire names is the explicit
:data:`SCOPE_TABLE`, which also fixes the canonical order used by
:func:`format_scopes`. Member names are never used for encoding.

See Also:
    https://docs.x.com/resources/fundamentals/authentication/oauth-2-0/authorization-code
"""

from __future__ import annotations

import enum
import functools
import operator

from xauth.exceptions import InvalidScopeError


class Scope(enum.IntFlag):
    """Capability flags an X OAuth 2.0 token can be granted."""

    NONE = 0
    TWEET_READ = 1
    TWEET_WRITE = 1 << 1
    TWEET_MODERATE_WRITE = 1 << 2
    USERS_READ = 1 << 3
    FOLLOWS_READ = 1 << 4
    FOLLOWS_WRITE = 1 << 5
    OFFLINE_ACCESS = 1 << 6
    SPACE_READ = 1 << 7
    MUTE_READ = 1 << 8
    MUTE_WRITE = 1 << 9
    LIKE_READ = 1 << 10
    LIKE_WRITE = 1 << 11
    LIST_READ = 1 << 12
    LIST_WRITE = 1 << 13
    BLOCK_READ = 1 << 14
    BLOCK_WRITE = 1 << 15
    BOOKMARK_READ = 1 << 16
    BOOKMARK_WRITE = 1 << 17
    MEDIA_WRITE = 1 << 18


SCOPE_TABLE: tuple[tuple[Scope, str], ...] = (
    (Scope.TWEET_READ, "tweet.read"),
    (Scope.TWEET_WRITE, "tweet.write"),
    (Scope.TWEET_MODERATE_WRITE, "tweet.moderate.write"),
    (Scope.USERS_READ, "users.read"),
    (Scope.FOLLOWS_READ, "follows.read"),
    (Scope.FOLLOWS_WRITE, "follows.write"),
    (Scope.OFFLINE_ACCESS, "offline.access"),
    (Scope.SPACE_READ, "space.read"),
    (Scope.MUTE_READ, "mute.read"),
    (Scope.MUTE_WRITE, "mute.write"),
    (Scope.LIKE_READ, "like.read"),
    (Scope.LIKE_WRITE, "like.write"),
    (Scope.LIST_READ, "list.read"),
    (Scope.LIST_WRITE, "list.write"),
    (Scope.BLOCK_READ, "block.read"),
    (Scope.BLOCK_WRITE, "block.write"),
    (Scope.BOOKMARK_READ, "bookmark.read"),
    (Scope.BOOKMARK_WRITE, "bookmark.write"),
    (Scope.MEDIA_WRITE, "media.write"),
)
"""Canonical ``(flag, wire name)`` pairs, in serialization order."""

_BY_NAME: dict[str, Scope] = {name: flag for flag, name in SCOPE_TABLE}

ALL_SCOPES: Scope = functools.reduce(
    operator.or_, (flag for flag, _ in SCOPE_TABLE), Scope.NONE
)

DEFAULT_SCOPES: Scope = Scope.TWEET_READ | Scope.TWEET_WRITE | Scope.USERS_READ
"""Scopes requested when the caller does not choose any."""


def format_scopes(scopes: Scope) -> str:
    """Serialize *scopes* to the space-separated wire form.

    Flags are emitted in :data:`SCOPE_TABLE` order so the output is
    canonical regardless of how the set was built.

    Args:
        scopes: Any combination of :class:`Scope` flags.

    Returns:
        The wire string, or ``""`` for :attr:`Scope.NONE`.
    """
    return " ".join(name for flag, name in SCOPE_TABLE if scopes & flag)


def parse_scopes(text: str | None) -> Scope:
    """Parse a space-separated scope string into a :class:`Scope` set.

    Tokens may appear in any order and may be separated by any run of
    whitespace. Duplicates are harmless.

    Args:
        text: The wire string (e.g. ``"tweet.write users.read"``).
            ``None``, empty and blank strings parse to :attr:`Scope.NONE`.

    Returns:
        The combined flags.

    Raises:
        InvalidScopeError: If any token is not a known scope name.
    """
    result = Scope.NONE
    if not text:
        return result
    for token in text.split():
        flag = _BY_NAME.get(token)
        if flag is None:
            raise InvalidScopeError(token)
        result |= flag
    return result
