"""Exceptions raised by list management and item reconciliation."""

from __future__ import annotations


class MedialistError(Exception):
    """Base class for client-visible list failures."""


class PermissionDenied(MedialistError):
    """The acting actor may not perform the requested mutation."""


class ActorNotFound(PermissionDenied):
    """A delegated actor id did not resolve to a known actor."""

    def __init__(self, actor_id: int):
        super().__init__("actor not found")
        self.actor_id = actor_id


class InsufficientDetail(MedialistError):
    """An item descriptor carried neither a name nor a resolvable identifier."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message or "insufficient detail — need a name or a resolvable identifier"
        )


class ListValidationError(MedialistError):
    """List creation payload was rejected."""


class NotFound(MedialistError):
    """A required list or actor does not exist."""


class UpstreamFailure(MedialistError):
    """The external metadata provider failed or timed out."""
