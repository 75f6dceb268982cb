"""Exceptions raised by the sync engine and its store client.

``SyncError`` is the base class. Polling loops absorb every subclass at the
scheduler boundary; only :meth:`ChatSession.send` lets them reach the caller.
"""


class SyncError(RuntimeError):
    """Base exception for message store and sync failures."""


class TransportError(SyncError):
    """The store could not be reached or answered with a server error.

    Non-fatal for polling loops: the next scheduled tick retries.
    """


class ValidationError(SyncError, ValueError):
    """A request was rejected locally before reaching the store (e.g. empty body)."""


class NotFoundError(SyncError):
    """The conversation target or message no longer exists in the store."""


class AccessDeniedError(SyncError):
    """The store refused the request for the current actor (401/403)."""
