"""Exception types raised by journal collaborators."""

from __future__ import annotations


class XRPaperError(Exception):
    """Base error for the journal application."""


class StoreError(XRPaperError):
    """Level or snapshot store operation failed."""


class AuthError(XRPaperError):
    """Sign-in failed or the auth provider rejected the request."""


class AuthRequiredError(AuthError):
    """Operation needs a signed-in user but no session exists."""


class SnapshotNotFoundError(StoreError):
    """No snapshot exists for the requested identifier."""
