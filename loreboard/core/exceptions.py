"""Error taxonomy shared by the page controllers.

Nothing here is fatal to a page: controllers catch these and render the
message inline next to the action that failed.
"""
from typing import Optional


class LoreBoardError(Exception):
    """Base class for errors a controller can show to the user."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(LoreBoardError):
    """User-correctable input problem, raised before any network call."""


class CollaboratorError(LoreBoardError):
    """The hosted auth/data service rejected a request or could not be reached."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        self.status = status
        super().__init__(message)

    @classmethod
    def from_exception(cls, exc: Exception, fallback: str = "Something went wrong. Please try again."):
        """Keep the service's own message when it has one."""
        if isinstance(exc, CollaboratorError):
            return exc
        message = getattr(exc, "message", None) or str(exc) or fallback
        return cls(message, status=getattr(exc, "status", None))


class FetchError(CollaboratorError):
    """A read of a post scope failed."""


class LocalResourceError(LoreBoardError):
    """A device-local resource (file, durable store) could not be used."""


class StorageQuotaError(LocalResourceError):
    """A durable store write would exceed the device quota."""
