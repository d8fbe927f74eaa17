"""Error taxonomy shared by the client stores.

None of these escape a store: each store catches them and exposes the
message through its ``error`` attribute.
"""
from __future__ import annotations

NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."


class PhotoDeskError(Exception):
    """Base class for client-side errors."""


class ValidationError(PhotoDeskError):
    """Local pre-flight rejection. Never reaches the remote gateway."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class RemoteFailure(PhotoDeskError):
    """The remote call completed with ``success=false``."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TransportError(RemoteFailure):
    """Network or timeout failure, reported like a remote failure."""

    def __init__(self, message: str = NETWORK_ERROR_MESSAGE) -> None:
        super().__init__(message)


class PartialFailure(RemoteFailure):
    """Some sub-calls of a batch failed."""

    def __init__(self, failed: int, total: int, verb: str = "delete") -> None:
        super().__init__(f"Failed to {verb} {failed} images")
        self.failed = failed
        self.total = total
