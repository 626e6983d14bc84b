"""Exception hierarchy for reqwrap.

All exceptions inherit from :class:`ReqwrapError` so callers can catch every
failure raised by the library in one place.

Subclass hierarchy::

    ReqwrapError
    +-- ConfigError
    +-- CacheUnavailable
    +-- RequestTimeout
    +-- UnexpectedStatus
    +-- RequestFailed

Only :class:`RequestFailed` reaches callers of
:meth:`~reqwrap.client.base.BaseClient.request` after the retry loop gives
up; the error that ended the last attempt is available as ``cause``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reqwrap.models import Response


class ReqwrapError(Exception):
    """Base exception for all reqwrap errors."""


class ConfigError(ReqwrapError):
    """Raised for configuration problems (bad cache backend selection, invalid config files)."""


class CacheUnavailable(ReqwrapError):
    """Raised when a cache operation is attempted with no cache client bound."""

    def __init__(self, message: str = "No cache client available") -> None:
        super().__init__(message)


class RequestTimeout(ReqwrapError):
    """Raised when a transport call does not finish before its deadline.

    Args:
        timeout: The configured deadline in milliseconds.
    """

    def __init__(self, timeout: float) -> None:
        super().__init__(f"timeout of {timeout}ms exceeded")
        self.timeout = timeout


class UnexpectedStatus(ReqwrapError):
    """Raised when a response status is not one of the call's expected statuses."""

    def __init__(self, status: int, response: Response | None = None) -> None:
        super().__init__(f"Unexpected response status: {status}")
        self.status = status
        self.response = response


class RequestFailed(ReqwrapError):
    """Raised when a request has failed on every allowed attempt.

    The message is the message of the last underlying error, which is
    also chained as ``__cause__``.

    Args:
        cause: The error raised by the last attempt.
        attempts: How many attempts were made.
    """

    def __init__(self, cause: BaseException, attempts: int = 1) -> None:
        super().__init__(str(cause))
        self.cause = cause
        self.attempts = attempts
