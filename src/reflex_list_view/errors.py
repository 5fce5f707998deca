"""Exception types raised or reported by the list view."""

from typing import Any

GENERIC_ERROR_MESSAGE: str = "An unexpected error occurred."


class ListViewError(Exception):
    """Base class for list view errors.  ``message`` is user-presentable."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(ListViewError, ValueError):
    """The list view is configured in a way that makes loading impossible."""


class ServiceBusinessError(ListViewError):
    """The service answered, but reported ``success: false``."""


class TransportError(ListViewError):
    """The call to an external service itself failed."""


def extract_error_message(error: Any, fallback: str = GENERIC_ERROR_MESSAGE) -> str:
    """Pull a human-readable message out of whatever a service raised.

    Checks, in order: a plain string, a structured ``body`` (mapping or
    object) carrying ``message``, a ``message`` attribute, and the first
    exception argument.

    Args:
        error: The raised exception or error payload.
        fallback: Message used when nothing better is available.

    Returns:
        A non-empty message string.
    """
    if isinstance(error, str):
        return error or fallback

    body = getattr(error, "body", None)
    if isinstance(body, dict):
        message = body.get("message")
    else:
        message = getattr(body, "message", None)
    if message:
        return str(message)

    message = getattr(error, "message", None)
    if message:
        return str(message)

    args = getattr(error, "args", None)
    if args and isinstance(args[0], str) and args[0]:
        return args[0]
    return fallback
