# errors.py
from typing import Optional


class ChatClientError(Exception):
    """Base class for every error the client reports to the user."""


class ConfigError(ChatClientError):
    """The local token file is missing or unreadable."""


class TerminalUnavailable(ChatClientError):
    """Standard input is not a TTY, or its mode could not be changed."""


class InputError(ChatClientError):
    """Reading from standard input failed or hit end of stream."""


class ValidationError(ChatClientError):
    """User-supplied text failed a local check."""


class RemoteError(ChatClientError):
    """The backend (or the connection to it) reported a failure."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class AmbiguousResponse(RemoteError):
    """A success status came back with a body that could not be decoded.

    The request may or may not have taken effect, so it is never reported
    as a plain success.
    """
