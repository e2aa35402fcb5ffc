"""Error type raised by the Claude Code client."""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Category of a client failure."""
    GENERAL = "general"
    AUTHENTICATION = "authentication"
    CONFIGURATION = "configuration"
    SESSION = "session"


_DEFAULT_CODES = {
    ErrorKind.AUTHENTICATION: "AUTH_ERROR",
    ErrorKind.CONFIGURATION: "CONFIG_ERROR",
    ErrorKind.SESSION: "SESSION_ERROR",
}


class ClaudeCodeError(Exception):
    """Failure talking to the Claude CLI.

    Attributes:
        kind: What went wrong (see ErrorKind).
        code: Machine-readable code, derived from the kind unless given.
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.GENERAL,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.code = code if code is not None else _DEFAULT_CODES.get(kind)

    def __repr__(self) -> str:
        return f"ClaudeCodeError(kind={self.kind.name}, message={self.message!r})"


def authentication_error(message: str = "Authentication failed") -> ClaudeCodeError:
    return ClaudeCodeError(message, ErrorKind.AUTHENTICATION)


def configuration_error(message: str = "Configuration error") -> ClaudeCodeError:
    return ClaudeCodeError(message, ErrorKind.CONFIGURATION)


def session_error(message: str = "Session error") -> ClaudeCodeError:
    return ClaudeCodeError(message, ErrorKind.SESSION)
