"""Claude Code client package for programmatic Claude CLI interaction."""

from .client import ClaudeCodeClient
from .errors import (
    ClaudeCodeError,
    ErrorKind,
    authentication_error,
    configuration_error,
    session_error,
)
from .models import (
    ChunkType,
    ClaudeCodeConfig,
    ClaudeCodeResponse,
    OutputFormat,
    ResponseMetadata,
    SessionInfo,
    StreamChunk,
)
from .stream import parse_stream_line

__all__ = [
    "ClaudeCodeClient",
    "ClaudeCodeConfig",
    "ClaudeCodeError",
    "ClaudeCodeResponse",
    "ChunkType",
    "ErrorKind",
    "OutputFormat",
    "ResponseMetadata",
    "SessionInfo",
    "StreamChunk",
    "authentication_error",
    "configuration_error",
    "parse_stream_line",
    "session_error",
]
