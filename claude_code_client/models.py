"""Data models for the Claude Code client."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, TypedDict, Union

from .errors import configuration_error


class OutputFormat(Enum):
    """Output formats understood by `claude --output-format`."""
    TEXT = "text"
    JSON = "json"
    STREAM_JSON = "stream-json"


class ChunkType(Enum):
    """Kind of a streamed chunk."""
    CONTENT = "content"
    METADATA = "metadata"
    ERROR = "error"


@dataclass(frozen=True)
class ClaudeCodeConfig:
    """Configuration for the Claude Code client.

    Instances are never mutated; the client swaps in a merged copy when
    its configuration is updated.
    """
    api_key: Optional[str] = None
    claude_path: Optional[str] = None  # Looked up on PATH when unset
    system_prompt: Optional[str] = None
    output_format: Optional[OutputFormat] = None
    allowed_tools: Optional[list[str]] = None
    mcp_config: Optional[str] = None  # Path to an MCP config file
    permission_prompt_tool: Optional[str] = None

    def __post_init__(self):
        if self.output_format is not None and not isinstance(self.output_format, OutputFormat):
            try:
                fmt = OutputFormat(self.output_format)
            except ValueError:
                raise configuration_error(
                    f"Unknown output format: {self.output_format!r}"
                ) from None
            object.__setattr__(self, "output_format", fmt)


@dataclass
class ResponseMetadata:
    """Extra details some CLI versions attach to a response."""
    tools_used: Optional[list[str]] = None
    tokens_used: Optional[int] = None
    timestamp: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResponseMetadata":
        return cls(
            tools_used=data.get("toolsUsed", data.get("tools_used")),
            tokens_used=data.get("tokensUsed", data.get("tokens_used")),
            timestamp=data.get("timestamp"),
        )


@dataclass
class ClaudeCodeResponse:
    """Result of a single-shot call.

    `content` and `session_id` are the normalized fields. The remaining
    fields mirror the CLI's raw JSON keys and are only set in JSON mode.
    """
    content: str
    session_id: Optional[str] = None
    metadata: Optional[ResponseMetadata] = None
    type: Optional[str] = None
    subtype: Optional[str] = None
    cost_usd: Optional[float] = None
    is_error: Optional[bool] = None
    duration_ms: Optional[int] = None
    duration_api_ms: Optional[int] = None
    num_turns: Optional[int] = None
    result: Optional[str] = None
    total_cost: Optional[float] = None


@dataclass
class StreamChunk:
    """One unit of a streamed response."""
    type: ChunkType
    data: Union[str, Any]


class SessionInfo(TypedDict, total=False):
    """A session record as reported by `claude --list-sessions`."""
    id: str
    createdAt: str
    lastActive: str
    messageCount: int
