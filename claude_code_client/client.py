"""Client that drives the Claude Code CLI as a subprocess."""

import asyncio
import dataclasses
import json
import logging
import os
import shutil
from typing import AsyncIterator, Optional

from .errors import ClaudeCodeError, authentication_error, configuration_error, session_error
from .models import (
    ClaudeCodeConfig,
    ClaudeCodeResponse,
    OutputFormat,
    ResponseMetadata,
    SessionInfo,
    StreamChunk,
)
from .stream import iter_lines, parse_stream_line

logger = logging.getLogger(__name__)

API_KEY_ENV = 'ANTHROPIC_API_KEY'
CLAUDE_EXECUTABLE = 'claude'
DEFAULT_TIMEOUT = 60.0


class ClaudeCodeClient:
    """Client for interacting with Claude Code through its CLI.

    Every call spawns its own `claude` process; nothing is shared between
    calls except the configuration and the resolved executable path.
    """

    def __init__(self, config: ClaudeCodeConfig = None, *, timeout: float = DEFAULT_TIMEOUT):
        """Initialize the client.

        Args:
            config: Configuration options. Unset fields fall back to defaults:
                JSON output and the ANTHROPIC_API_KEY environment variable.
            timeout: Seconds a single-shot call may run before the CLI is killed.

        Raises:
            ClaudeCodeError: With kind AUTHENTICATION if no API key is available.
        """
        config = config or ClaudeCodeConfig()
        self.config = dataclasses.replace(
            config,
            api_key=config.api_key or os.environ.get(API_KEY_ENV),
            output_format=config.output_format or OutputFormat.JSON,
        )
        if not self.config.api_key:
            raise authentication_error(
                f'API key is required. Set {API_KEY_ENV} environment variable '
                'or pass api_key in config.'
            )

        self.timeout = timeout
        self._claude_path: Optional[str] = self.config.claude_path
        self.session_id: Optional[str] = None  # Most recent session, for continue_chat

    async def ensure_claude_path(self) -> str:
        """Resolve the CLI executable, caching the result.

        Raises:
            ClaudeCodeError: With kind CONFIGURATION if `claude` is not on PATH.
        """
        if not self._claude_path:
            self._claude_path = self._find_claude_path()
            logger.debug(f'Resolved Claude CLI at {self._claude_path}')
        return self._claude_path

    def _find_claude_path(self) -> str:
        path = shutil.which(CLAUDE_EXECUTABLE)
        if path is None:
            raise configuration_error(
                'Claude CLI not found in PATH. Please specify claude_path in config '
                'or install Claude CLI.'
            )
        return path

    def build_command(
        self,
        text: str,
        session_id: Optional[str] = None,
        overrides: Optional[dict] = None,
    ) -> list[str]:
        """Build the CLI arguments for one call.

        Args:
            text: The prompt.
            session_id: Session to resume, if any.
            overrides: Config fields that apply to this call only.

        Returns:
            Arguments to pass after the executable.
        """
        config = self.config
        if overrides:
            config = dataclasses.replace(config, **overrides)

        args = ['-p', text]

        if config.output_format:
            args.extend(['--output-format', config.output_format.value])
            if config.output_format is OutputFormat.STREAM_JSON:
                args.append('--verbose')

        if config.system_prompt:
            args.extend(['--system-prompt', config.system_prompt])

        if config.allowed_tools:
            args.extend(['--allowedTools', ','.join(config.allowed_tools)])

        if config.mcp_config:
            args.extend(['--mcp-config', config.mcp_config])

        if config.permission_prompt_tool:
            args.extend(['--permission-prompt-tool', config.permission_prompt_tool])

        if session_id:
            args.extend(['--resume', session_id])

        return args

    def _child_env(self) -> dict[str, str]:
        return {**os.environ, API_KEY_ENV: self.config.api_key}

    async def chat(self, text: str, session_id: Optional[str] = None) -> ClaudeCodeResponse:
        """Send a prompt and wait for the full response.

        The CLI's stderr is inherited, so its diagnostics show up on the
        caller's terminal.

        Args:
            text: The prompt to send.
            session_id: Optional session ID to resume a previous conversation.

        Raises:
            ClaudeCodeError: If the CLI cannot be run, times out, or exits non-zero.
        """
        claude_path = await self.ensure_claude_path()
        config = self.config
        command = [claude_path, *self.build_command(text, session_id)]
        logger.debug(f"Executing: {' '.join(command)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                env=self._child_env(),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ClaudeCodeError(f'Command failed: {e}') from e

        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f'Timeout ({self.timeout}s) exceeded, killing process')
            await _kill(process)
            raise ClaudeCodeError(f'Command failed: timed out after {self.timeout}s') from e
        except asyncio.CancelledError:
            await _kill(process)
            raise
        except Exception as e:
            await _kill(process)
            raise ClaudeCodeError(f'Command failed: {e}') from e

        logger.debug(f'Claude CLI exited with code {process.returncode}')
        if process.returncode != 0:
            raise ClaudeCodeError('Command failed - check stderr for error details')

        output = stdout.decode('utf-8', errors='replace')
        if config.output_format is OutputFormat.JSON:
            response = _parse_json_response(output)
        else:
            response = ClaudeCodeResponse(content=output)

        if response.session_id:
            self.session_id = response.session_id
        return response

    async def continue_chat(self, text: str) -> ClaudeCodeResponse:
        """Send a prompt in the most recent session (a new one if there is none)."""
        return await self.chat(text, session_id=self.session_id)

    async def chat_stream(
        self, text: str, session_id: Optional[str] = None
    ) -> AsyncIterator[StreamChunk]:
        """Send a prompt and stream response chunks.

        The CLI runs in stream-json mode. The process is killed when the
        generator finishes, fails, or is closed before being drained.

        Args:
            text: The message to send to Claude.
            session_id: Optional session ID to resume a previous conversation.

        Yields:
            Chunks as the CLI prints them.

        Raises:
            ClaudeCodeError: If the CLI cannot be started.
        """
        claude_path = await self.ensure_claude_path()
        command = [
            claude_path,
            *self.build_command(
                text, session_id, overrides={'output_format': OutputFormat.STREAM_JSON}
            ),
        ]
        logger.debug(f"Streaming: {' '.join(command)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                env=self._child_env(),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise ClaudeCodeError(f'Command failed: {e}') from e

        try:
            async for line in iter_lines(process.stdout):
                chunk = parse_stream_line(line)
                if chunk is None:
                    continue
                if isinstance(chunk.data, dict) and chunk.data.get('session_id'):
                    self.session_id = chunk.data['session_id']
                yield chunk
        finally:
            await _kill(process)

    async def list_sessions(self) -> list[SessionInfo]:
        """List sessions known to the CLI.

        Output that is not valid JSON is treated as no sessions.

        Raises:
            ClaudeCodeError: With kind SESSION if the CLI cannot be run or fails.
        """
        claude_path = await self.ensure_claude_path()
        try:
            process = await asyncio.create_subprocess_exec(
                claude_path,
                '--list-sessions',
                env=self._child_env(),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await process.communicate()
        except OSError as e:
            raise session_error(f'Failed to list sessions: {e}') from e

        if process.returncode != 0:
            logger.debug(f"--list-sessions failed: {stderr.decode('utf-8', errors='replace')}")
            raise session_error('Failed to list sessions')

        try:
            sessions = json.loads(stdout)
        except ValueError:
            return []
        return sessions if isinstance(sessions, list) else []

    def update_config(self, **changes) -> None:
        """Merge new values into the configuration for subsequent calls."""
        self.config = dataclasses.replace(self.config, **changes)
        if 'claude_path' in changes:
            self._claude_path = self.config.claude_path


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    await process.wait()


def _parse_json_response(output: str) -> ClaudeCodeResponse:
    try:
        parsed = json.loads(output)
    except ValueError:
        return ClaudeCodeResponse(content=output)
    if not isinstance(parsed, dict):
        return ClaudeCodeResponse(content=output)

    metadata = parsed.get('metadata')
    return ClaudeCodeResponse(
        content=parsed.get('result') or parsed.get('content') or output,
        session_id=parsed.get('session_id') or parsed.get('sessionId'),
        metadata=ResponseMetadata.from_dict(metadata) if isinstance(metadata, dict) else None,
        type=parsed.get('type'),
        subtype=parsed.get('subtype'),
        cost_usd=parsed.get('cost_usd'),
        is_error=parsed.get('is_error'),
        duration_ms=parsed.get('duration_ms'),
        duration_api_ms=parsed.get('duration_api_ms'),
        num_turns=parsed.get('num_turns'),
        result=parsed.get('result'),
        total_cost=parsed.get('total_cost'),
    )
