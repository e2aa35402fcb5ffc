import sys
import textwrap

import pytest

from claude_code_client import ClaudeCodeClient, ClaudeCodeConfig


@pytest.fixture
def no_api_key(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)


@pytest.fixture
def make_cli(tmp_path):
    """Write a fake `claude` executable whose body is the given Python code."""

    def _make(body: str, name: str = "claude") -> str:
        path = tmp_path / name
        path.write_text(
            f"#!{sys.executable}\n"
            "import json, os, sys, time\n"
            + textwrap.dedent(body)
        )
        path.chmod(0o755)
        return str(path)

    return _make


@pytest.fixture
def client_for(make_cli):
    """Build a client wired to a fake CLI."""

    def _client(body: str, **config) -> ClaudeCodeClient:
        timeout = config.pop("timeout", 60.0)
        return ClaudeCodeClient(
            ClaudeCodeConfig(api_key="test-key", claude_path=make_cli(body), **config),
            timeout=timeout,
        )

    return _client
