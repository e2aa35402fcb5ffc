"""Terminal chat that forwards prompts to Claude Code."""

import asyncio
import json
from contextlib import aclosing
from pathlib import Path
from dotenv import load_dotenv
from claude_code_client import ChunkType, ClaudeCodeClient, ClaudeCodeError

SESSIONS_FILE = Path(__file__).parent / "sessions.json"

# Session ID of the ongoing conversation, persisted across restarts
current_session: dict[str, str] = {}


def load_sessions():
    """Load the saved session from disk."""
    global current_session
    if SESSIONS_FILE.exists():
        try:
            current_session = json.loads(SESSIONS_FILE.read_text())
            print(f"Loaded session from {SESSIONS_FILE}")
        except (OSError, ValueError) as e:
            print(f"Error loading sessions: {e}")
            current_session = {}


def save_sessions():
    """Save the current session to disk."""
    try:
        SESSIONS_FILE.write_text(json.dumps(current_session, indent=2))
    except OSError as e:
        print(f"Error saving sessions: {e}")


def remember_session(session_id: str):
    if session_id and session_id != current_session.get("session_id"):
        current_session["session_id"] = session_id
        save_sessions()
        print(f"Session ID: {session_id[:8]}...")


async def send_to_claude(claude: ClaudeCodeClient, text: str) -> str:
    """Send text to Claude with conversation continuity."""
    session_id = current_session.get("session_id")
    if session_id:
        print(f"Resuming session ({session_id[:8]}...)")

    response = await claude.chat(text, session_id=session_id)
    remember_session(response.session_id)
    return response.content


async def stream_to_claude(claude: ClaudeCodeClient, text: str):
    """Stream a response to the terminal as it arrives."""
    session_id = current_session.get("session_id")
    async with aclosing(claude.chat_stream(text, session_id=session_id)) as stream:
        async for chunk in stream:
            if chunk.type is ChunkType.CONTENT:
                print(chunk.data, end="", flush=True)
            elif chunk.type is ChunkType.ERROR:
                print(f"\nError: {chunk.data.get('result', chunk.data)}")
    print()
    remember_session(claude.session_id)


async def handle_sessions(claude: ClaudeCodeClient):
    """Handle /sessions - list sessions known to the CLI."""
    sessions = await claude.list_sessions()
    current = current_session.get("session_id")
    if not sessions:
        print("No sessions reported by the CLI.")
        return
    for info in sessions:
        marker = "-> " if info.get("id") == current else "   "
        print(f"{marker}{info.get('id')} ({info.get('messageCount', '?')} messages, "
              f"last active {info.get('lastActive', '?')})")


async def handle_command(claude: ClaudeCodeClient, line: str, state: dict) -> bool:
    """Run a slash command. Returns False when the loop should stop."""
    command, _, arg = line.partition(" ")
    if command == "/quit":
        return False
    if command == "/reset":
        current_session.clear()
        claude.session_id = None
        save_sessions()
        print("Session cleared. Starting fresh!")
    elif command == "/sessions":
        await handle_sessions(claude)
    elif command == "/stream":
        state["stream"] = not state["stream"]
        print(f"Streaming {'on' if state['stream'] else 'off'}")
    elif command == "/system":
        claude.update_config(system_prompt=arg.strip() or None)
        print("System prompt updated")
    else:
        print("Commands: /reset, /sessions, /stream, /system <prompt>, /quit")
    return True


async def main():
    """Start the chat loop."""
    load_dotenv()

    try:
        claude = ClaudeCodeClient()
    except ClaudeCodeError as e:
        print(f"Error: {e}")
        print("Please set ANTHROPIC_API_KEY in your .env file")
        return

    load_sessions()
    state = {"stream": False}
    loop = asyncio.get_event_loop()

    print("Type a prompt, or /help for commands. Ctrl+D to exit.")
    while True:
        try:
            line = await loop.run_in_executor(None, input, "> ")
        except EOFError:
            print()
            break

        line = line.strip()
        if not line:
            continue

        try:
            if line.startswith("/"):
                if not await handle_command(claude, line, state):
                    break
            elif state["stream"]:
                await stream_to_claude(claude, line)
            else:
                print(await send_to_claude(claude, line))
        except ClaudeCodeError as e:
            print(f"Error: {e}")


if __name__ == "__main__":
    asyncio.run(main())
