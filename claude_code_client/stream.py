"""Parsing of `--output-format stream-json` output."""

import codecs
import json
import logging
from typing import Any, AsyncIterator, Optional

from .models import ChunkType, StreamChunk

logger = logging.getLogger(__name__)

READ_SIZE = 8192


def _assistant_text(record: dict[str, Any]) -> Optional[str]:
    message = record.get("message")
    if not isinstance(message, dict):
        return None
    blocks = message.get("content")
    if not isinstance(blocks, list):
        return None
    texts = [
        block["text"] for block in blocks
        if isinstance(block, dict) and isinstance(block.get("text"), str)
    ]
    if not texts:
        return None
    return "".join(texts)


def parse_stream_line(line: str) -> Optional[StreamChunk]:
    """Turn one line of CLI output into a chunk.

    Assistant text becomes content, a result record becomes metadata (or
    an error when flagged), and every other record is metadata. Returns
    None for blank lines. Anything that is not a JSON object is passed
    through unchanged as content.
    """
    if not line.strip():
        return None

    try:
        record = json.loads(line)
    except ValueError:
        return StreamChunk(type=ChunkType.CONTENT, data=line)
    if not isinstance(record, dict):
        return StreamChunk(type=ChunkType.CONTENT, data=line)

    record_type = record.get("type")

    if record_type == "assistant":
        text = _assistant_text(record)
        if text is not None:
            return StreamChunk(type=ChunkType.CONTENT, data=text)

    if record_type == "result" and record.get("is_error"):
        return StreamChunk(type=ChunkType.ERROR, data=record)

    return StreamChunk(type=ChunkType.METADATA, data=record)


async def iter_lines(stream, read_size: int = READ_SIZE) -> AsyncIterator[str]:
    """Yield decoded lines from a byte stream as they complete.

    UTF-8 sequences split across reads are reassembled. A final line
    without a trailing newline is still yielded.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    tail: list[str] = []  # Pieces of the current unterminated line

    while True:
        data = await stream.read(read_size)
        if not data:
            break
        *lines, rest = decoder.decode(data).split("\n")
        if lines:
            lines[0] = "".join(tail) + lines[0]
            tail.clear()
            for line in lines:
                yield line.rstrip("\r")
        if rest:
            tail.append(rest)

    last = "".join(tail) + decoder.decode(b"", final=True)
    if last:
        yield last.rstrip("\r")
    logger.debug("Stream reached end of data")
