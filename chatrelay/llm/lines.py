# Line reassembly + chunk parsing for OpenAI-style `data: {json}` streams
from __future__ import annotations

import codecs
import json
from typing import Any, AsyncIterable, AsyncIterator, Dict, List, Optional, Union

from chatrelay.errors import MalformedBackendChunk
from chatrelay.llm.events import RelayEvent

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class LineBuffer:
    """
    Carry-over buffer for a byte stream that is split at arbitrary points.

    feed() returns the complete lines seen so far and keeps the trailing
    (possibly partial) fragment in `pending` for the next chunk. Bytes are
    decoded incrementally so multi-byte characters may straddle chunks.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self.pending = ""

    def feed(self, chunk: Union[bytes, str]) -> List[str]:
        text = chunk if isinstance(chunk, str) else self._decoder.decode(chunk)
        if not text:
            return []
        self.pending += text
        *lines, self.pending = self.pending.split("\n")
        return lines


async def iter_lines(chunks: AsyncIterable[bytes], buffer: LineBuffer) -> AsyncIterator[str]:
    # an unterminated trailing fragment is never yielded
    async for chunk in chunks:
        for line in buffer.feed(chunk):
            yield line


def parse_data_line(line: str) -> Optional[Dict[str, Any]]:
    """
    Returns the JSON payload of a `data: ` line, or None for lines that carry
    nothing (other SSE fields, comments, blank lines, the [DONE] sentinel).
    Raises MalformedBackendChunk when the payload is not valid JSON.
    """
    if not line.startswith(DATA_PREFIX):
        return None

    body = line[len(DATA_PREFIX):]
    if body.strip() == DONE_SENTINEL:
        return None

    try:
        data = json.loads(body)
    except ValueError:
        raise MalformedBackendChunk(line)

    return data if isinstance(data, dict) else None


def events_from_chunk(data: Dict[str, Any]) -> List[RelayEvent]:
    """
    Token first, then End, when a single chunk carries both.
    """
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return []

    first = choices[0]
    if not isinstance(first, dict):
        return []

    out: List[RelayEvent] = []

    delta = first.get("delta")
    content = delta.get("content") if isinstance(delta, dict) else None
    if isinstance(content, str) and content:
        out.append(RelayEvent.token(content))

    if first.get("finish_reason"):
        out.append(RelayEvent.end())

    return out
