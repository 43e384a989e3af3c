"""
Incremental parser for streamed chat completions.

The completion service sends newline-delimited frames:

    data: {"choices":[{"delta":{"content":"He"}}]}
    data: [DONE]

Anything that is not a ``data:`` line is a keep-alive and is ignored. Network
reads do not respect frame (or UTF-8 character) boundaries, so the trailing
partial line of every chunk is kept until the next chunk completes it. A frame
whose JSON does not parse is skipped; the rest of the stream still counts.
"""
import json
import codecs
import asyncio
import logging
from typing import AsyncIterable, AsyncIterator, Callable, List, Optional, Union

from creatorkit.core.errors import StreamCancelledError

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_MARKER = "[DONE]"


def extract_fragment(payload) -> Optional[str]:
    """Text delta of the first choice, if the frame carries one"""
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    delta = choices[0].get("delta") or {}
    content = delta.get("content") if isinstance(delta, dict) else None
    return content if isinstance(content, str) and content else None


class StreamAggregator:
    """Feeds raw byte chunks in, gets text fragments out"""

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._parts: List[str] = []
        self.done = False

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def feed(self, chunk: Union[bytes, str]) -> List[str]:
        """Consume one network chunk; returns the fragments it completed"""
        if self.done:
            return []
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")

        self._buffer += self._decoder.decode(chunk)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        return self._consume(lines)

    def close(self) -> List[str]:
        """End of stream without a terminal marker: flush the last line"""
        if self.done:
            return []
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        return self._consume([tail]) if tail else []

    def _consume(self, lines: List[str]) -> List[str]:
        fragments = []
        for line in lines:
            if self.done:
                break
            fragment = self._parse_line(line)
            if fragment:
                self._parts.append(fragment)
                fragments.append(fragment)
        return fragments

    def _parse_line(self, line: str) -> Optional[str]:
        line = line.strip()
        if not line.startswith(DATA_PREFIX):
            return None

        payload = line[len(DATA_PREFIX):].strip()
        if payload == DONE_MARKER:
            self.done = True
            return None

        try:
            data = json.loads(payload)
        except json.JSONDecodeError:
            logger.debug(f"Skipping malformed stream frame: {payload[:80]!r}")
            return None
        return extract_fragment(data)


def _check_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise StreamCancelledError("Stream cancelled")


_END = object()


async def _read_chunk(chunks: AsyncIterator[bytes]):
    try:
        return await chunks.__anext__()
    except StopAsyncIteration:
        return _END


async def _next_chunk(chunks: AsyncIterator[bytes], cancel_event: Optional[asyncio.Event]):
    """Next chunk, or _END; a set cancel_event wins over a read that never returns"""
    _check_cancelled(cancel_event)
    if cancel_event is None:
        return await _read_chunk(chunks)

    read = asyncio.ensure_future(_read_chunk(chunks))
    cancelled = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({read, cancelled}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        cancelled.cancel()
        if not read.done():
            read.cancel()
            try:
                await read
            except asyncio.CancelledError:
                pass

    if read.cancelled():
        raise StreamCancelledError("Stream cancelled")
    return read.result()


async def _close(chunks: AsyncIterator[bytes]) -> None:
    aclose = getattr(chunks, "aclose", None)
    if aclose is not None:
        await aclose()


async def iter_fragments(byte_stream: AsyncIterable[bytes],
                         cancel_event: Optional[asyncio.Event] = None) -> AsyncIterator[str]:
    """Lazy, finite sequence of text fragments from a byte stream"""
    aggregator = StreamAggregator()
    chunks = byte_stream.__aiter__()
    try:
        while True:
            chunk = await _next_chunk(chunks, cancel_event)
            if chunk is _END:
                break
            for fragment in aggregator.feed(chunk):
                _check_cancelled(cancel_event)
                yield fragment
            if aggregator.done:
                return

        for fragment in aggregator.close():
            _check_cancelled(cancel_event)
            yield fragment
    finally:
        await _close(chunks)


async def aggregate_stream(byte_stream: AsyncIterable[bytes],
                           on_fragment: Optional[Callable[[str], None]] = None,
                           cancel_event: Optional[asyncio.Event] = None) -> str:
    """Read the whole stream and return the full text.

    ``on_fragment`` is called synchronously for every fragment, in order.
    If ``cancel_event`` is set mid-stream, StreamCancelledError is raised and
    the partial text is discarded.
    """
    parts = []
    async for fragment in iter_fragments(byte_stream, cancel_event):
        parts.append(fragment)
        if on_fragment is not None:
            on_fragment(fragment)
    return "".join(parts)
