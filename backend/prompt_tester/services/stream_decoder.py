"""
Incremental decoder for OpenAI-compatible server-sent event streams.

Chunks may split lines (and multi-byte characters) anywhere; the decoder
buffers the partial tail until the rest arrives, so the assembled result
does not depend on how the transport chunked the body.
"""

import codecs
import json
from typing import AsyncIterable, AsyncIterator, Optional, Union

from pydantic import ValidationError

from prompt_tester.core.exceptions import StreamError
from prompt_tester.core.logger import setup_logger
from prompt_tester.models.chat import StreamResult, StreamUsage

logger = setup_logger(__name__)

DONE_SENTINEL = "[DONE]"

Chunk = Union[bytes, str]


class SSELineBuffer:
    """Split a chunked SSE body into ``data:`` payloads."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    def feed(self, chunk: Chunk) -> list[str]:
        text = self._decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        self._pending += text
        *lines, self._pending = self._pending.split("\n")
        return [p for p in (self._parse_line(line) for line in lines) if p is not None]

    def close(self) -> list[str]:
        """Flush the unterminated last line, if any."""
        tail = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        payload = self._parse_line(tail)
        return [payload] if payload is not None else []

    @staticmethod
    def _parse_line(line: str) -> Optional[str]:
        line = line.rstrip("\r")
        if not line.startswith("data:"):
            # blank separators, ":" comments and other SSE fields
            return None
        return line[5:].strip()


async def iter_sse_payloads(chunks: AsyncIterable[Chunk]) -> AsyncIterator[str]:
    """
    Yield the ``data:`` payloads of a chunked SSE body.

    The ``[DONE]`` sentinel is yielded and ends iteration; nothing after it
    is read.
    """
    buffer = SSELineBuffer()
    async for chunk in chunks:
        for payload in buffer.feed(chunk):
            yield payload
            if payload == DONE_SENTINEL:
                return
    for payload in buffer.close():
        yield payload
        if payload == DONE_SENTINEL:
            return


class StreamAccumulator:
    """Fold decoded payloads into assistant content and usage."""

    def __init__(self) -> None:
        self._parts: list[str] = []
        self.usage = StreamUsage()

    @property
    def content(self) -> str:
        return "".join(self._parts)

    def add(self, payload: str) -> None:
        if not payload or payload == DONE_SENTINEL:
            return
        try:
            event = json.loads(payload)
        except ValueError:
            logger.debug(f"Skipping malformed stream event: {payload[:200]}")
            return
        if not isinstance(event, dict):
            return

        error = event.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise StreamError(message or "Provider reported an error", details=error)

        choices = event.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            delta = choices[0].get("delta")
            fragment = delta.get("content") if isinstance(delta, dict) else None
            if isinstance(fragment, str) and fragment:
                self._parts.append(fragment)
            elif fragment:
                logger.debug(f"Skipping non-text content fragment: {payload[:200]}")

        usage = event.get("usage")
        if isinstance(usage, dict):
            # The last usage report wins
            try:
                self.usage = StreamUsage(
                    prompt_tokens=usage.get("prompt_tokens") or 0,
                    completion_tokens=usage.get("completion_tokens") or 0,
                )
            except ValidationError:
                logger.debug(f"Skipping unreadable usage report: {payload[:200]}")

    def result(self) -> StreamResult:
        return StreamResult(content=self.content, usage=self.usage)


async def decode_stream(chunks: AsyncIterable[Chunk]) -> StreamResult:
    """Reduce a chunked SSE body to the assembled reply and final usage."""
    accumulator = StreamAccumulator()
    async for payload in iter_sse_payloads(chunks):
        accumulator.add(payload)
    return accumulator.result()
