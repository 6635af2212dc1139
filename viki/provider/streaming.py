"""Decoders for the vendor streaming wire formats.

Each decoder consumes an async iterator over the live response body and
yields ``StreamEvent``s. Reading stops as soon as the final event has been
produced. If the body ends without a terminal marker, a closing
``StreamEvent("", True)`` is emitted so every stream has exactly one final
event.
"""

import json
import logging
from typing import Any, AsyncIterator

from viki.errors import DecodeError

from .base import StreamEvent

logger = logging.getLogger(__name__)


async def iter_sse_data(lines: AsyncIterator[str]) -> AsyncIterator[str]:
    """Yield the payload of each ``data:`` line, skipping everything else"""
    async for line in lines:
        line = line.strip()
        if not line.startswith("data:"):
            continue
        yield line[5:].lstrip()


def _parse_chunk(data: str) -> dict | None:
    try:
        chunk = json.loads(data)
    except json.JSONDecodeError:
        logger.debug(f"Skipping malformed stream chunk: {data[:200]!r}")
        return None
    return chunk if isinstance(chunk, dict) else None


async def decode_openai_sse(lines: AsyncIterator[str]) -> AsyncIterator[StreamEvent]:
    """OpenAI-compatible SSE: ``choices[0].delta.content`` until ``[DONE]``"""
    async for data in iter_sse_data(lines):
        if data == "[DONE]":
            yield StreamEvent("", True)
            return

        chunk = _parse_chunk(data)
        if chunk is None:
            continue
        choices = chunk.get("choices") or []
        if not choices or not isinstance(choices[0], dict):
            continue
        delta = choices[0].get("delta") or {}
        content = delta.get("content") or ""
        if content:
            yield StreamEvent(content)

    yield StreamEvent("", True)


async def decode_anthropic_sse(lines: AsyncIterator[str], provider: str = "") -> AsyncIterator[StreamEvent]:
    """Anthropic SSE: ``text_delta`` blocks until ``message_stop``"""
    async for data in iter_sse_data(lines):
        event = _parse_chunk(data)
        if event is None:
            continue

        event_type = event.get("type")
        if event_type == "content_block_delta":
            delta = event.get("delta") or {}
            if delta.get("type") == "text_delta" and delta.get("text"):
                yield StreamEvent(delta["text"])
        elif event_type == "message_stop":
            yield StreamEvent("", True)
            return
        elif event_type == "error":
            error = event.get("error") or {}
            raise DecodeError(f"stream error: {error.get('message', error)}", provider, "chat_stream")

    yield StreamEvent("", True)


async def decode_ndjson(lines: AsyncIterator[str], provider: str = "") -> AsyncIterator[StreamEvent]:
    """Ollama NDJSON: ``message.content`` per line until ``done`` is true"""
    async for line in lines:
        if not line.strip():
            continue
        chunk = _parse_chunk(line)
        if chunk is None:
            continue
        if chunk.get("error"):
            raise DecodeError(f"stream error: {chunk['error']}", provider, "chat_stream")

        content = (chunk.get("message") or {}).get("content") or ""
        if chunk.get("done") is True:
            yield StreamEvent(content, True)
            return
        if content:
            yield StreamEvent(content)

    yield StreamEvent("", True)


class JSONArrayReader:
    """Incrementally decodes the elements of a top-level JSON array.

    Text arrives in arbitrary pieces; each call to ``next_element`` pulls
    just enough of it to return one complete element.
    """

    WHITESPACE = " \t\r\n"

    def __init__(self, chunks: AsyncIterator[str], provider: str = ""):
        self._chunks = chunks.__aiter__()
        self._buffer = ""
        self._pos = 0
        self._eof = False
        self._opened = False
        self._closed = False
        self._provider = provider
        self._decoder = json.JSONDecoder()

    def _error(self, message: str) -> DecodeError:
        return DecodeError(message, self._provider, "chat_stream")

    async def _fill(self) -> bool:
        if self._eof:
            return False
        try:
            chunk = await self._chunks.__anext__()
        except StopAsyncIteration:
            self._eof = True
            return False
        # Drop consumed text so the buffer holds at most one pending element
        self._buffer = self._buffer[self._pos:] + chunk
        self._pos = 0
        return True

    async def _peek(self) -> str:
        """Next non-whitespace character, or "" at end of input"""
        while True:
            while self._pos < len(self._buffer) and self._buffer[self._pos] in self.WHITESPACE:
                self._pos += 1
            if self._pos < len(self._buffer):
                return self._buffer[self._pos]
            if not await self._fill():
                return ""

    async def _open(self):
        char = await self._peek()
        if char != "[":
            raise self._error(f"expected '[' at start of stream, got {char or 'end of input'!r}")
        self._pos += 1
        self._opened = True

    async def next_element(self) -> Any | None:
        """Return the next element, or None once the array is exhausted"""
        if self._closed:
            return None
        if not self._opened:
            await self._open()
            if await self._peek() == "]":
                self._closed = True
                return None
        elif not await self._advance_separator():
            return None

        while True:
            try:
                element, end = self._decoder.raw_decode(self._buffer, self._pos)
            except json.JSONDecodeError as e:
                if await self._fill():
                    continue
                raise self._error(f"malformed stream element: {e}") from e
            # A bare number at the end of the buffer may continue in the next chunk
            if end == len(self._buffer) and not isinstance(element, (dict, list)) and await self._fill():
                continue
            self._pos = end
            return element

    async def _advance_separator(self) -> bool:
        char = await self._peek()
        if char == ",":
            self._pos += 1
            await self._peek()
            return True
        self._closed = True
        if char == "]":
            self._pos += 1
            return False
        if char == "":
            logger.debug("Stream ended before the closing ']'")
            return False
        raise self._error(f"unexpected {char!r} between stream elements")


def first_candidate(chunk: dict) -> dict:
    candidates = chunk.get("candidates") or []
    if candidates and isinstance(candidates[0], dict):
        return candidates[0]
    return {}


def candidate_text(candidate: dict) -> str:
    parts = (candidate.get("content") or {}).get("parts") or []
    if parts and isinstance(parts[0], dict):
        return parts[0].get("text") or ""
    return ""


async def decode_json_array(chunks: AsyncIterator[str], provider: str = "") -> AsyncIterator[StreamEvent]:
    """Gemini array stream: a candidate with ``finishReason`` ends the stream"""
    reader = JSONArrayReader(chunks, provider)
    while True:
        element = await reader.next_element()
        if element is None:
            break
        if not isinstance(element, dict):
            continue
        if element.get("error"):
            error = element["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise DecodeError(f"stream error: {message}", provider, "chat_stream")

        candidate = first_candidate(element)
        text = candidate_text(candidate)
        if candidate.get("finishReason"):
            yield StreamEvent(text, True)
            return
        if text:
            yield StreamEvent(text)

    yield StreamEvent("", True)
