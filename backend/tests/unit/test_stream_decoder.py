"""
Unit tests for the SSE stream decoder.
"""

import json

import pytest

from prompt_tester.core.exceptions import StreamError
from prompt_tester.services.stream_decoder import (
    SSELineBuffer,
    StreamAccumulator,
    decode_stream,
    iter_sse_payloads,
)


def _event(content=None, usage=None) -> str:
    payload = {"choices": [{"delta": {"content": content} if content is not None else {}}]}
    if usage is not None:
        payload["usage"] = usage
    return f"data: {json.dumps(payload)}\n\n"


async def _chunks(*parts):
    for part in parts:
        yield part


BODY = (
    ": OPENROUTER PROCESSING\n\n"
    + _event("Hel")
    + _event("lo, ")
    + _event("wörld 🌍")
    + _event(usage={"prompt_tokens": 12, "completion_tokens": 5})
    + "data: [DONE]\n\n"
).encode("utf-8")


class TestChunkBoundaries:
    @pytest.mark.asyncio
    async def test_single_chunk(self):
        result = await decode_stream(_chunks(BODY))

        assert result.content == "Hello, wörld 🌍"
        assert result.usage.prompt_tokens == 12
        assert result.usage.completion_tokens == 5

    @pytest.mark.asyncio
    @pytest.mark.parametrize("size", [1, 2, 3, 7, 16, 64])
    async def test_split_anywhere_gives_same_result(self, size):
        """Splitting mid-line and mid-character must not change the result."""
        whole = await decode_stream(_chunks(BODY))
        pieces = [BODY[i : i + size] for i in range(0, len(BODY), size)]

        split = await decode_stream(_chunks(*pieces))

        assert split == whole

    @pytest.mark.asyncio
    async def test_crlf_line_endings(self):
        body = BODY.replace(b"\n", b"\r\n")

        result = await decode_stream(_chunks(body))

        assert result.content == "Hello, wörld 🌍"

    @pytest.mark.asyncio
    async def test_text_chunks_are_accepted(self):
        result = await decode_stream(_chunks(_event("a"), _event("b"), "data: [DONE]\n"))

        assert result.content == "ab"


class TestSentinel:
    @pytest.mark.asyncio
    async def test_done_stops_decoding(self):
        body = _event("kept") + "data: [DONE]\n\n" + _event("ignored")

        result = await decode_stream(_chunks(body))

        assert result.content == "kept"

    @pytest.mark.asyncio
    async def test_done_is_yielded_last(self):
        payloads = [p async for p in iter_sse_payloads(_chunks(_event("x") + "data: [DONE]\n\n"))]

        assert payloads[-1] == "[DONE]"
        assert len(payloads) == 2

    @pytest.mark.asyncio
    async def test_trailing_line_without_newline(self):
        result = await decode_stream(_chunks(_event("a") + 'data: {"choices":[{"delta":{"content":"b"}}]}'))

        assert result.content == "ab"

    @pytest.mark.asyncio
    async def test_data_prefix_without_space(self):
        result = await decode_stream(_chunks('data:{"choices":[{"delta":{"content":"x"}}]}\n'))

        assert result.content == "x"


class TestPayloads:
    @pytest.mark.asyncio
    async def test_malformed_json_is_skipped(self):
        body = _event("a") + "data: {not json\n\n" + _event("b") + "data: [DONE]\n\n"

        result = await decode_stream(_chunks(body))

        assert result.content == "ab"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "odd_event",
        [
            {"choices": {"delta": {"content": "x"}}},
            {"choices": [{"delta": {"content": ["x"]}}]},
            {"choices": [{"delta": "x"}]},
            {"choices": [], "usage": {"prompt_tokens": "many", "completion_tokens": 1}},
        ],
    )
    async def test_unexpected_event_shape_is_skipped(self, odd_event):
        body = _event("Hel") + f"data: {json.dumps(odd_event)}\n\n" + _event("lo") + "data: [DONE]\n\n"

        result = await decode_stream(_chunks(body))

        assert result.content == "Hello"
        assert result.usage.prompt_tokens == 0

    @pytest.mark.asyncio
    async def test_usage_overwrites(self):
        body = (
            _event("a", usage={"prompt_tokens": 1, "completion_tokens": 1})
            + _event("b", usage={"prompt_tokens": 10, "completion_tokens": 4})
        )

        result = await decode_stream(_chunks(body))

        assert result.usage.prompt_tokens == 10
        assert result.usage.completion_tokens == 4

    @pytest.mark.asyncio
    async def test_no_usage_defaults_to_zero(self):
        result = await decode_stream(_chunks(_event("a")))

        assert result.usage.prompt_tokens == 0
        assert result.usage.completion_tokens == 0

    def test_only_first_choice_contributes(self):
        acc = StreamAccumulator()
        acc.add(json.dumps({"choices": [{"delta": {"content": "one"}}, {"delta": {"content": "two"}}]}))

        assert acc.content == "one"

    def test_error_event_raises(self):
        acc = StreamAccumulator()

        with pytest.raises(StreamError) as exc:
            acc.add(json.dumps({"error": {"message": "Rate limit exceeded", "code": 429}}))

        assert "Rate limit exceeded" in str(exc.value)

    def test_non_data_lines_are_ignored(self):
        buffer = SSELineBuffer()

        payloads = buffer.feed(b"event: message\nid: 1\n: comment\n\ndata: x\n")

        assert payloads == ["x"]
