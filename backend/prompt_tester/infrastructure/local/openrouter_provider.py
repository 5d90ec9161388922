"""
OpenRouter streaming chat provider.

Talks to the OpenAI-compatible ``/chat/completions`` endpoint with
``stream: true`` and hands the body to the SSE decoder.
"""

from typing import AsyncIterator, Optional, Sequence

import httpx

from prompt_tester.core.config import get_settings
from prompt_tester.core.exceptions import UpstreamHTTPError
from prompt_tester.core.logger import setup_logger
from prompt_tester.interfaces.llm_provider import ILLMProvider
from prompt_tester.models.chat import ChatMessage, StreamResult
from prompt_tester.services.stream_decoder import decode_stream, iter_sse_payloads

logger = setup_logger(__name__)


class OpenRouterChatProvider(ILLMProvider):
    """Streamed chat completions through OpenRouter."""

    def __init__(
        self,
        api_base: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the provider.

        Args:
            api_base: Provider base URL (defaults to OPENROUTER_API_BASE)
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self._settings = get_settings()
        self._api_base = (api_base or self._settings.OPENROUTER_API_BASE).rstrip("/")
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        # Read timeout is left open; turn duration is bounded by the caller
        timeout = httpx.Timeout(None, connect=self._settings.PROVIDER_CONNECT_TIMEOUT)
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    def _headers(self, api_key: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self._settings.OPENROUTER_REFERER,
            "X-Title": self._settings.OPENROUTER_TITLE,
        }

    def _body(self, model_id: str, messages: Sequence[ChatMessage]) -> dict:
        return {
            "model": model_id,
            "messages": [{"role": m.role.value, "content": m.content} for m in messages],
            "stream": True,
        }

    async def _raise_for_status(self, resp: httpx.Response, model_id: str) -> None:
        if resp.status_code < 400:
            return
        body = (await resp.aread()).decode("utf-8", errors="replace")
        logger.warning(f"Provider returned {resp.status_code} for {model_id}: {body[:500]}")
        raise UpstreamHTTPError(resp.status_code, body)

    async def stream_chat(
        self,
        model_id: str,
        messages: Sequence[ChatMessage],
        api_key: str,
    ) -> StreamResult:
        async with self._client() as client:
            async with client.stream(
                "POST",
                f"{self._api_base}/chat/completions",
                json=self._body(model_id, messages),
                headers=self._headers(api_key),
            ) as resp:
                await self._raise_for_status(resp, model_id)
                return await decode_stream(resp.aiter_bytes())

    async def stream_events(
        self,
        model_id: str,
        messages: Sequence[ChatMessage],
        api_key: str,
    ) -> AsyncIterator[str]:
        async with self._client() as client:
            async with client.stream(
                "POST",
                f"{self._api_base}/chat/completions",
                json=self._body(model_id, messages),
                headers=self._headers(api_key),
            ) as resp:
                await self._raise_for_status(resp, model_id)
                async for payload in iter_sse_payloads(resp.aiter_bytes()):
                    yield payload
