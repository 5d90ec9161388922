"""
LLM provider interface.

Defines the contract for streamed chat completions against a model
aggregation API.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Sequence

from prompt_tester.models.chat import ChatMessage, StreamResult


class ILLMProvider(ABC):
    """Abstract interface for LLM providers."""

    @abstractmethod
    async def stream_chat(
        self,
        model_id: str,
        messages: Sequence[ChatMessage],
        api_key: str,
    ) -> StreamResult:
        """
        Send one streamed chat request and assemble the reply.

        Args:
            model_id: provider/model identifier
            messages: Full ordered history (role + content)
            api_key: Plaintext credential

        Returns:
            Concatenated assistant content and the last reported usage

        Raises:
            UpstreamHTTPError: Non-success status, raised before any decoding
            StreamError: The provider reported an error inside the stream
        """
        pass

    @abstractmethod
    def stream_events(
        self,
        model_id: str,
        messages: Sequence[ChatMessage],
        api_key: str,
    ) -> AsyncIterator[str]:
        """
        Yield the raw ``data:`` payloads of a streamed chat request.

        The ``[DONE]`` sentinel is yielded as the last payload when the
        provider sends it.

        Raises:
            UpstreamHTTPError: Non-success status, raised before the first payload
        """
        pass
