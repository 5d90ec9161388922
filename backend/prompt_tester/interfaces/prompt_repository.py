"""
Saved prompt repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from prompt_tester.models.catalog import PromptSnippet, PromptSnippetCreate, PromptSnippetUpdate
from prompt_tester.models.enums import PromptKind


class IPromptRepository(ABC):
    """Abstract interface for saved prompt snippets."""

    @abstractmethod
    async def create(self, prompt: PromptSnippetCreate) -> PromptSnippet:
        pass

    @abstractmethod
    async def get(self, prompt_id: UUID) -> Optional[PromptSnippet]:
        pass

    @abstractmethod
    async def list(
        self,
        kind: Optional[PromptKind] = None,
        category: Optional[str] = None,
    ) -> list[PromptSnippet]:
        """List prompts, most recently updated first."""
        pass

    @abstractmethod
    async def update(self, prompt_id: UUID, update: PromptSnippetUpdate) -> PromptSnippet:
        pass

    @abstractmethod
    async def delete(self, prompt_id: UUID) -> bool:
        pass
