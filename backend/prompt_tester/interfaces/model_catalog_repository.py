"""
Model catalog repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from uuid import UUID

from prompt_tester.models.catalog import (
    CatalogModel,
    CatalogModelCreate,
    CatalogModelUpdate,
    ReorderItem,
)


class IModelCatalogRepository(ABC):
    """Abstract interface for the user-curated model list."""

    @abstractmethod
    async def list(self, active_only: bool = False) -> list[CatalogModel]:
        """
        List catalog entries.

        Args:
            active_only: Only return entries flagged active

        Returns:
            Entries ordered by sort order, ties broken by insertion order
        """
        pass

    @abstractmethod
    async def list_active(self) -> list[CatalogModel]:
        """Shortcut for list(active_only=True)."""
        pass

    @abstractmethod
    async def create(self, model: CatalogModelCreate) -> CatalogModel:
        """Add a model at the end of the sort order."""
        pass

    @abstractmethod
    async def update(self, entry_id: UUID, update: CatalogModelUpdate) -> CatalogModel:
        """
        Update a catalog entry.

        Raises:
            NotFoundError: If the entry doesn't exist
        """
        pass

    @abstractmethod
    async def reorder(self, items: list[ReorderItem]) -> None:
        """
        Apply a batch of sort order changes atomically.

        Raises:
            NotFoundError: If any entry doesn't exist (nothing is applied)
        """
        pass

    @abstractmethod
    async def delete(self, entry_id: UUID) -> bool:
        """Delete a catalog entry."""
        pass

    @abstractmethod
    async def seed_defaults(self) -> int:
        """Seed the catalog when empty. Returns the number of entries added."""
        pass
