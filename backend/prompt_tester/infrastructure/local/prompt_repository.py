"""
SQLite implementation of the saved prompt repository.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select

from prompt_tester.core.exceptions import NotFoundError
from prompt_tester.infrastructure.local.database import PromptSnippetORM, get_session_factory
from prompt_tester.interfaces.prompt_repository import IPromptRepository
from prompt_tester.models.catalog import PromptSnippet, PromptSnippetCreate, PromptSnippetUpdate
from prompt_tester.models.enums import PromptKind


class SqlitePromptRepository(IPromptRepository):
    """SQLite implementation of saved prompt repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: PromptSnippetORM) -> PromptSnippet:
        return PromptSnippet(
            id=UUID(orm.id),
            name=orm.name,
            kind=PromptKind(orm.kind),
            content=orm.content,
            category=orm.category,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    async def create(self, prompt: PromptSnippetCreate) -> PromptSnippet:
        async with self._session_factory() as session:
            orm = PromptSnippetORM(
                name=prompt.name,
                kind=prompt.kind.value,
                content=prompt.content,
                category=prompt.category or None,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, prompt_id: UUID) -> Optional[PromptSnippet]:
        async with self._session_factory() as session:
            orm = await session.get(PromptSnippetORM, str(prompt_id))
            return self._orm_to_model(orm) if orm else None

    async def list(
        self,
        kind: Optional[PromptKind] = None,
        category: Optional[str] = None,
    ) -> list[PromptSnippet]:
        """List prompts, most recently updated first."""
        async with self._session_factory() as session:
            query = select(PromptSnippetORM)
            if kind:
                query = query.where(PromptSnippetORM.kind == kind.value)
            if category:
                query = query.where(PromptSnippetORM.category == category)
            query = query.order_by(PromptSnippetORM.updated_at.desc())
            result = await session.execute(query)
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def update(self, prompt_id: UUID, update: PromptSnippetUpdate) -> PromptSnippet:
        async with self._session_factory() as session:
            orm = await session.get(PromptSnippetORM, str(prompt_id))
            if not orm:
                raise NotFoundError(f"Prompt {prompt_id} not found")

            if update.name is not None:
                orm.name = update.name
            if update.content is not None:
                orm.content = update.content
            if "category" in update.model_fields_set:
                orm.category = update.category or None
            orm.updated_at = datetime.utcnow()

            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def delete(self, prompt_id: UUID) -> bool:
        async with self._session_factory() as session:
            orm = await session.get(PromptSnippetORM, str(prompt_id))
            if not orm:
                return False

            await session.delete(orm)
            await session.commit()
            return True
