"""
SQLite implementation of the model catalog repository.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select

from prompt_tester.core.exceptions import NotFoundError
from prompt_tester.infrastructure.local.database import CatalogModelORM, get_session_factory
from prompt_tester.interfaces.model_catalog_repository import IModelCatalogRepository
from prompt_tester.models.catalog import (
    CatalogModel,
    CatalogModelCreate,
    CatalogModelUpdate,
    ReorderItem,
)

DEFAULT_MODELS: list[tuple[str, str]] = [
    ("anthropic/claude-sonnet-4", "Claude Sonnet 4"),
    ("anthropic/claude-3.5-haiku", "Claude 3.5 Haiku"),
    ("openai/gpt-4o", "GPT-4o"),
    ("openai/gpt-4o-mini", "GPT-4o Mini"),
    ("google/gemini-2.0-flash-001", "Gemini 2.0 Flash"),
    ("meta-llama/llama-3.3-70b-instruct", "Llama 3.3 70B"),
]


class SqliteModelCatalogRepository(IModelCatalogRepository):
    """SQLite implementation of model catalog repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: CatalogModelORM) -> CatalogModel:
        return CatalogModel(
            id=UUID(orm.id),
            model_id=orm.model_id,
            display_name=orm.display_name,
            is_active=bool(orm.is_active),
            sort_order=orm.sort_order,
            created_at=orm.created_at,
        )

    async def list(self, active_only: bool = False) -> list[CatalogModel]:
        """List entries by sort order; equal sort orders keep insertion order."""
        async with self._session_factory() as session:
            query = select(CatalogModelORM)
            if active_only:
                query = query.where(CatalogModelORM.is_active.is_(True))
            query = query.order_by(CatalogModelORM.sort_order.asc(), CatalogModelORM.created_at.asc())
            result = await session.execute(query)
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def list_active(self) -> list[CatalogModel]:
        return await self.list(active_only=True)

    async def create(self, model: CatalogModelCreate) -> CatalogModel:
        """Add a model after the current last entry."""
        async with self._session_factory() as session:
            result = await session.execute(select(func.max(CatalogModelORM.sort_order)))
            max_order = result.scalar() or 0

            orm = CatalogModelORM(
                model_id=model.model_id,
                display_name=model.display_name,
                is_active=model.is_active,
                sort_order=max_order + 1,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def update(self, entry_id: UUID, update: CatalogModelUpdate) -> CatalogModel:
        async with self._session_factory() as session:
            orm = await session.get(CatalogModelORM, str(entry_id))
            if not orm:
                raise NotFoundError(f"Model {entry_id} not found")

            if update.model_id is not None:
                orm.model_id = update.model_id
            if update.display_name is not None:
                orm.display_name = update.display_name
            if update.is_active is not None:
                orm.is_active = update.is_active
            if update.sort_order is not None:
                orm.sort_order = update.sort_order

            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def reorder(self, items: list[ReorderItem]) -> None:
        """Apply all sort order changes in one transaction."""
        async with self._session_factory() as session:
            for item in items:
                orm = await session.get(CatalogModelORM, str(item.id))
                if not orm:
                    await session.rollback()
                    raise NotFoundError(f"Model {item.id} not found")
                orm.sort_order = item.sort_order
            await session.commit()

    async def delete(self, entry_id: UUID) -> bool:
        async with self._session_factory() as session:
            orm = await session.get(CatalogModelORM, str(entry_id))
            if not orm:
                return False

            await session.delete(orm)
            await session.commit()
            return True

    async def seed_defaults(self) -> int:
        """Seed the catalog with well-known models when it is empty."""
        async with self._session_factory() as session:
            result = await session.execute(select(func.count(CatalogModelORM.id)))
            if result.scalar():
                return 0

            for order, (model_id, display_name) in enumerate(DEFAULT_MODELS, start=1):
                session.add(
                    CatalogModelORM(
                        model_id=model_id,
                        display_name=display_name,
                        is_active=True,
                        sort_order=order,
                    )
                )
            await session.commit()
            return len(DEFAULT_MODELS)
