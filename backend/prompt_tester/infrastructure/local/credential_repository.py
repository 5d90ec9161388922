"""
SQLite implementation of Credential repository.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import select, update as sql_update

from prompt_tester.core.exceptions import NotFoundError
from prompt_tester.core.security import decrypt_secret, encrypt_secret, is_encrypted, mask_api_key
from prompt_tester.infrastructure.local.database import CredentialORM, get_session_factory
from prompt_tester.interfaces.credential_repository import ICredentialRepository
from prompt_tester.models.credential import Credential, CredentialCreate, CredentialUpdate


def _plaintext(stored: str) -> str:
    return decrypt_secret(stored) if is_encrypted(stored) else stored


class SqliteCredentialRepository(ICredentialRepository):
    """SQLite implementation of credential repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: CredentialORM) -> Credential:
        """Convert ORM object to Pydantic model with the key masked."""
        return Credential(
            id=UUID(orm.id),
            name=orm.name,
            key=mask_api_key(_plaintext(orm.key)),
            is_default=bool(orm.is_default),
            created_at=orm.created_at,
        )

    async def _clear_defaults(self, session) -> None:
        # Written before the new default; a crash in between leaves zero defaults
        await session.execute(sql_update(CredentialORM).values(is_default=False))
        await session.commit()

    async def create(self, credential: CredentialCreate) -> Credential:
        """Store a new credential, encrypted at rest."""
        async with self._session_factory() as session:
            if credential.is_default:
                await self._clear_defaults(session)

            orm = CredentialORM(
                name=credential.name,
                key=encrypt_secret(credential.key),
                is_default=credential.is_default,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, credential_id: UUID) -> Optional[Credential]:
        async with self._session_factory() as session:
            orm = await session.get(CredentialORM, str(credential_id))
            return self._orm_to_model(orm) if orm else None

    async def get_default(self) -> Optional[Credential]:
        """Get the default credential, falling back to the oldest one."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(CredentialORM).order_by(
                    CredentialORM.is_default.desc(),
                    CredentialORM.created_at.asc(),
                ).limit(1)
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def list(self) -> list[Credential]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(CredentialORM).order_by(CredentialORM.created_at.asc())
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def update(self, credential_id: UUID, update: CredentialUpdate) -> Credential:
        """Update a credential."""
        async with self._session_factory() as session:
            orm = await session.get(CredentialORM, str(credential_id))
            if not orm:
                raise NotFoundError(f"Credential {credential_id} not found")

            if update.is_default:
                await self._clear_defaults(session)
                await session.refresh(orm)

            if update.is_default is not None:
                orm.is_default = update.is_default
            if update.name is not None:
                orm.name = update.name
            if update.key is not None:
                orm.key = encrypt_secret(update.key)

            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def delete(self, credential_id: UUID) -> bool:
        """Delete a credential."""
        async with self._session_factory() as session:
            orm = await session.get(CredentialORM, str(credential_id))
            if not orm:
                return False

            await session.delete(orm)
            await session.commit()
            return True

    async def get_secret(self, credential_id: UUID) -> str:
        """Decrypt a credential's key for use."""
        async with self._session_factory() as session:
            orm = await session.get(CredentialORM, str(credential_id))
            if not orm:
                raise NotFoundError(f"Credential {credential_id} not found")
            return _plaintext(orm.key)
