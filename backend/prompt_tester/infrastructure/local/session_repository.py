"""
SQLite implementation of the session repository.
"""

from __future__ import annotations

import json
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import delete, func, select

from prompt_tester.core.exceptions import NotFoundError
from prompt_tester.core.logger import setup_logger
from prompt_tester.infrastructure.local.database import (
    MessageORM,
    SessionORM,
    ThreadORM,
    get_session_factory,
)
from prompt_tester.interfaces.session_repository import ISessionRepository
from prompt_tester.models.enums import ChatMode, MessageRole
from prompt_tester.models.session import (
    Message,
    MessageCreate,
    Session,
    SessionCreate,
    SessionDetail,
    SessionSummary,
    Thread,
    ThreadCreate,
    ThreadDetail,
)

logger = setup_logger(__name__)


def _decode_attachments(raw: Optional[str]) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Discarding unreadable message attachments")
        return None


class SqliteSessionRepository(ISessionRepository):
    """SQLite implementation of session repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _session_orm_to_model(self, orm: SessionORM) -> Session:
        return Session(
            id=UUID(orm.id),
            name=orm.name,
            credential_id=UUID(orm.credential_id) if orm.credential_id else None,
            system_prompt=orm.system_prompt,
            mode=ChatMode(orm.mode),
            created_at=orm.created_at,
        )

    def _thread_orm_to_model(self, orm: ThreadORM) -> Thread:
        return Thread(
            id=UUID(orm.id),
            session_id=UUID(orm.session_id),
            model_id=orm.model_id,
            iteration_number=orm.iteration_number,
            created_at=orm.created_at,
        )

    def _message_orm_to_model(self, orm: MessageORM) -> Message:
        return Message(
            id=UUID(orm.id),
            thread_id=UUID(orm.thread_id),
            role=MessageRole(orm.role),
            content=orm.content,
            attachments=_decode_attachments(orm.attachments),
            input_tokens=orm.tokens_input,
            output_tokens=orm.tokens_output,
            cost=orm.cost,
            latency_ms=orm.latency_ms,
            created_at=orm.created_at,
        )

    async def create_session(self, session_in: SessionCreate) -> Session:
        async with self._session_factory() as session:
            orm = SessionORM(
                name=session_in.name,
                credential_id=str(session_in.credential_id) if session_in.credential_id else None,
                system_prompt=session_in.system_prompt or None,
                mode=session_in.mode.value,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._session_orm_to_model(orm)

    async def list_sessions(self, limit: int = 100, offset: int = 0) -> list[SessionSummary]:
        """List sessions, newest first, with thread counts."""
        async with self._session_factory() as session:
            thread_count = func.count(ThreadORM.id).label("thread_count")
            query = (
                select(SessionORM, thread_count)
                .outerjoin(ThreadORM, ThreadORM.session_id == SessionORM.id)
                .group_by(SessionORM.id)
                .order_by(SessionORM.created_at.desc())
                .limit(limit)
                .offset(offset)
            )
            result = await session.execute(query)
            summaries = []
            for orm, count in result.all():
                base = self._session_orm_to_model(orm)
                summaries.append(SessionSummary(**base.model_dump(), thread_count=count or 0))
            return summaries

    async def get_session(self, session_id: UUID) -> Optional[SessionDetail]:
        """Get a session with threads and messages in creation order."""
        async with self._session_factory() as session:
            orm = await session.get(SessionORM, str(session_id))
            if not orm:
                return None

            threads_result = await session.execute(
                select(ThreadORM)
                .where(ThreadORM.session_id == orm.id)
                .order_by(ThreadORM.created_at.asc())
            )
            thread_orms = threads_result.scalars().all()

            messages_by_thread: dict[str, list[Message]] = {t.id: [] for t in thread_orms}
            if thread_orms:
                messages_result = await session.execute(
                    select(MessageORM)
                    .where(MessageORM.thread_id.in_(list(messages_by_thread)))
                    .order_by(MessageORM.created_at.asc(), MessageORM.id.asc())
                )
                for message_orm in messages_result.scalars().all():
                    messages_by_thread[message_orm.thread_id].append(
                        self._message_orm_to_model(message_orm)
                    )

            threads = [
                ThreadDetail(
                    **self._thread_orm_to_model(t).model_dump(),
                    messages=messages_by_thread[t.id],
                )
                for t in thread_orms
            ]
            return SessionDetail(**self._session_orm_to_model(orm).model_dump(), threads=threads)

    async def rename_session(self, session_id: UUID, name: Optional[str]) -> Session:
        async with self._session_factory() as session:
            orm = await session.get(SessionORM, str(session_id))
            if not orm:
                raise NotFoundError(f"Session {session_id} not found")

            orm.name = name
            await session.commit()
            await session.refresh(orm)
            return self._session_orm_to_model(orm)

    async def delete_session(self, session_id: UUID) -> bool:
        """Delete a session, its threads and their messages in one transaction."""
        async with self._session_factory() as session:
            orm = await session.get(SessionORM, str(session_id))
            if not orm:
                return False

            # SQLite only honours ON DELETE CASCADE with foreign_keys enabled
            thread_ids = select(ThreadORM.id).where(ThreadORM.session_id == orm.id)
            await session.execute(delete(MessageORM).where(MessageORM.thread_id.in_(thread_ids)))
            await session.execute(delete(ThreadORM).where(ThreadORM.session_id == orm.id))
            await session.delete(orm)
            await session.commit()
            return True

    async def create_thread(self, thread: ThreadCreate) -> Thread:
        async with self._session_factory() as session:
            parent = await session.get(SessionORM, str(thread.session_id))
            if not parent:
                raise NotFoundError(f"Session {thread.session_id} not found")

            orm = ThreadORM(
                session_id=parent.id,
                model_id=thread.model_id,
                iteration_number=thread.iteration_number,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._thread_orm_to_model(orm)

    async def append_message(self, message: MessageCreate) -> Message:
        async with self._session_factory() as session:
            parent = await session.get(ThreadORM, str(message.thread_id))
            if not parent:
                raise NotFoundError(f"Thread {message.thread_id} not found")

            usage = message.usage
            orm = MessageORM(
                thread_id=parent.id,
                role=message.role.value,
                content=message.content,
                attachments=json.dumps(message.attachments) if message.attachments is not None else None,
                tokens_input=usage.input_tokens if usage else None,
                tokens_output=usage.output_tokens if usage else None,
                cost=usage.cost if usage else None,
                latency_ms=usage.latency_ms if usage else None,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._message_orm_to_model(orm)
