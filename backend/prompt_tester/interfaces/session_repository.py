"""
Session repository interface.

Defines the contract for session, thread and message persistence.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from prompt_tester.models.session import (
    Message,
    MessageCreate,
    Session,
    SessionCreate,
    SessionDetail,
    SessionSummary,
    Thread,
    ThreadCreate,
)


class ISessionRepository(ABC):
    """Abstract interface for conversation persistence."""

    @abstractmethod
    async def create_session(self, session: SessionCreate) -> Session:
        """
        Create a session.

        Args:
            session: Mode, optional name, credential and system prompt

        Returns:
            Created session
        """
        pass

    @abstractmethod
    async def list_sessions(self, limit: int = 100, offset: int = 0) -> list[SessionSummary]:
        """
        List sessions, newest first.

        Args:
            limit: Max sessions
            offset: Pagination offset

        Returns:
            Sessions with their thread counts
        """
        pass

    @abstractmethod
    async def get_session(self, session_id: UUID) -> Optional[SessionDetail]:
        """
        Get a session with nested threads and messages.

        Messages are returned in creation order.

        Args:
            session_id: Session ID

        Returns:
            Session detail, or None
        """
        pass

    @abstractmethod
    async def rename_session(self, session_id: UUID, name: Optional[str]) -> Session:
        """
        Rename a session.

        Raises:
            NotFoundError: If the session doesn't exist
        """
        pass

    @abstractmethod
    async def delete_session(self, session_id: UUID) -> bool:
        """Delete a session with its threads and messages."""
        pass

    @abstractmethod
    async def create_thread(self, thread: ThreadCreate) -> Thread:
        """
        Create a thread in a session.

        Raises:
            NotFoundError: If the session doesn't exist
        """
        pass

    @abstractmethod
    async def append_message(self, message: MessageCreate) -> Message:
        """
        Append a message to a thread.

        Raises:
            NotFoundError: If the thread doesn't exist
        """
        pass
