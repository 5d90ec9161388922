"""
Persisted session, thread and message models.

A session groups the threads of one conversation; each thread holds the
append-only message history of one model lane.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from prompt_tester.models.enums import ChatMode, MessageRole


class SessionCreate(BaseModel):
    """Schema for creating a session."""

    mode: ChatMode
    name: Optional[str] = Field(None, max_length=200)
    credential_id: Optional[UUID] = None
    system_prompt: Optional[str] = None


class SessionRename(BaseModel):
    """Schema for renaming a session."""

    name: Optional[str] = Field(None, max_length=200)


class Session(BaseModel):
    """Session without nested threads."""

    id: UUID
    name: Optional[str] = None
    credential_id: Optional[UUID] = None
    system_prompt: Optional[str] = None
    mode: ChatMode
    created_at: datetime


class SessionSummary(Session):
    """Session list entry."""

    thread_count: int = 0


class ThreadCreate(BaseModel):
    """Schema for creating a persisted thread."""

    model_config = ConfigDict(protected_namespaces=())

    session_id: UUID
    model_id: str = Field(..., min_length=1)
    iteration_number: Optional[int] = Field(None, ge=1)


class MessageUsage(BaseModel):
    """Per-message usage metrics (assistant turns only)."""

    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    cost: Optional[float] = None
    latency_ms: Optional[int] = None


class MessageCreate(BaseModel):
    """Schema for appending a message to a thread."""

    thread_id: UUID
    role: MessageRole
    content: str = Field(..., min_length=1)
    attachments: Optional[Any] = None
    usage: Optional[MessageUsage] = None

    @field_validator("role")
    @classmethod
    def _persisted_roles_only(cls, role: MessageRole) -> MessageRole:
        if role == MessageRole.SYSTEM:
            raise ValueError("role must be user or assistant")
        return role


class Message(BaseModel):
    """Persisted message. Immutable once written."""

    id: UUID
    thread_id: UUID
    role: MessageRole
    content: str
    attachments: Optional[Any] = None
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    cost: Optional[float] = None
    latency_ms: Optional[int] = None
    created_at: datetime


class Thread(BaseModel):
    """Persisted thread."""

    model_config = ConfigDict(protected_namespaces=())

    id: UUID
    session_id: UUID
    model_id: str
    iteration_number: Optional[int] = None
    created_at: datetime


class ThreadDetail(Thread):
    """Thread with its messages."""

    messages: list[Message] = Field(default_factory=list)


class SessionDetail(Session):
    """Session with nested threads and messages."""

    threads: list[ThreadDetail] = Field(default_factory=list)
