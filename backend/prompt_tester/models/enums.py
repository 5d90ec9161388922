"""
Enum definitions for the application.

These enums are used across models and provide type-safe mode/role values.
"""

from enum import Enum


class ChatMode(str, Enum):
    """How a submission fans out into threads."""

    SINGLE_REPEAT = "single_repeat"
    MULTI_MODEL = "multi_model"


class MessageRole(str, Enum):
    """Role of a chat message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class PromptKind(str, Enum):
    """Which prompt field a saved snippet fills."""

    SYSTEM = "system"
    USER = "user"


class SessionEventType(str, Enum):
    """Notifications published when sessions or threads change."""

    SESSION_CREATED = "session_created"
    SESSION_RENAMED = "session_renamed"
    SESSION_DELETED = "session_deleted"
    THREAD_CREATED = "thread_created"
    THREAD_UPDATED = "thread_updated"
