"""Pydantic models (schemas) for the application."""

from prompt_tester.models.enums import ChatMode, MessageRole, PromptKind, SessionEventType
from prompt_tester.models.credential import Credential, CredentialCreate, CredentialUpdate
from prompt_tester.models.catalog import (
    CatalogModel,
    CatalogModelCreate,
    CatalogModelUpdate,
    PromptSnippet,
    PromptSnippetCreate,
    PromptSnippetUpdate,
    ReorderItem,
)
from prompt_tester.models.session import (
    Message,
    MessageCreate,
    MessageUsage,
    Session,
    SessionCreate,
    SessionDetail,
    SessionSummary,
    Thread,
    ThreadCreate,
    ThreadDetail,
)
from prompt_tester.models.chat import (
    ChatMessage,
    ModelSelection,
    StreamResult,
    StreamUsage,
    SubmitRequest,
    ThreadState,
    ThreadStats,
    WorkspaceState,
)

__all__ = [
    # Enums
    "ChatMode",
    "MessageRole",
    "PromptKind",
    "SessionEventType",
    # Credential
    "Credential",
    "CredentialCreate",
    "CredentialUpdate",
    # Catalog
    "CatalogModel",
    "CatalogModelCreate",
    "CatalogModelUpdate",
    "ReorderItem",
    "PromptSnippet",
    "PromptSnippetCreate",
    "PromptSnippetUpdate",
    # Session
    "Session",
    "SessionCreate",
    "SessionSummary",
    "SessionDetail",
    "Thread",
    "ThreadCreate",
    "ThreadDetail",
    "Message",
    "MessageCreate",
    "MessageUsage",
    # Workspace
    "ChatMessage",
    "ModelSelection",
    "StreamResult",
    "StreamUsage",
    "SubmitRequest",
    "ThreadState",
    "ThreadStats",
    "WorkspaceState",
]
