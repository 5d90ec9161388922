"""
Chat model definitions.

Thread and workspace state are frozen snapshots: the thread store replaces
them wholesale and never mutates a field in place.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from prompt_tester.models.enums import ChatMode, MessageRole


class ChatMessage(BaseModel):
    """One message of a thread's history (role and content only)."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str


class ThreadStats(BaseModel):
    """Running statistics of a thread."""

    model_config = ConfigDict(frozen=True)

    input_tokens: int = 0
    output_tokens: int = 0
    cost: float = 0.0
    latency_ms: float = 0.0
    turn_count: int = 0

    def add_turn(self, input_tokens: int, output_tokens: int, cost: float, latency_ms: float) -> "ThreadStats":
        """Return stats with one more assistant turn folded in (latency is a running mean)."""
        turns = self.turn_count + 1
        return ThreadStats(
            input_tokens=self.input_tokens + input_tokens,
            output_tokens=self.output_tokens + output_tokens,
            cost=self.cost + cost,
            latency_ms=(self.latency_ms * self.turn_count + latency_ms) / turns,
            turn_count=turns,
        )


class ThreadState(BaseModel):
    """In-memory thread the dispatch engine operates on."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: str = Field(..., description="Client-local thread ID")
    db_thread_id: Optional[UUID] = Field(None, description="Backing persisted thread, if created")
    model_id: str
    model_name: str = Field(..., description="Display name, suffixed with the iteration number")
    messages: tuple[ChatMessage, ...] = ()
    is_loading: bool = False
    error: Optional[str] = None
    stats: ThreadStats = Field(default_factory=ThreadStats)

    @property
    def is_terminal(self) -> bool:
        return not self.is_loading


class ModelSelection(BaseModel):
    """Mode-specific model selection."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    selected_model_id: Optional[str] = None
    repeat_count: int = 1
    selected_model_ids: tuple[str, ...] = ()
    additional_models: str = Field("", description="Comma-separated ad-hoc model IDs")


class WorkspaceState(BaseModel):
    """Snapshot of the whole in-memory chat workspace."""

    model_config = ConfigDict(frozen=True)

    threads: tuple[ThreadState, ...] = ()
    active_thread_id: Optional[str] = None
    current_session_id: Optional[UUID] = None
    mode: ChatMode = ChatMode.SINGLE_REPEAT
    selection: ModelSelection = Field(default_factory=ModelSelection)
    system_prompt: str = ""
    selected_credential_id: Optional[UUID] = None
    is_loading: bool = False

    def get_thread(self, thread_id: str) -> Optional[ThreadState]:
        for thread in self.threads:
            if thread.id == thread_id:
                return thread
        return None


class SubmitRequest(BaseModel):
    """Request to fan one user turn out to one or more model threads."""

    model_config = ConfigDict(protected_namespaces=())

    user_prompt: str = Field("", description="User message")
    system_prompt: str = Field("", description="Optional system prompt")
    mode: ChatMode = ChatMode.SINGLE_REPEAT
    model_id: Optional[str] = Field(None, description="Model for single_repeat mode")
    repeat_count: int = Field(1, description="Number of repeated calls in single_repeat mode")
    model_ids: list[str] = Field(default_factory=list, description="Checked catalog models for multi_model mode")
    additional_models: str = Field("", description="Comma-separated ad-hoc model IDs for multi_model mode")
    credential_id: Optional[UUID] = Field(None, description="Credential; the default is used when omitted")

    def resolved_model_ids(self) -> list[str]:
        """Checked models followed by the ad-hoc ones. Duplicates are kept."""
        extra = [m.strip() for m in self.additional_models.split(",") if m.strip()]
        return [*self.model_ids, *extra]


class ContinueRequest(BaseModel):
    """Request to append a user turn to one thread or to all idle threads."""

    message: str = Field(..., description="User message")


class CompletionRequest(BaseModel):
    """Raw completion proxy request."""

    messages: list[ChatMessage] = Field(default_factory=list)
    model: str = ""
    credential_id: Optional[UUID] = None


class StreamUsage(BaseModel):
    """Token usage reported by the provider stream."""

    prompt_tokens: int = 0
    completion_tokens: int = 0


class StreamResult(BaseModel):
    """Assembled assistant reply of one streamed request."""

    content: str = ""
    usage: StreamUsage = Field(default_factory=StreamUsage)
