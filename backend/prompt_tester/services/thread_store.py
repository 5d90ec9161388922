"""
Workspace state container.

Every mutation is a pure reducer taking a frozen ``WorkspaceState`` and
returning a new one; ``ThreadStore`` only swaps the current snapshot, so a
reader always sees a whole state.
"""

from typing import Callable, Optional
from uuid import UUID

from prompt_tester.models.chat import (
    ChatMessage,
    ModelSelection,
    ThreadState,
    ThreadStats,
    WorkspaceState,
)
from prompt_tester.models.enums import ChatMode, MessageRole

Reducer = Callable[[WorkspaceState], WorkspaceState]


def add_thread(state: WorkspaceState, thread: ThreadState) -> WorkspaceState:
    return state.model_copy(
        update={"threads": (*state.threads, thread), "active_thread_id": thread.id}
    )


def update_thread(state: WorkspaceState, thread_id: str, **changes) -> WorkspaceState:
    """Replace one thread with a copy carrying ``changes``. Unknown ids are a no-op."""
    threads = tuple(
        t.model_copy(update=changes) if t.id == thread_id else t for t in state.threads
    )
    return state.model_copy(update={"threads": threads})


def append_message(state: WorkspaceState, thread_id: str, message: ChatMessage) -> WorkspaceState:
    thread = state.get_thread(thread_id)
    if thread is None:
        return state
    return update_thread(state, thread_id, messages=(*thread.messages, message))


def start_turn(state: WorkspaceState, thread_id: str, user_content: str) -> WorkspaceState:
    """Append a user turn and mark the thread as awaiting a reply."""
    thread = state.get_thread(thread_id)
    if thread is None:
        return state
    message = ChatMessage(role=MessageRole.USER, content=user_content)
    return update_thread(
        state,
        thread_id,
        messages=(*thread.messages, message),
        is_loading=True,
        error=None,
    )


def complete_turn(
    state: WorkspaceState,
    thread_id: str,
    content: str,
    input_tokens: int,
    output_tokens: int,
    cost: float,
    latency_ms: float,
) -> WorkspaceState:
    thread = state.get_thread(thread_id)
    if thread is None:
        return state
    message = ChatMessage(role=MessageRole.ASSISTANT, content=content)
    return update_thread(
        state,
        thread_id,
        messages=(*thread.messages, message),
        is_loading=False,
        error=None,
        stats=thread.stats.add_turn(input_tokens, output_tokens, cost, latency_ms),
    )


def fail_turn(state: WorkspaceState, thread_id: str, error: str) -> WorkspaceState:
    return update_thread(state, thread_id, is_loading=False, error=error)


def set_loading(state: WorkspaceState, is_loading: bool) -> WorkspaceState:
    return state.model_copy(update={"is_loading": is_loading})


def set_session(state: WorkspaceState, session_id: Optional[UUID]) -> WorkspaceState:
    return state.model_copy(update={"current_session_id": session_id})


def set_active_thread(state: WorkspaceState, thread_id: Optional[str]) -> WorkspaceState:
    return state.model_copy(update={"active_thread_id": thread_id})


def configure(
    state: WorkspaceState,
    mode: ChatMode,
    selection: ModelSelection,
    system_prompt: str,
    credential_id: Optional[UUID],
) -> WorkspaceState:
    return state.model_copy(
        update={
            "mode": mode,
            "selection": selection,
            "system_prompt": system_prompt,
            "selected_credential_id": credential_id,
        }
    )


def clear_threads(state: WorkspaceState) -> WorkspaceState:
    """Start a new session: drop threads and forget the backing session."""
    return state.model_copy(
        update={
            "threads": (),
            "active_thread_id": None,
            "current_session_id": None,
            "is_loading": False,
        }
    )


def load_workspace(
    state: WorkspaceState,
    session_id: UUID,
    threads: tuple[ThreadState, ...],
    mode: ChatMode,
    selection: ModelSelection,
    system_prompt: str,
    credential_id: Optional[UUID],
) -> WorkspaceState:
    """Replace the workspace with a rehydrated session."""
    return WorkspaceState(
        threads=threads,
        active_thread_id=threads[0].id if threads else None,
        current_session_id=session_id,
        mode=mode,
        selection=selection,
        system_prompt=system_prompt,
        selected_credential_id=credential_id,
        is_loading=False,
    )


def new_thread(
    thread_id: str,
    model_id: str,
    model_name: str,
    messages: tuple[ChatMessage, ...],
    db_thread_id: Optional[UUID] = None,
) -> ThreadState:
    """A thread created in the loading state for a fresh dispatch."""
    return ThreadState(
        id=thread_id,
        db_thread_id=db_thread_id,
        model_id=model_id,
        model_name=model_name,
        messages=messages,
        is_loading=True,
        stats=ThreadStats(),
    )


class ThreadStore:
    """Holds the current workspace snapshot."""

    def __init__(self, initial: Optional[WorkspaceState] = None):
        self._state = initial or WorkspaceState()

    def snapshot(self) -> WorkspaceState:
        return self._state

    def apply(self, reducer: Reducer) -> WorkspaceState:
        self._state = reducer(self._state)
        return self._state

    def get_thread(self, thread_id: str) -> Optional[ThreadState]:
        return self._state.get_thread(thread_id)
