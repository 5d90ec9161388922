"""
Rebuild live workspace threads from a persisted session.
"""

from typing import Iterable, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from prompt_tester.models.catalog import CatalogModel
from prompt_tester.models.chat import ChatMessage, ModelSelection, ThreadState, ThreadStats
from prompt_tester.models.enums import ChatMode, MessageRole
from prompt_tester.models.session import SessionDetail, ThreadDetail


class RehydratedSession(BaseModel):
    """Workspace pieces recovered from a persisted session."""

    model_config = ConfigDict(frozen=True)

    session_id: UUID
    threads: tuple[ThreadState, ...]
    mode: ChatMode
    selection: ModelSelection
    system_prompt: str
    credential_id: Optional[UUID] = None


def thread_display_name(
    model_id: str,
    iteration_number: Optional[int],
    catalog: Iterable[CatalogModel],
) -> str:
    """Catalog display name (or the raw id), with ``#n`` for repeated runs."""
    name = next((m.display_name for m in catalog if m.model_id == model_id), model_id)
    return f"{name} #{iteration_number}" if iteration_number else name


def local_thread_id(db_thread_id: UUID) -> str:
    return f"thread-{db_thread_id}"


def rehydrate_thread(
    thread: ThreadDetail,
    system_prompt: str,
    catalog: list[CatalogModel],
) -> ThreadState:
    ordered = sorted(thread.messages, key=lambda m: m.created_at)

    messages: list[ChatMessage] = []
    if system_prompt.strip():
        # Synthetic: the system prompt lives on the session, not in message rows
        messages.append(ChatMessage(role=MessageRole.SYSTEM, content=system_prompt))
    messages.extend(ChatMessage(role=m.role, content=m.content) for m in ordered)

    replies = [m for m in ordered if m.role == MessageRole.ASSISTANT]
    total_latency = sum(m.latency_ms or 0 for m in replies)
    stats = ThreadStats(
        input_tokens=sum(m.input_tokens or 0 for m in replies),
        output_tokens=sum(m.output_tokens or 0 for m in replies),
        cost=sum(m.cost or 0.0 for m in replies),
        latency_ms=total_latency / len(replies) if replies else 0.0,
        turn_count=len(replies),
    )

    return ThreadState(
        id=local_thread_id(thread.id),
        db_thread_id=thread.id,
        model_id=thread.model_id,
        model_name=thread_display_name(thread.model_id, thread.iteration_number, catalog),
        messages=tuple(messages),
        is_loading=False,
        stats=stats,
    )


def infer_selection(mode: ChatMode, threads: tuple[ThreadState, ...]) -> ModelSelection:
    """Recover the model selection that would reproduce ``threads``."""
    if not threads:
        return ModelSelection()
    if mode == ChatMode.SINGLE_REPEAT:
        model_id = threads[0].model_id
        return ModelSelection(
            selected_model_id=model_id,
            repeat_count=sum(1 for t in threads if t.model_id == model_id),
        )
    # dict keeps first-seen order
    unique = tuple(dict.fromkeys(t.model_id for t in threads))
    return ModelSelection(selected_model_ids=unique)


def rehydrate_session(session: SessionDetail, catalog: list[CatalogModel]) -> RehydratedSession:
    """
    Convert a persisted session into workspace threads and selection.

    Args:
        session: Session with nested threads and messages
        catalog: Current model catalog, used for display names

    Returns:
        Threads plus the mode, selection, system prompt and credential to restore
    """
    system_prompt = session.system_prompt or ""
    threads = tuple(rehydrate_thread(t, system_prompt, catalog) for t in session.threads)
    return RehydratedSession(
        session_id=session.id,
        threads=threads,
        mode=session.mode,
        selection=infer_selection(session.mode, threads),
        system_prompt=system_prompt,
        credential_id=session.credential_id,
    )
