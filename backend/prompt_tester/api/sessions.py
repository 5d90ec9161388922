"""
Session history endpoints.

Sessions, threads and messages are append-only apart from renaming and
deleting a whole session. Changes are announced on the realtime stream.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from prompt_tester.api.deps import DispatchService, SessionEvents, SessionRepo
from prompt_tester.api.errors import to_http_exception
from prompt_tester.core.exceptions import NotFoundError
from prompt_tester.models.chat import WorkspaceState
from prompt_tester.models.enums import SessionEventType
from prompt_tester.models.session import (
    Message,
    MessageCreate,
    Session,
    SessionCreate,
    SessionDetail,
    SessionRename,
    SessionSummary,
    Thread,
    ThreadCreate,
)

router = APIRouter()


@router.get("", response_model=list[SessionSummary])
async def list_sessions(
    repo: SessionRepo,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """List sessions, newest first."""
    return await repo.list_sessions(limit=limit, offset=offset)


@router.post("", response_model=Session, status_code=status.HTTP_201_CREATED)
async def create_session(session: SessionCreate, repo: SessionRepo, events: SessionEvents):
    created = await repo.create_session(session)
    await events.publish_event(SessionEventType.SESSION_CREATED, created.id)
    return created


@router.post("/threads", response_model=Thread, status_code=status.HTTP_201_CREATED)
async def create_thread(thread: ThreadCreate, repo: SessionRepo, events: SessionEvents):
    try:
        created = await repo.create_thread(thread)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    await events.publish_event(
        SessionEventType.THREAD_CREATED,
        created.session_id,
        thread_id=created.id,
        model_id=created.model_id,
    )
    return created


@router.post("/messages", response_model=Message, status_code=status.HTTP_201_CREATED)
async def append_message(message: MessageCreate, repo: SessionRepo):
    try:
        return await repo.append_message(message)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )


@router.get("/{session_id}", response_model=SessionDetail)
async def get_session(session_id: UUID, repo: SessionRepo):
    """Get a session with its threads and messages."""
    session = await repo.get_session(session_id)
    if not session:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found",
        )
    return session


@router.patch("/{session_id}", response_model=Session)
async def rename_session(
    session_id: UUID,
    rename: SessionRename,
    repo: SessionRepo,
    events: SessionEvents,
):
    try:
        session = await repo.rename_session(session_id, rename.name)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    await events.publish_event(SessionEventType.SESSION_RENAMED, session.id, name=session.name)
    return session


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: UUID,
    repo: SessionRepo,
    events: SessionEvents,
    service: DispatchService,
):
    """
    Delete a session with all of its threads and messages.

    If it is the session loaded in the workspace, the workspace is cleared
    so the next submission starts a new session.
    """
    deleted = await repo.delete_session(session_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found",
        )
    if service.store.snapshot().current_session_id == session_id:
        service.new_session()
    await events.publish_event(SessionEventType.SESSION_DELETED, session_id)


@router.post("/{session_id}/load", response_model=WorkspaceState)
async def load_session(session_id: UUID, service: DispatchService):
    """Rehydrate a saved session into the live workspace."""
    try:
        return await service.load_session(session_id)
    except NotFoundError as e:
        raise to_http_exception(e)
