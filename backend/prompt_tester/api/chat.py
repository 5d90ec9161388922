"""
Chat API endpoints.

Drives the live workspace: fan-out submissions, follow-up turns,
cancellation, and a raw streaming proxy to the model provider.
"""

from typing import AsyncGenerator, Optional

import httpx
from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse, StreamingResponse

from prompt_tester.api.deps import DispatchService, LLMProvider
from prompt_tester.api.errors import to_http_exception
from prompt_tester.core.exceptions import PromptTesterError, UpstreamHTTPError
from prompt_tester.core.logger import logger
from prompt_tester.models.chat import (
    CompletionRequest,
    ContinueRequest,
    SubmitRequest,
    ThreadState,
    WorkspaceState,
)
from prompt_tester.services.stream_decoder import DONE_SENTINEL

router = APIRouter()


@router.post("/submit", response_model=WorkspaceState)
async def submit(request: SubmitRequest, service: DispatchService):
    """
    Send one prompt to every selected model (or N times to one model).

    Returns once every thread finished or failed. Per-thread failures are
    reported on the threads, not as an HTTP error.
    """
    try:
        return await service.submit(request)
    except PromptTesterError as e:
        raise to_http_exception(e)


@router.post("/threads/messages", response_model=WorkspaceState)
async def send_to_all_threads(request: ContinueRequest, service: DispatchService):
    """Continue every idle, error-free thread with the same message."""
    try:
        return await service.continue_all(request.message)
    except PromptTesterError as e:
        raise to_http_exception(e)


@router.post("/threads/{thread_id}/messages", response_model=ThreadState)
async def send_to_thread(thread_id: str, request: ContinueRequest, service: DispatchService):
    """Continue one thread with its full history replayed."""
    try:
        return await service.continue_thread(thread_id, request.message)
    except PromptTesterError as e:
        raise to_http_exception(e)


@router.post("/threads/{thread_id}/cancel")
async def cancel_thread(thread_id: str, service: DispatchService):
    if service.store.get_thread(thread_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Thread {thread_id} not found",
        )
    return {"cancelled": service.cancel(thread_id)}


@router.get("/state", response_model=WorkspaceState)
async def get_state(service: DispatchService):
    """Current workspace snapshot."""
    return service.store.snapshot()


@router.delete("/state", response_model=WorkspaceState)
async def new_session(service: DispatchService):
    """Start a new session: abort running turns and clear the workspace."""
    return service.new_session()


@router.post("/completions")
async def stream_completion(
    request: CompletionRequest,
    service: DispatchService,
    provider: LLMProvider,
):
    """Relay the provider's event stream for one completion request verbatim."""
    if not request.messages or not request.model:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Messages and model are required",
        )

    try:
        _, api_key = await service.resolve_api_key(request.credential_id)
    except PromptTesterError as e:
        raise to_http_exception(e)

    events = provider.stream_events(request.model, request.messages, api_key)

    # Pull the first payload here so an upstream error becomes a JSON response
    first: Optional[str] = None
    try:
        first = await events.__anext__()
    except StopAsyncIteration:
        pass
    except UpstreamHTTPError as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.message})
    except httpx.HTTPError as e:
        logger.warning(f"Completion request to {request.model} failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"error": "Failed to reach model provider"},
        )

    async def relay() -> AsyncGenerator[str, None]:
        try:
            if first is None:
                return
            yield f"data: {first}\n\n"
            if first == DONE_SENTINEL:
                return
            async for payload in events:
                yield f"data: {payload}\n\n"
        except httpx.HTTPError as e:
            logger.warning(f"Completion stream from {request.model} broke off: {e}")
        finally:
            await events.aclose()

    return StreamingResponse(
        relay(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
