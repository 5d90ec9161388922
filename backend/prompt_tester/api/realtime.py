"""
Session change notifications over server-sent events.

Clients keep the session list in sync by listening here instead of polling.
Each event is a JSON object with ``type`` (session_created, session_renamed,
session_deleted, thread_created, thread_updated) and ``session_id``, plus
event-specific fields such as ``thread_id`` or ``name``.
"""

import asyncio
from typing import AsyncGenerator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from prompt_tester.api.deps import SessionEvents
from prompt_tester.core.logger import logger

router = APIRouter()

# Seconds between ": keep-alive" comment lines on an idle stream
KEEP_ALIVE_SECONDS = 15


@router.get("/stream")
async def stream_session_events(
    request: Request,
    events: SessionEvents,
) -> StreamingResponse:
    """Subscribe to session and thread changes until the client disconnects."""
    queue = await events.connect()
    logger.debug(f"Session event subscriber connected ({events.subscriber_count} active)")

    async def event_generator() -> AsyncGenerator[str, None]:
        try:
            yield 'data: {"type":"connected"}\n\n'
            while not await request.is_disconnected():
                try:
                    message = await asyncio.wait_for(queue.get(), timeout=KEEP_ALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield f"data: {message}\n\n"
        finally:
            await events.disconnect(queue)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
