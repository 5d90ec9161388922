import asyncio
import json
from typing import Any, Optional
from uuid import UUID

from prompt_tester.models.enums import SessionEventType


class SessionEventBroker:
    def __init__(self) -> None:
        self._queues: set[asyncio.Queue[str]] = set()
        self._lock = asyncio.Lock()

    async def connect(self) -> asyncio.Queue[str]:
        queue: asyncio.Queue[str] = asyncio.Queue()
        async with self._lock:
            self._queues.add(queue)
        return queue

    async def disconnect(self, queue: asyncio.Queue[str]) -> None:
        async with self._lock:
            self._queues.discard(queue)

    async def publish(self, payload: dict[str, Any]) -> None:
        message = json.dumps(payload, separators=(",", ":"), default=str)
        async with self._lock:
            queues = list(self._queues)
        for queue in queues:
            queue.put_nowait(message)

    async def publish_event(
        self,
        event: SessionEventType,
        session_id: Optional[UUID],
        **data: Any,
    ) -> None:
        payload: dict[str, Any] = {"type": event.value, "session_id": session_id}
        payload.update(data)
        await self.publish(payload)

    @property
    def subscriber_count(self) -> int:
        return len(self._queues)


session_events = SessionEventBroker()
