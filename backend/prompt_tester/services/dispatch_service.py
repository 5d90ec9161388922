"""
Chat dispatch engine.

Turns one user submission into N concurrent model calls, one per workspace
thread. Each turn is isolated: a failure ends only its own thread, with the
error recorded on that thread. Persistence of threads and messages is best
effort and never delays or fails a turn.
"""

import asyncio
import time
from functools import partial
from typing import Optional, Sequence
from uuid import UUID, uuid4

from prompt_tester.core.config import Settings, get_settings
from prompt_tester.core.exceptions import (
    BusinessLogicError,
    ConfigurationError,
    CredentialResolutionError,
    NotFoundError,
    SessionCreationError,
)
from prompt_tester.core.logger import setup_logger
from prompt_tester.interfaces.credential_repository import ICredentialRepository
from prompt_tester.interfaces.llm_provider import ILLMProvider
from prompt_tester.interfaces.model_catalog_repository import IModelCatalogRepository
from prompt_tester.interfaces.session_repository import ISessionRepository
from prompt_tester.models.catalog import CatalogModel
from prompt_tester.models.chat import (
    ChatMessage,
    ModelSelection,
    StreamResult,
    SubmitRequest,
    ThreadState,
    WorkspaceState,
)
from prompt_tester.models.enums import ChatMode, MessageRole, SessionEventType
from prompt_tester.models.session import MessageCreate, MessageUsage, SessionCreate, ThreadCreate
from prompt_tester.services import thread_store as reducers
from prompt_tester.services.persistence_writer import PersistenceWriter
from prompt_tester.services.pricing_service import PricingCache
from prompt_tester.services.realtime_service import SessionEventBroker
from prompt_tester.services.rehydration import rehydrate_session, thread_display_name
from prompt_tester.services.thread_store import ThreadStore

logger = setup_logger(__name__)

CANCELLED_ERROR = "Request cancelled"
EMPTY_RESPONSE_ERROR = "Empty response from model"


class ChatDispatchService:
    """Fan-out, streaming and reconciliation of chat turns."""

    def __init__(
        self,
        store: ThreadStore,
        session_repo: ISessionRepository,
        credential_repo: ICredentialRepository,
        catalog_repo: IModelCatalogRepository,
        provider: ILLMProvider,
        pricing: PricingCache,
        writer: PersistenceWriter,
        events: SessionEventBroker,
        settings: Optional[Settings] = None,
        clock=time.monotonic,
    ):
        self._store = store
        self._sessions = session_repo
        self._credentials = credential_repo
        self._catalog = catalog_repo
        self._provider = provider
        self._pricing = pricing
        self._writer = writer
        self._events = events
        self._settings = settings or get_settings()
        self._clock = clock
        self._tasks: dict[str, asyncio.Task] = {}
        self._cancel_requested: set[str] = set()

    @property
    def store(self) -> ThreadStore:
        return self._store

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def _plan_threads(self, request: SubmitRequest) -> list[tuple[str, Optional[int]]]:
        """(model_id, iteration_number) per thread to create."""
        if request.mode == ChatMode.SINGLE_REPEAT:
            if not request.model_id:
                raise ConfigurationError("No model selected")
            max_repeat = self._settings.MAX_REPEAT_COUNT
            if not 1 <= request.repeat_count <= max_repeat:
                raise ConfigurationError(f"Repeat count must be between 1 and {max_repeat}")
            return [(request.model_id, i) for i in range(1, request.repeat_count + 1)]

        model_ids = request.resolved_model_ids()
        if not model_ids:
            raise ConfigurationError("No models selected")
        return [(model_id, None) for model_id in model_ids]

    async def resolve_api_key(self, credential_id: Optional[UUID]) -> tuple[UUID, str]:
        """Return the credential id actually used and its plaintext secret."""
        try:
            if credential_id:
                credential = await self._credentials.get(credential_id)
                if credential is None:
                    raise CredentialResolutionError(f"Credential {credential_id} not found")
            else:
                credential = await self._credentials.get_default()
                if credential is None:
                    raise ConfigurationError("No API key configured")
            secret = await self._credentials.get_secret(credential.id)
        except (ConfigurationError, CredentialResolutionError):
            raise
        except Exception as e:
            raise CredentialResolutionError(f"Failed to resolve API key: {e}") from e
        return credential.id, secret

    async def _ensure_session(self, request: SubmitRequest, credential_id: UUID) -> UUID:
        current = self._store.snapshot().current_session_id
        if current:
            return current
        try:
            session = await self._sessions.create_session(
                SessionCreate(
                    mode=request.mode,
                    credential_id=credential_id,
                    system_prompt=request.system_prompt or None,
                )
            )
        except Exception as e:
            logger.warning(f"Failed to create session: {e}")
            raise SessionCreationError("Failed to create session") from e

        self._store.apply(lambda s: reducers.set_session(s, session.id))
        await self._events.publish_event(SessionEventType.SESSION_CREATED, session.id)
        return session.id

    async def _load_catalog(self) -> list[CatalogModel]:
        try:
            return await self._catalog.list()
        except Exception as e:
            logger.warning(f"Failed to load model catalog, using raw model ids: {e}")
            return []

    async def _create_backing_thread(
        self,
        session_id: UUID,
        model_id: str,
        iteration_number: Optional[int],
    ) -> Optional[UUID]:
        try:
            thread = await self._sessions.create_thread(
                ThreadCreate(
                    session_id=session_id,
                    model_id=model_id,
                    iteration_number=iteration_number,
                )
            )
        except Exception as e:
            logger.warning(f"Failed to create thread for {model_id}, turns will not be saved: {e}")
            return None
        await self._events.publish_event(
            SessionEventType.THREAD_CREATED,
            session_id,
            thread_id=thread.id,
            model_id=model_id,
        )
        return thread.id

    def _persist_message(
        self,
        db_thread_id: Optional[UUID],
        role: MessageRole,
        content: str,
        usage: Optional[MessageUsage] = None,
    ) -> None:
        if db_thread_id is None:
            return
        message = MessageCreate(thread_id=db_thread_id, role=role, content=content, usage=usage)
        self._writer.submit(
            db_thread_id,
            partial(self._sessions.append_message, message),
            label=f"{role.value} message write",
        )

    async def submit(self, request: SubmitRequest) -> WorkspaceState:
        """
        Dispatch one user turn to every planned thread and wait for all to settle.

        Args:
            request: Prompt, mode and model selection

        Returns:
            Workspace snapshot after every thread reached a terminal state

        Raises:
            ConfigurationError: Empty prompt, no model or no credential
            CredentialResolutionError: The credential could not be resolved
            SessionCreationError: The backing session could not be created
        """
        user_prompt = request.user_prompt.strip()
        if not user_prompt:
            raise ConfigurationError("Prompt is empty")
        plan = self._plan_threads(request)

        credential_id, api_key = await self.resolve_api_key(request.credential_id)
        session_id = await self._ensure_session(request, credential_id)

        selection = ModelSelection(
            selected_model_id=request.model_id,
            repeat_count=request.repeat_count,
            selected_model_ids=tuple(request.model_ids),
            additional_models=request.additional_models,
        )
        self._store.apply(
            lambda s: reducers.configure(
                s, request.mode, selection, request.system_prompt, credential_id
            )
        )

        messages: list[ChatMessage] = []
        if request.system_prompt.strip():
            messages.append(ChatMessage(role=MessageRole.SYSTEM, content=request.system_prompt.strip()))
        messages.append(ChatMessage(role=MessageRole.USER, content=user_prompt))
        history = tuple(messages)

        catalog = await self._load_catalog()
        dispatches: list[tuple[str, str, Optional[UUID]]] = []
        for model_id, iteration in plan:
            db_thread_id = await self._create_backing_thread(session_id, model_id, iteration)
            thread = reducers.new_thread(
                thread_id=f"thread-{uuid4().hex}",
                model_id=model_id,
                model_name=thread_display_name(model_id, iteration, catalog),
                messages=history,
                db_thread_id=db_thread_id,
            )
            self._store.apply(lambda s, t=thread: reducers.add_thread(s, t))
            self._persist_message(db_thread_id, MessageRole.USER, user_prompt)
            dispatches.append((thread.id, model_id, db_thread_id))

        logger.info(f"Dispatching {len(dispatches)} thread(s) in {request.mode.value} mode")
        self._store.apply(lambda s: reducers.set_loading(s, True))
        try:
            await asyncio.gather(
                *(
                    self._dispatch(thread_id, model_id, history, api_key, db_thread_id, session_id)
                    for thread_id, model_id, db_thread_id in dispatches
                )
            )
        finally:
            self._store.apply(lambda s: reducers.set_loading(s, False))
        return self._store.snapshot()

    # ------------------------------------------------------------------
    # Turn execution
    # ------------------------------------------------------------------

    async def _dispatch(
        self,
        thread_id: str,
        model_id: str,
        history: Sequence[ChatMessage],
        api_key: str,
        db_thread_id: Optional[UUID],
        session_id: Optional[UUID],
    ) -> None:
        task = asyncio.create_task(
            self._run_turn(thread_id, model_id, history, api_key, db_thread_id, session_id)
        )
        self._tasks[thread_id] = task
        try:
            await task
        except asyncio.CancelledError:
            # Cancelled before the turn started running
            self._fail(thread_id, CANCELLED_ERROR)
            if thread_id not in self._cancel_requested:
                raise
        finally:
            if self._tasks.get(thread_id) is task:
                del self._tasks[thread_id]
            self._cancel_requested.discard(thread_id)

    def _fail(self, thread_id: str, error: str) -> None:
        self._store.apply(lambda s: reducers.fail_turn(s, thread_id, error))

    async def _run_turn(
        self,
        thread_id: str,
        model_id: str,
        history: Sequence[ChatMessage],
        api_key: str,
        db_thread_id: Optional[UUID],
        session_id: Optional[UUID],
    ) -> None:
        started = self._clock()
        timeout = self._settings.STREAM_TIMEOUT_SECONDS
        try:
            result = await self._stream(model_id, history, api_key, timeout)
            latency_ms = (self._clock() - started) * 1000

            if not result.content:
                self._fail(thread_id, EMPTY_RESPONSE_ERROR)
                return

            cost = await self._turn_cost(model_id, result)
            usage = result.usage
            self._store.apply(
                lambda s: reducers.complete_turn(
                    s,
                    thread_id,
                    result.content,
                    usage.prompt_tokens,
                    usage.completion_tokens,
                    cost,
                    latency_ms,
                )
            )
            self._persist_message(
                db_thread_id,
                MessageRole.ASSISTANT,
                result.content,
                MessageUsage(
                    input_tokens=usage.prompt_tokens,
                    output_tokens=usage.completion_tokens,
                    cost=cost,
                    latency_ms=round(latency_ms),
                ),
            )
        except asyncio.CancelledError:
            self._fail(thread_id, CANCELLED_ERROR)
            if thread_id not in self._cancel_requested:
                raise
        except asyncio.TimeoutError:
            logger.warning(f"Thread {thread_id} ({model_id}) timed out after {timeout:.0f}s")
            self._fail(thread_id, f"Request timed out after {timeout:.0f}s")
        except Exception as e:
            logger.warning(f"Thread {thread_id} ({model_id}) failed: {e}")
            self._fail(thread_id, str(e) or e.__class__.__name__)
        finally:
            thread = self._store.get_thread(thread_id)
            if thread is not None and thread.is_loading:
                self._fail(thread_id, "Request failed")
            await self._events.publish_event(
                SessionEventType.THREAD_UPDATED,
                session_id,
                thread_id=db_thread_id,
                local_thread_id=thread_id,
            )

    async def _stream(
        self,
        model_id: str,
        history: Sequence[ChatMessage],
        api_key: str,
        timeout: float,
    ) -> StreamResult:
        return await asyncio.wait_for(
            self._provider.stream_chat(model_id, list(history), api_key),
            timeout=timeout,
        )

    async def _turn_cost(self, model_id: str, result: StreamResult) -> float:
        try:
            return await self._pricing.calculate_model_cost(
                model_id,
                result.usage.prompt_tokens,
                result.usage.completion_tokens,
            )
        except Exception as e:
            logger.warning(f"Cost calculation failed for {model_id}: {e}")
            return 0.0

    # ------------------------------------------------------------------
    # Follow-up turns
    # ------------------------------------------------------------------

    async def continue_thread(self, thread_id: str, message: str) -> ThreadState:
        """
        Append a user turn to one thread and replay its whole history.

        Raises:
            ConfigurationError: Empty message or no credential
            NotFoundError: Unknown thread
            BusinessLogicError: The thread is still awaiting a reply
            CredentialResolutionError: The credential could not be resolved
        """
        content = message.strip()
        if not content:
            raise ConfigurationError("Message is empty")

        thread = self._store.get_thread(thread_id)
        if thread is None:
            raise NotFoundError(f"Thread {thread_id} not found")
        if thread.is_loading:
            raise BusinessLogicError(f"Thread {thread_id} is still waiting for a reply")

        state = self._store.snapshot()
        _, api_key = await self.resolve_api_key(state.selected_credential_id)

        history = (*thread.messages, ChatMessage(role=MessageRole.USER, content=content))
        self._store.apply(lambda s: reducers.start_turn(s, thread_id, content))
        self._persist_message(thread.db_thread_id, MessageRole.USER, content)

        await self._dispatch(
            thread_id,
            thread.model_id,
            history,
            api_key,
            thread.db_thread_id,
            state.current_session_id,
        )
        return self._store.get_thread(thread_id)

    async def continue_all(self, message: str) -> WorkspaceState:
        """Send one message to every idle, error-free thread; failures stay per thread."""
        if not message.strip():
            raise ConfigurationError("Message is empty")

        targets = [
            t.id for t in self._store.snapshot().threads if not t.is_loading and not t.error
        ]
        results = await asyncio.gather(
            *(self.continue_thread(thread_id, message) for thread_id in targets),
            return_exceptions=True,
        )
        for thread_id, result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.warning(f"Send to thread {thread_id} failed: {result}")
        return self._store.snapshot()

    # ------------------------------------------------------------------
    # Workspace control
    # ------------------------------------------------------------------

    def cancel(self, thread_id: str) -> bool:
        """Abort the in-flight turn of a thread. Returns False when idle."""
        task = self._tasks.get(thread_id)
        if task is None or task.done():
            return False
        self._cancel_requested.add(thread_id)
        task.cancel()
        return True

    def cancel_all(self) -> int:
        return sum(1 for thread_id in list(self._tasks) if self.cancel(thread_id))

    def new_session(self) -> WorkspaceState:
        """Abort in-flight turns and start from an empty workspace."""
        self.cancel_all()
        return self._store.apply(reducers.clear_threads)

    async def load_session(self, session_id: UUID) -> WorkspaceState:
        """
        Replace the workspace with a persisted session.

        Raises:
            NotFoundError: If the session doesn't exist
        """
        session = await self._sessions.get_session(session_id)
        if session is None:
            raise NotFoundError(f"Session {session_id} not found")

        catalog = await self._load_catalog()
        restored = rehydrate_session(session, catalog)

        self.cancel_all()
        return self._store.apply(
            lambda s: reducers.load_workspace(
                s,
                restored.session_id,
                restored.threads,
                restored.mode,
                restored.selection,
                restored.system_prompt,
                restored.credential_id or s.selected_credential_id,
            )
        )
