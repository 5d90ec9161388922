"""
Integration tests for the SQLite repositories.

Each test runs against a fresh SQLite file database.
"""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from prompt_tester.core.exceptions import NotFoundError
from prompt_tester.infrastructure.local.credential_repository import SqliteCredentialRepository
from prompt_tester.infrastructure.local.model_catalog_repository import (
    DEFAULT_MODELS,
    SqliteModelCatalogRepository,
)
from prompt_tester.infrastructure.local.prompt_repository import SqlitePromptRepository
from prompt_tester.infrastructure.local.session_repository import SqliteSessionRepository
from prompt_tester.models.catalog import (
    CatalogModelCreate,
    CatalogModelUpdate,
    PromptSnippetCreate,
    PromptSnippetUpdate,
    ReorderItem,
)
from prompt_tester.models.credential import CredentialCreate, CredentialUpdate
from prompt_tester.models.enums import ChatMode, MessageRole, PromptKind
from prompt_tester.models.session import MessageCreate, MessageUsage, SessionCreate, ThreadCreate


# ============================================
# Credentials
# ============================================


class TestCredentialRepository:
    @pytest.mark.asyncio
    async def test_key_is_masked_but_secret_is_recoverable(self, session_factory):
        repo = SqliteCredentialRepository(session_factory=session_factory)

        created = await repo.create(CredentialCreate(name="main", key="sk-or-v1-1234567890abcd"))

        assert created.key == "sk-or-v1...abcd"
        assert await repo.get_secret(created.id) == "sk-or-v1-1234567890abcd"

    @pytest.mark.asyncio
    async def test_at_most_one_default(self, session_factory):
        repo = SqliteCredentialRepository(session_factory=session_factory)

        first = await repo.create(CredentialCreate(name="a", key="key-a", is_default=True))
        second = await repo.create(CredentialCreate(name="b", key="key-b", is_default=True))

        defaults = [c.id for c in await repo.list() if c.is_default]
        assert defaults == [second.id]

        updated = await repo.update(first.id, CredentialUpdate(is_default=True))
        assert updated.is_default
        defaults = [c.id for c in await repo.list() if c.is_default]
        assert defaults == [first.id]
        assert (await repo.get_default()).id == first.id

    @pytest.mark.asyncio
    async def test_default_falls_back_to_oldest(self, session_factory):
        repo = SqliteCredentialRepository(session_factory=session_factory)
        assert await repo.get_default() is None

        first = await repo.create(CredentialCreate(name="a", key="key-a"))
        await repo.create(CredentialCreate(name="b", key="key-b"))

        assert (await repo.get_default()).id == first.id

    @pytest.mark.asyncio
    async def test_rotate_key(self, session_factory):
        repo = SqliteCredentialRepository(session_factory=session_factory)
        created = await repo.create(CredentialCreate(name="a", key="old-key"))

        await repo.update(created.id, CredentialUpdate(key="new-key-value"))

        assert await repo.get_secret(created.id) == "new-key-value"

    @pytest.mark.asyncio
    async def test_missing_credential(self, session_factory):
        repo = SqliteCredentialRepository(session_factory=session_factory)

        with pytest.raises(NotFoundError):
            await repo.update(uuid4(), CredentialUpdate(name="x"))
        with pytest.raises(NotFoundError):
            await repo.get_secret(uuid4())
        assert await repo.delete(uuid4()) is False


# ============================================
# Model catalog
# ============================================


class TestModelCatalogRepository:
    @pytest.mark.asyncio
    async def test_new_entries_go_last(self, session_factory):
        repo = SqliteModelCatalogRepository(session_factory=session_factory)

        a = await repo.create(CatalogModelCreate(model_id="a/x", display_name="A"))
        b = await repo.create(CatalogModelCreate(model_id="b/y", display_name="B"))

        assert (a.sort_order, b.sort_order) == (1, 2)
        assert [m.model_id for m in await repo.list()] == ["a/x", "b/y"]

    @pytest.mark.asyncio
    async def test_active_only(self, session_factory):
        repo = SqliteModelCatalogRepository(session_factory=session_factory)
        await repo.create(CatalogModelCreate(model_id="a/x", display_name="A"))
        hidden = await repo.create(CatalogModelCreate(model_id="b/y", display_name="B"))

        await repo.update(hidden.id, CatalogModelUpdate(is_active=False))

        assert [m.model_id for m in await repo.list_active()] == ["a/x"]
        assert len(await repo.list()) == 2

    @pytest.mark.asyncio
    async def test_reorder(self, session_factory):
        repo = SqliteModelCatalogRepository(session_factory=session_factory)
        a = await repo.create(CatalogModelCreate(model_id="a/x", display_name="A"))
        b = await repo.create(CatalogModelCreate(model_id="b/y", display_name="B"))

        await repo.reorder([ReorderItem(id=a.id, sort_order=2), ReorderItem(id=b.id, sort_order=1)])

        assert [m.model_id for m in await repo.list()] == ["b/y", "a/x"]

    @pytest.mark.asyncio
    async def test_reorder_with_unknown_id_changes_nothing(self, session_factory):
        repo = SqliteModelCatalogRepository(session_factory=session_factory)
        a = await repo.create(CatalogModelCreate(model_id="a/x", display_name="A"))
        await repo.create(CatalogModelCreate(model_id="b/y", display_name="B"))

        with pytest.raises(NotFoundError):
            await repo.reorder([ReorderItem(id=a.id, sort_order=9), ReorderItem(id=uuid4(), sort_order=1)])

        assert [m.sort_order for m in await repo.list()] == [1, 2]

    @pytest.mark.asyncio
    async def test_seed_only_when_empty(self, session_factory):
        repo = SqliteModelCatalogRepository(session_factory=session_factory)

        assert await repo.seed_defaults() == len(DEFAULT_MODELS)
        assert await repo.seed_defaults() == 0
        assert [m.model_id for m in await repo.list()] == [m for m, _ in DEFAULT_MODELS]

    @pytest.mark.asyncio
    async def test_update_missing(self, session_factory):
        repo = SqliteModelCatalogRepository(session_factory=session_factory)

        with pytest.raises(NotFoundError):
            await repo.update(uuid4(), CatalogModelUpdate(display_name="x"))


# ============================================
# Saved prompts
# ============================================


class TestPromptRepository:
    @pytest.mark.asyncio
    async def test_filter_by_kind_and_category(self, session_factory):
        repo = SqlitePromptRepository(session_factory=session_factory)
        await repo.create(PromptSnippetCreate(name="tone", kind=PromptKind.SYSTEM, content="Be brief", category="style"))
        await repo.create(PromptSnippetCreate(name="persona", kind=PromptKind.SYSTEM, content="You are a pirate"))
        await repo.create(PromptSnippetCreate(name="ask", kind=PromptKind.USER, content="Summarise", category="style"))

        system = await repo.list(kind=PromptKind.SYSTEM)
        styled = await repo.list(category="style")

        assert {p.name for p in system} == {"tone", "persona"}
        assert {p.name for p in styled} == {"tone", "ask"}
        assert [p.name for p in await repo.list(kind=PromptKind.USER, category="style")] == ["ask"]

    @pytest.mark.asyncio
    async def test_update_moves_prompt_to_front(self, session_factory):
        repo = SqlitePromptRepository(session_factory=session_factory)
        first = await repo.create(PromptSnippetCreate(name="first", kind=PromptKind.USER, content="one"))
        await repo.create(PromptSnippetCreate(name="second", kind=PromptKind.USER, content="two"))

        updated = await repo.update(first.id, PromptSnippetUpdate(content="edited"))

        assert updated.content == "edited"
        assert updated.updated_at >= updated.created_at
        assert (await repo.list())[0].id == first.id

    @pytest.mark.asyncio
    async def test_clear_category(self, session_factory):
        repo = SqlitePromptRepository(session_factory=session_factory)
        prompt = await repo.create(
            PromptSnippetCreate(name="p", kind=PromptKind.USER, content="c", category="misc")
        )

        kept = await repo.update(prompt.id, PromptSnippetUpdate(name="renamed"))
        cleared = await repo.update(prompt.id, PromptSnippetUpdate(category=None))

        assert kept.category == "misc"
        assert cleared.category is None


# ============================================
# Sessions, threads and messages
# ============================================


class TestSessionRepository:
    @pytest.mark.asyncio
    async def test_list_includes_thread_counts(self, session_factory):
        repo = SqliteSessionRepository(session_factory=session_factory)
        busy = await repo.create_session(SessionCreate(mode=ChatMode.MULTI_MODEL))
        empty = await repo.create_session(SessionCreate(mode=ChatMode.SINGLE_REPEAT))
        await repo.create_thread(ThreadCreate(session_id=busy.id, model_id="a/x"))
        await repo.create_thread(ThreadCreate(session_id=busy.id, model_id="b/y"))

        counts = {s.id: s.thread_count for s in await repo.list_sessions()}

        assert counts == {busy.id: 2, empty.id: 0}

    @pytest.mark.asyncio
    async def test_get_session_nests_threads_and_messages(self, session_factory):
        repo = SqliteSessionRepository(session_factory=session_factory)
        session = await repo.create_session(SessionCreate(mode=ChatMode.SINGLE_REPEAT, system_prompt="S"))
        thread = await repo.create_thread(ThreadCreate(session_id=session.id, model_id="m", iteration_number=1))
        await repo.append_message(MessageCreate(thread_id=thread.id, role=MessageRole.USER, content="Hello"))
        await repo.append_message(
            MessageCreate(
                thread_id=thread.id,
                role=MessageRole.ASSISTANT,
                content="Hi",
                usage=MessageUsage(input_tokens=5, output_tokens=2, cost=0.01, latency_ms=120),
            )
        )

        detail = await repo.get_session(session.id)

        assert detail.system_prompt == "S"
        assert [t.iteration_number for t in detail.threads] == [1]
        messages = detail.threads[0].messages
        assert [(m.role, m.content) for m in messages] == [
            (MessageRole.USER, "Hello"),
            (MessageRole.ASSISTANT, "Hi"),
        ]
        assert messages[1].input_tokens == 5
        assert messages[1].latency_ms == 120
        assert messages[0].input_tokens is None

    @pytest.mark.asyncio
    async def test_attachments_round_trip_as_json(self, session_factory):
        repo = SqliteSessionRepository(session_factory=session_factory)
        session = await repo.create_session(SessionCreate(mode=ChatMode.MULTI_MODEL))
        thread = await repo.create_thread(ThreadCreate(session_id=session.id, model_id="m"))

        saved = await repo.append_message(
            MessageCreate(
                thread_id=thread.id,
                role=MessageRole.USER,
                content="see file",
                attachments=[{"name": "a.txt", "size": 3}],
            )
        )

        assert saved.attachments == [{"name": "a.txt", "size": 3}]

    @pytest.mark.asyncio
    async def test_rename(self, session_factory):
        repo = SqliteSessionRepository(session_factory=session_factory)
        session = await repo.create_session(SessionCreate(mode=ChatMode.MULTI_MODEL))

        renamed = await repo.rename_session(session.id, "Comparison")

        assert renamed.name == "Comparison"
        with pytest.raises(NotFoundError):
            await repo.rename_session(uuid4(), "x")

    @pytest.mark.asyncio
    async def test_delete_removes_threads_and_messages(self, session_factory):
        repo = SqliteSessionRepository(session_factory=session_factory)
        doomed = await repo.create_session(SessionCreate(mode=ChatMode.MULTI_MODEL))
        kept = await repo.create_session(SessionCreate(mode=ChatMode.MULTI_MODEL))
        thread = await repo.create_thread(ThreadCreate(session_id=doomed.id, model_id="m"))
        await repo.append_message(MessageCreate(thread_id=thread.id, role=MessageRole.USER, content="x"))

        assert await repo.delete_session(doomed.id) is True

        assert await repo.get_session(doomed.id) is None
        assert [s.id for s in await repo.list_sessions()] == [kept.id]
        with pytest.raises(NotFoundError):
            await repo.append_message(MessageCreate(thread_id=thread.id, role=MessageRole.USER, content="y"))
        assert await repo.delete_session(doomed.id) is False

    @pytest.mark.asyncio
    async def test_orphans_are_rejected(self, session_factory):
        repo = SqliteSessionRepository(session_factory=session_factory)

        with pytest.raises(NotFoundError):
            await repo.create_thread(ThreadCreate(session_id=uuid4(), model_id="m"))
        with pytest.raises(NotFoundError):
            await repo.append_message(MessageCreate(thread_id=uuid4(), role=MessageRole.USER, content="x"))

    def test_system_messages_are_not_persisted(self):
        with pytest.raises(ValidationError):
            MessageCreate(thread_id=uuid4(), role=MessageRole.SYSTEM, content="S")
