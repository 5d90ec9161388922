"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies that inject the process-wide
infrastructure and service instances.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from prompt_tester.interfaces.credential_repository import ICredentialRepository
from prompt_tester.interfaces.llm_provider import ILLMProvider
from prompt_tester.interfaces.model_catalog_repository import IModelCatalogRepository
from prompt_tester.interfaces.prompt_repository import IPromptRepository
from prompt_tester.interfaces.session_repository import ISessionRepository
from prompt_tester.services.dispatch_service import ChatDispatchService
from prompt_tester.services.persistence_writer import PersistenceWriter
from prompt_tester.services.pricing_service import PricingCache
from prompt_tester.services.realtime_service import SessionEventBroker, session_events
from prompt_tester.services.thread_store import ThreadStore


# ===========================================
# Repository Dependencies
# ===========================================


@lru_cache()
def get_credential_repository() -> ICredentialRepository:
    """Get credential repository instance."""
    from prompt_tester.infrastructure.local.credential_repository import SqliteCredentialRepository
    return SqliteCredentialRepository()


@lru_cache()
def get_model_catalog_repository() -> IModelCatalogRepository:
    """Get model catalog repository instance."""
    from prompt_tester.infrastructure.local.model_catalog_repository import (
        SqliteModelCatalogRepository,
    )
    return SqliteModelCatalogRepository()


@lru_cache()
def get_prompt_repository() -> IPromptRepository:
    """Get saved prompt repository instance."""
    from prompt_tester.infrastructure.local.prompt_repository import SqlitePromptRepository
    return SqlitePromptRepository()


@lru_cache()
def get_session_repository() -> ISessionRepository:
    """Get session repository instance."""
    from prompt_tester.infrastructure.local.session_repository import SqliteSessionRepository
    return SqliteSessionRepository()


# ===========================================
# Provider and Service Dependencies
# ===========================================


@lru_cache()
def get_llm_provider() -> ILLMProvider:
    """Get the streaming chat provider."""
    from prompt_tester.infrastructure.local.openrouter_provider import OpenRouterChatProvider
    return OpenRouterChatProvider()


@lru_cache()
def get_pricing_cache() -> PricingCache:
    """Get the process-wide pricing cache."""
    return PricingCache()


@lru_cache()
def get_persistence_writer() -> PersistenceWriter:
    return PersistenceWriter()


def get_session_events() -> SessionEventBroker:
    return session_events


@lru_cache()
def get_dispatch_service() -> ChatDispatchService:
    """Get the chat dispatch engine bound to the process-wide workspace."""
    return ChatDispatchService(
        store=ThreadStore(),
        session_repo=get_session_repository(),
        credential_repo=get_credential_repository(),
        catalog_repo=get_model_catalog_repository(),
        provider=get_llm_provider(),
        pricing=get_pricing_cache(),
        writer=get_persistence_writer(),
        events=get_session_events(),
    )


# ===========================================
# Type Aliases for Dependency Injection
# ===========================================

CredentialRepo = Annotated[ICredentialRepository, Depends(get_credential_repository)]
CatalogRepo = Annotated[IModelCatalogRepository, Depends(get_model_catalog_repository)]
PromptRepo = Annotated[IPromptRepository, Depends(get_prompt_repository)]
SessionRepo = Annotated[ISessionRepository, Depends(get_session_repository)]
LLMProvider = Annotated[ILLMProvider, Depends(get_llm_provider)]
Pricing = Annotated[PricingCache, Depends(get_pricing_cache)]
SessionEvents = Annotated[SessionEventBroker, Depends(get_session_events)]
DispatchService = Annotated[ChatDispatchService, Depends(get_dispatch_service)]
