"""Abstract interfaces for infrastructure abstraction."""

from prompt_tester.interfaces.credential_repository import ICredentialRepository
from prompt_tester.interfaces.llm_provider import ILLMProvider
from prompt_tester.interfaces.model_catalog_repository import IModelCatalogRepository
from prompt_tester.interfaces.prompt_repository import IPromptRepository
from prompt_tester.interfaces.session_repository import ISessionRepository

__all__ = [
    "ICredentialRepository",
    "ILLMProvider",
    "IModelCatalogRepository",
    "IPromptRepository",
    "ISessionRepository",
]
