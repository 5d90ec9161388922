"""
Credential repository interface.

Defines the contract for API credential persistence.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from prompt_tester.models.credential import Credential, CredentialCreate, CredentialUpdate


class ICredentialRepository(ABC):
    """Abstract interface for credential persistence."""

    @abstractmethod
    async def create(self, credential: CredentialCreate) -> Credential:
        """
        Store a new credential, encrypted at rest.

        If the credential is flagged default, every other default flag is
        cleared before it is written.

        Args:
            credential: Name, plaintext key and default flag

        Returns:
            Created credential with masked key
        """
        pass

    @abstractmethod
    async def get(self, credential_id: UUID) -> Optional[Credential]:
        """Get a credential by ID (masked)."""
        pass

    @abstractmethod
    async def get_default(self) -> Optional[Credential]:
        """
        Get the credential used when none is selected.

        Returns:
            The default credential, else the oldest one, else None
        """
        pass

    @abstractmethod
    async def list(self) -> list[Credential]:
        """List all credentials (masked)."""
        pass

    @abstractmethod
    async def update(self, credential_id: UUID, update: CredentialUpdate) -> Credential:
        """
        Update a credential.

        Raises:
            NotFoundError: If the credential doesn't exist
        """
        pass

    @abstractmethod
    async def delete(self, credential_id: UUID) -> bool:
        """Delete a credential. Returns False if it didn't exist."""
        pass

    @abstractmethod
    async def get_secret(self, credential_id: UUID) -> str:
        """
        Decrypt a credential's key for use in an outbound request.

        Args:
            credential_id: Credential ID

        Returns:
            Plaintext API key

        Raises:
            NotFoundError: If the credential doesn't exist
        """
        pass
