"""
API credential models.

The stored secret never leaves the repository unmasked except through
the decrypt-for-use accessor.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CredentialBase(BaseModel):
    """Base credential fields."""

    name: str = Field(..., min_length=1, max_length=200, description="Display name")
    is_default: bool = Field(False, description="Use this credential when none is selected")


class CredentialCreate(CredentialBase):
    """Schema for creating a credential."""

    key: str = Field(..., min_length=1, description="Plaintext API key")


class CredentialUpdate(BaseModel):
    """Schema for updating a credential."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    key: Optional[str] = Field(None, min_length=1)
    is_default: Optional[bool] = None


class Credential(CredentialBase):
    """Credential as exposed to callers (secret masked)."""

    id: UUID
    key: str = Field(..., description="Masked API key")
    created_at: datetime
