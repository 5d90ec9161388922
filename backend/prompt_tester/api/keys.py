"""
API key endpoints.

Keys are returned masked; the plaintext never leaves the server.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from prompt_tester.api.deps import CredentialRepo
from prompt_tester.core.exceptions import NotFoundError
from prompt_tester.models.credential import Credential, CredentialCreate, CredentialUpdate

router = APIRouter()


@router.get("", response_model=list[Credential])
async def list_keys(repo: CredentialRepo):
    """List API keys with masked secrets."""
    return await repo.list()


@router.post("", response_model=Credential, status_code=status.HTTP_201_CREATED)
async def create_key(credential: CredentialCreate, repo: CredentialRepo):
    """Store a new API key (encrypted at rest)."""
    return await repo.create(credential)


@router.patch("/{key_id}", response_model=Credential)
async def update_key(key_id: UUID, update: CredentialUpdate, repo: CredentialRepo):
    try:
        return await repo.update(key_id, update)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )


@router.delete("/{key_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_key(key_id: UUID, repo: CredentialRepo):
    deleted = await repo.delete(key_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"API key {key_id} not found",
        )
