"""
Saved prompt endpoints.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from prompt_tester.api.deps import PromptRepo
from prompt_tester.core.exceptions import NotFoundError
from prompt_tester.models.catalog import PromptSnippet, PromptSnippetCreate, PromptSnippetUpdate
from prompt_tester.models.enums import PromptKind

router = APIRouter()


@router.get("", response_model=list[PromptSnippet])
async def list_prompts(
    repo: PromptRepo,
    kind: Optional[PromptKind] = Query(None, description="Filter by system/user"),
    category: Optional[str] = Query(None, description="Filter by category"),
):
    """List saved prompts, most recently updated first."""
    return await repo.list(kind=kind, category=category)


@router.post("", response_model=PromptSnippet, status_code=status.HTTP_201_CREATED)
async def create_prompt(prompt: PromptSnippetCreate, repo: PromptRepo):
    return await repo.create(prompt)


@router.put("/{prompt_id}", response_model=PromptSnippet)
async def update_prompt(prompt_id: UUID, update: PromptSnippetUpdate, repo: PromptRepo):
    try:
        return await repo.update(prompt_id, update)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )


@router.delete("/{prompt_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_prompt(prompt_id: UUID, repo: PromptRepo):
    deleted = await repo.delete(prompt_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Prompt {prompt_id} not found",
        )
