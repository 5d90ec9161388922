"""
Model catalog endpoints.

The catalog is the user-curated list of selectable models.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from prompt_tester.api.deps import CatalogRepo
from prompt_tester.core.exceptions import NotFoundError
from prompt_tester.models.catalog import (
    CatalogModel,
    CatalogModelCreate,
    CatalogModelUpdate,
    ReorderItem,
)

router = APIRouter()


@router.get("", response_model=list[CatalogModel])
async def list_models(
    repo: CatalogRepo,
    active_only: bool = Query(False, description="Only active models"),
):
    """List catalog models in display order."""
    return await repo.list(active_only=active_only)


@router.post("", response_model=CatalogModel, status_code=status.HTTP_201_CREATED)
async def create_model(model: CatalogModelCreate, repo: CatalogRepo):
    """Append a model to the end of the catalog."""
    return await repo.create(model)


# Declared before /{entry_id} so "reorder" is not parsed as an id
@router.patch("/reorder", status_code=status.HTTP_204_NO_CONTENT)
async def reorder_models(items: list[ReorderItem], repo: CatalogRepo):
    """Apply a batch of sort order changes atomically."""
    try:
        await repo.reorder(items)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )


@router.put("/{entry_id}", response_model=CatalogModel)
@router.patch("/{entry_id}", response_model=CatalogModel)
async def update_model(entry_id: UUID, update: CatalogModelUpdate, repo: CatalogRepo):
    try:
        return await repo.update(entry_id, update)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_model(entry_id: UUID, repo: CatalogRepo):
    deleted = await repo.delete(entry_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Model {entry_id} not found",
        )
