"""
Model catalog and saved prompt models.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from prompt_tester.models.enums import PromptKind


class CatalogModelBase(BaseModel):
    """Base catalog entry fields."""

    model_config = ConfigDict(protected_namespaces=())

    model_id: str = Field(..., min_length=1, max_length=200, description="provider/model identifier")
    display_name: str = Field(..., min_length=1, max_length=200)
    is_active: bool = True


class CatalogModelCreate(CatalogModelBase):
    """Schema for adding a model to the catalog."""

    pass


class CatalogModelUpdate(BaseModel):
    """Schema for updating a catalog entry."""

    model_config = ConfigDict(protected_namespaces=())

    model_id: Optional[str] = Field(None, min_length=1, max_length=200)
    display_name: Optional[str] = Field(None, min_length=1, max_length=200)
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class ReorderItem(BaseModel):
    """One (id, sort_order) pair of a batch reorder."""

    id: UUID
    sort_order: int


class CatalogModel(CatalogModelBase):
    """Catalog entry."""

    id: UUID
    sort_order: int
    created_at: datetime


class PromptSnippetBase(BaseModel):
    """Base saved prompt fields."""

    name: str = Field(..., min_length=1, max_length=200)
    kind: PromptKind
    content: str = Field(..., min_length=1)
    category: Optional[str] = Field(None, max_length=100)


class PromptSnippetCreate(PromptSnippetBase):
    """Schema for saving a prompt."""

    pass


class PromptSnippetUpdate(BaseModel):
    """Schema for updating a saved prompt."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, max_length=100)


class PromptSnippet(PromptSnippetBase):
    """Saved prompt."""

    id: UUID
    created_at: datetime
    updated_at: datetime
