"""Dewey category schemas."""
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime

from recipebook.core.dewey_codes import validate_code


def _check_code(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    # validate_code raises InvalidCodeFormat, a ValueError, which pydantic reports as 422
    return validate_code(v)


class DeweyCategoryBase(BaseModel):
    """Base schema for Dewey category."""
    dewey_code: str = Field(..., max_length=50, description="Classification code (e.g., '000', '000.0')")
    name: str = Field(..., min_length=1, max_length=255, description="Display name")

    @field_validator('dewey_code')
    @classmethod
    def validate_dewey_code(cls, v: str) -> str:
        return _check_code(v)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Name must not be blank')
        return v.strip()


class DeweyCategoryCreate(DeweyCategoryBase):
    """Schema for creating a Dewey category.

    ``level`` defaults to the depth implied by the code. ``parent_code``
    defaults to the structural parent when that category exists.
    """
    level: Optional[int] = Field(None, ge=1, description="Hierarchy depth")
    parent_code: Optional[str] = Field(None, max_length=50, description="Parent dewey_code (null for roots)")
    is_active: bool = True

    @field_validator('parent_code')
    @classmethod
    def validate_parent_code(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return _check_code(v)


class DeweyCategoryUpdate(BaseModel):
    """Schema for updating a Dewey category."""
    dewey_code: Optional[str] = Field(None, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    level: Optional[int] = Field(None, ge=1)
    parent_code: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None

    @field_validator('dewey_code')
    @classmethod
    def validate_dewey_code(cls, v: Optional[str]) -> Optional[str]:
        return _check_code(v)

    @field_validator('parent_code')
    @classmethod
    def validate_parent_code(cls, v: Optional[str]) -> Optional[str]:
        # Empty string clears the parent link (makes the category a root)
        if v is not None and not v.strip():
            return ""
        return _check_code(v)


class DeweyCategoryResponse(BaseModel):
    """Schema for Dewey category response (flat)."""
    category_id: int
    dewey_code: str
    name: str
    level: int
    parent_code: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DeweyCategoryDetail(DeweyCategoryResponse):
    """Schema for a category with its ancestor chain and child counts."""
    has_children: bool = False
    child_count: int = 0
    ancestors: List[DeweyCategoryResponse] = Field(default_factory=list, description="Ancestor chain from root to parent")
    full_path: str = Field("", description="Computed path: 'Poultry > Chicken > Breast'")


class DeweyCategoryTreeNode(BaseModel):
    """Schema for Dewey category tree node (hierarchical)."""
    category_id: int
    dewey_code: str
    name: str
    level: int
    parent_code: Optional[str] = None
    is_active: bool
    child_count: int = 0
    children: List[DeweyCategoryTreeNode] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


# Enable self-referential model
DeweyCategoryTreeNode.model_rebuild()


class NextSequenceResponse(BaseModel):
    """Next free recipe code under a base code."""
    base_code: str
    next_sequence: str


class DeweyImportResult(BaseModel):
    """Schema for bulk import result."""
    imported_count: int
    skipped_count: int = 0
    error_count: int
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class BrokenLink(BaseModel):
    dewey_code: str
    missing_parent_code: str


class LevelMismatch(BaseModel):
    dewey_code: str
    stored_level: int
    expected_level: Optional[int] = None


class DeweyIntegrityReport(BaseModel):
    """Categories whose parent link or stored level is inconsistent."""
    category_count: int
    broken_links: List[BrokenLink] = Field(default_factory=list)
    level_mismatches: List[LevelMismatch] = Field(default_factory=list)
