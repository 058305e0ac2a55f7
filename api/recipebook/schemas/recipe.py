"""Recipe schemas."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _clean_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    """Strip whitespace, drop blanks and duplicates, keep first-seen order."""
    if tags is None:
        return None
    cleaned: List[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


class RecipeBase(BaseModel):
    """Base schema for recipe."""
    name: str = Field(..., min_length=1, max_length=255)
    page: Optional[str] = Field(None, max_length=255, description="Book page, binder slot or other location")
    url: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)


class RecipeCreate(RecipeBase):
    """Schema for creating a recipe.

    When ``dewey_code`` names a category, the stored code and hierarchy
    tags are derived from it.
    """
    tags: List[str] = Field(default_factory=list)
    dewey_code: Optional[str] = Field(None, max_length=50, description="Selected Dewey category code")

    @field_validator('tags')
    @classmethod
    def validate_tags(cls, v: List[str]) -> List[str]:
        return _clean_tags(v)


class RecipeUpdate(BaseModel):
    """Schema for updating a recipe. Tags, when given, replace the current set."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    page: Optional[str] = Field(None, max_length=255)
    url: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    tags: Optional[List[str]] = None

    @field_validator('tags')
    @classmethod
    def validate_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_tags(v)


class ClassificationRequest(BaseModel):
    """Select (or clear, with null/empty) a recipe's Dewey category."""
    dewey_code: Optional[str] = Field(None, max_length=50)


class RecipeResponse(RecipeBase):
    """Response schema for a recipe."""
    recipe_id: int
    dewey_decimal: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TagCount(BaseModel):
    name: str
    count: int
