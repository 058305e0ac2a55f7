"""Tag API routes."""
from typing import List

from fastapi import APIRouter, Depends

from recipebook.core.deps import get_recipe_repository
from recipebook.schemas.recipe import TagCount
from recipebook.services.recipe_repository import RecipeRepository

router = APIRouter()


@router.get("/", response_model=List[str])
def list_tags(repo: RecipeRepository = Depends(get_recipe_repository)):
    """All tag names in alphabetical order."""
    return repo.all_tags()


@router.get("/counts", response_model=List[TagCount])
def list_tag_counts(repo: RecipeRepository = Depends(get_recipe_repository)):
    """Tags with the number of recipes using them, most used first."""
    return repo.tag_counts()
