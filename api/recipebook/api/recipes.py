"""Recipe API routes."""
import json
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from recipebook.core.deps import get_recipe_repository, to_http_exception
from recipebook.core.exceptions import ClassificationError
from recipebook.models.recipe import Recipe
from recipebook.schemas.recipe import (
    ClassificationRequest,
    RecipeCreate,
    RecipeResponse,
    RecipeUpdate,
)
from recipebook.services.recipe_repository import RecipeRepository

router = APIRouter()


def get_recipe_or_404(repo: RecipeRepository, recipe_id: int) -> Recipe:
    recipe = repo.get(recipe_id)
    if not recipe:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Recipe not found"
        )
    return recipe


def parse_tag_filter(tags: Optional[str]) -> List[str]:
    """Accept either a JSON array or a comma-separated list."""
    if not tags:
        return []
    if tags.lstrip().startswith("["):
        try:
            parsed = json.loads(tags)
        except json.JSONDecodeError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="tags must be a JSON array or comma-separated list"
            )
        if not isinstance(parsed, list):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="tags must be a JSON array or comma-separated list"
            )
        return [str(t).strip() for t in parsed if str(t).strip()]
    return [t.strip() for t in tags.split(",") if t.strip()]


@router.get("/", response_model=List[RecipeResponse])
def list_recipes(
    search: Optional[str] = Query(None, description="Substring of name or tag"),
    tags: Optional[str] = Query(None, description="Recipes must carry all of these tags"),
    repo: RecipeRepository = Depends(get_recipe_repository),
):
    """List recipes, newest first, optionally filtered."""
    selected_tags = parse_tag_filter(tags)
    if search or selected_tags:
        return repo.search(search or "", selected_tags)
    return repo.list_all()


@router.get("/dewey/{dewey_code}", response_model=List[RecipeResponse])
def list_recipes_by_dewey_code(
    dewey_code: str,
    repo: RecipeRepository = Depends(get_recipe_repository),
):
    """Recipes classified under a category or any of its descendants."""
    try:
        return repo.by_dewey_code(dewey_code)
    except ClassificationError as e:
        raise to_http_exception(e)


@router.get("/{recipe_id}", response_model=RecipeResponse)
def get_recipe(
    recipe_id: int,
    repo: RecipeRepository = Depends(get_recipe_repository),
):
    """Get a single recipe."""
    return get_recipe_or_404(repo, recipe_id)


@router.get("/{recipe_id}/next", response_model=Optional[RecipeResponse])
def get_next_recipe(
    recipe_id: int,
    repo: RecipeRepository = Depends(get_recipe_repository),
):
    """Recipe after this one, or null at the end."""
    return repo.next_recipe(recipe_id)


@router.get("/{recipe_id}/previous", response_model=Optional[RecipeResponse])
def get_previous_recipe(
    recipe_id: int,
    repo: RecipeRepository = Depends(get_recipe_repository),
):
    """Recipe before this one, or null at the start."""
    return repo.previous_recipe(recipe_id)


@router.post("/", response_model=RecipeResponse, status_code=status.HTTP_201_CREATED)
def create_recipe(
    recipe_data: RecipeCreate,
    repo: RecipeRepository = Depends(get_recipe_repository),
):
    """Create a recipe, classifying it when a Dewey code is given."""
    try:
        return repo.create(recipe_data)
    except ClassificationError as e:
        repo.db.rollback()
        raise to_http_exception(e)


@router.put("/{recipe_id}", response_model=RecipeResponse)
def update_recipe(
    recipe_id: int,
    recipe_data: RecipeUpdate,
    repo: RecipeRepository = Depends(get_recipe_repository),
):
    """Update recipe fields; tags, when given, replace the current list."""
    recipe = get_recipe_or_404(repo, recipe_id)
    return repo.update(recipe, recipe_data)


@router.post("/{recipe_id}/classification", response_model=RecipeResponse)
def classify_recipe(
    recipe_id: int,
    request: ClassificationRequest,
    repo: RecipeRepository = Depends(get_recipe_repository),
):
    """
    Select or clear a recipe's Dewey category.

    Leaf categories deep enough for numbering get the next sequence code;
    hierarchy tags from the previous selection are replaced.
    """
    recipe = get_recipe_or_404(repo, recipe_id)
    try:
        return repo.classify(recipe, request.dewey_code)
    except ClassificationError as e:
        repo.db.rollback()
        raise to_http_exception(e)


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recipe(
    recipe_id: int,
    repo: RecipeRepository = Depends(get_recipe_repository),
):
    """Delete a recipe and any tags left unused."""
    recipe = get_recipe_or_404(repo, recipe_id)
    repo.delete(recipe)
    return None
