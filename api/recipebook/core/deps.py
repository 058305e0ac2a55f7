"""FastAPI dependencies and error translation shared by the routers."""
import logging

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from recipebook.core.database import get_db
from recipebook.core.exceptions import (
    CategoryInUse,
    CategoryNotFound,
    ClassificationError,
    DuplicateCategoryCode,
    HasChildrenError,
    InvalidCodeFormat,
    OutOfSequenceSpace,
    SequenceCodeTaken,
)
from recipebook.services.category_repository import CategoryRepository
from recipebook.services.recipe_repository import RecipeRepository

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    CategoryNotFound: status.HTTP_404_NOT_FOUND,
    HasChildrenError: status.HTTP_409_CONFLICT,
    OutOfSequenceSpace: status.HTTP_409_CONFLICT,
    SequenceCodeTaken: status.HTTP_409_CONFLICT,
    CategoryInUse: status.HTTP_409_CONFLICT,
    DuplicateCategoryCode: status.HTTP_400_BAD_REQUEST,
    InvalidCodeFormat: status.HTTP_400_BAD_REQUEST,
}


def get_category_repository(db: Session = Depends(get_db)) -> CategoryRepository:
    """Category repository with a fresh, request-scoped tree cache."""
    return CategoryRepository(db)


def get_recipe_repository(
    categories: CategoryRepository = Depends(get_category_repository),
) -> RecipeRepository:
    return RecipeRepository(categories.db, categories)


def to_http_exception(exc: ClassificationError) -> HTTPException:
    """Map a core error to the HTTP status the UI expects."""
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            break
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    logger.error("%s: %s", exc.__class__.__name__, exc)
    return HTTPException(status_code=status_code, detail=str(exc))
