"""Models package."""
from recipebook.models.base import Base
from recipebook.models.dewey_category import DeweyCategory
from recipebook.models.recipe import Recipe, Tag, RecipeTag
from recipebook.models.audit_log import AuditLog

__all__ = [
    "Base",
    "DeweyCategory",
    "Recipe",
    "Tag",
    "RecipeTag",
    "AuditLog",
]
