"""Dewey category persistence.

Routers and the recipe service go through this class rather than
querying ``DeweyCategory`` directly, so that every write drops the
cached category tree.
"""
import logging
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recipebook.core.category_cache import CategoryTreeCache
from recipebook.core.category_import import plan_import
from recipebook.core.category_tree import CategoryTree
from recipebook.core.dewey_codes import (
    get_level,
    get_parent_code,
    validate_category_code,
    validate_code,
)
from recipebook.core.exceptions import (
    CategoryInUse,
    CategoryNotFound,
    DuplicateCategoryCode,
    HasChildrenError,
    InvalidCodeFormat,
)
from recipebook.core.sequence import next_sequence
from recipebook.models.audit_log import AuditLog
from recipebook.models.dewey_category import DeweyCategory
from recipebook.models.recipe import Recipe
from recipebook.schemas.dewey_category import (
    DeweyCategoryCreate,
    DeweyCategoryUpdate,
    DeweyImportResult,
)

logger = logging.getLogger(__name__)


def create_audit_log(db: Session, entity_type: str, entity_id: int, action: str, changes: dict = None):
    """Create an audit log entry."""
    audit_log = AuditLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        changes=changes
    )
    db.add(audit_log)


class CategoryRepository:
    """CRUD, import and sequence lookups for Dewey categories."""

    def __init__(self, db: Session, cache: Optional[CategoryTreeCache] = None):
        self.db = db
        self.cache = cache or CategoryTreeCache(self.list_all)

    def list_all(self, include_inactive: bool = True) -> List[DeweyCategory]:
        query = self.db.query(DeweyCategory)
        if not include_inactive:
            query = query.filter(DeweyCategory.is_active == True)
        return query.order_by(DeweyCategory.dewey_code).all()

    def tree(self) -> CategoryTree:
        return self.cache.get()

    def get(self, category_id: int) -> DeweyCategory:
        category = self.db.query(DeweyCategory).filter(DeweyCategory.category_id == category_id).first()
        if not category:
            raise CategoryNotFound(f"Dewey category {category_id} not found")
        return category

    def get_by_code(self, dewey_code: str) -> Optional[DeweyCategory]:
        return self.db.query(DeweyCategory).filter(DeweyCategory.dewey_code == dewey_code).first()

    def count_children(self, dewey_code: str) -> int:
        """Categories naming this code as parent, active or not."""
        return self.db.query(func.count(DeweyCategory.category_id)).filter(
            DeweyCategory.parent_code == dewey_code
        ).scalar() or 0

    def count_recipes(self, dewey_code: str) -> int:
        """Recipes stored at this code or numbered under it."""
        return self.db.query(func.count(Recipe.recipe_id)).filter(
            or_(
                Recipe.dewey_decimal == dewey_code,
                Recipe.dewey_decimal.like(f"{dewey_code}.%"),
            )
        ).scalar() or 0

    def _resolve_level(self, code: str, level: Optional[int]) -> int:
        expected = get_level(code)
        if level is not None and level != expected:
            raise InvalidCodeFormat(code, f"level {level} does not match the code's depth {expected}")
        return expected

    def create(self, data: DeweyCategoryCreate) -> DeweyCategory:
        """Create a category.

        Without an explicit ``parent_code`` the structural parent is linked
        when it is already stored; otherwise the category becomes a root.
        """
        code = validate_category_code(data.dewey_code)
        if self.get_by_code(code):
            raise DuplicateCategoryCode(code)

        level = self._resolve_level(code, data.level)

        parent_code = data.parent_code
        if parent_code is not None:
            parent_code = validate_category_code(parent_code)
            if parent_code == code:
                raise InvalidCodeFormat(code, "a category cannot be its own parent")
        else:
            structural = get_parent_code(code)
            if structural and self.get_by_code(structural):
                parent_code = structural

        category = DeweyCategory(
            dewey_code=code,
            name=data.name,
            level=level,
            parent_code=parent_code,
            is_active=data.is_active,
        )
        self.db.add(category)
        self.db.flush()

        create_audit_log(
            db=self.db,
            entity_type="DeweyCategory",
            entity_id=category.category_id,
            action="CREATE",
            changes={
                "dewey_code": category.dewey_code,
                "name": category.name,
                "level": category.level,
                "parent_code": category.parent_code,
            }
        )

        self.db.commit()
        self.db.refresh(category)
        self.cache.invalidate()
        logger.info("Created Dewey category %s (%s)", category.dewey_code, category.name)
        return category

    def update(self, category_id: int, data: DeweyCategoryUpdate) -> DeweyCategory:
        """Partial update. A code change is refused while children or recipes use the old code."""
        category = self.get(category_id)
        update_data = data.model_dump(exclude_unset=True)

        if "dewey_code" in update_data and update_data["dewey_code"] is None:
            del update_data["dewey_code"]
        if "name" in update_data and update_data["name"] is None:
            del update_data["name"]

        new_code = category.dewey_code
        if "dewey_code" in update_data:
            new_code = validate_category_code(update_data["dewey_code"])
            if new_code != category.dewey_code:
                if self.get_by_code(new_code):
                    raise DuplicateCategoryCode(new_code)
                child_count = self.count_children(category.dewey_code)
                if child_count:
                    raise HasChildrenError(category.dewey_code, child_count)
                recipe_count = self.count_recipes(category.dewey_code)
                if recipe_count:
                    raise CategoryInUse(category.dewey_code, recipe_count)
            update_data["dewey_code"] = new_code

        if "level" in update_data or "dewey_code" in update_data:
            update_data["level"] = self._resolve_level(new_code, update_data.get("level"))

        if "parent_code" in update_data:
            parent_code = update_data["parent_code"] or None
            if parent_code is not None:
                parent_code = validate_category_code(parent_code)
                if parent_code == new_code:
                    raise InvalidCodeFormat(new_code, "a category cannot be its own parent")
            update_data["parent_code"] = parent_code

        changes = {}
        for field, value in update_data.items():
            old_value = getattr(category, field)
            if old_value != value:
                changes[field] = {"old": old_value, "new": value}
            setattr(category, field, value)

        if changes:
            create_audit_log(
                db=self.db,
                entity_type="DeweyCategory",
                entity_id=category_id,
                action="UPDATE",
                changes=changes
            )

        self.db.commit()
        self.db.refresh(category)
        self.cache.invalidate()
        return category

    def delete(self, category_id: int) -> None:
        """Hard delete. Blocked while any category names this one as parent."""
        category = self.get(category_id)

        child_count = self.count_children(category.dewey_code)
        if child_count:
            raise HasChildrenError(category.dewey_code, child_count)

        create_audit_log(
            db=self.db,
            entity_type="DeweyCategory",
            entity_id=category_id,
            action="DELETE",
            changes={"dewey_code": category.dewey_code, "name": category.name}
        )
        self.db.delete(category)
        self.db.commit()
        self.cache.invalidate()
        logger.info("Deleted Dewey category %s", category.dewey_code)

    def import_text(self, text: str, file_name: Optional[str] = None) -> DeweyImportResult:
        """Create categories from bulk ``code name`` text.

        Each category is committed on its own so one failure does not undo
        the rest of the batch.
        """
        existing_codes = {code for (code,) in self.db.query(DeweyCategory.dewey_code).all()}
        plan = plan_import(text, existing_codes)

        errors = list(plan.errors)
        imported = 0
        for item in plan.to_create:
            try:
                self.db.add(DeweyCategory(
                    dewey_code=item.dewey_code,
                    name=item.name,
                    level=item.level,
                    parent_code=item.parent_code,
                    is_active=True,
                ))
                self.db.commit()
                imported += 1
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error("Failed to import %s: %s", item.dewey_code, e)
                errors.append(f"Line {item.line_number} ({item.dewey_code} {item.name}): {e.__class__.__name__}")

        create_audit_log(
            db=self.db,
            entity_type="DeweyCategory",
            entity_id=0,
            action="IMPORT",
            changes={
                "file_name": file_name,
                "imported_count": imported,
                "skipped_count": plan.skipped_count,
                "error_count": len(errors),
            }
        )
        self.db.commit()
        self.cache.invalidate()

        logger.info("Dewey import finished: %d imported, %d errors", imported, len(errors))
        return DeweyImportResult(
            imported_count=imported,
            skipped_count=plan.skipped_count,
            error_count=len(errors),
            errors=errors,
            warnings=plan.warnings,
        )

    def used_sequence_codes(self, base_code: str) -> List[str]:
        """Recipe codes that look like ``<base_code>.<suffix>``."""
        base_code = validate_code(base_code)
        rows = self.db.query(Recipe.dewey_decimal).filter(
            Recipe.dewey_decimal.like(f"{base_code}.%")
        ).all()
        return [code for (code,) in rows if code]

    def next_sequence(self, base_code: str) -> str:
        return next_sequence(base_code, self.used_sequence_codes(base_code))
