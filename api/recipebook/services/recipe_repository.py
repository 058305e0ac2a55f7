"""Recipe persistence and classification."""
import logging
from typing import Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from recipebook.core.dewey_codes import split_sequence, validate_code
from recipebook.core.exceptions import CategoryNotFound, InvalidCodeFormat, SequenceCodeTaken
from recipebook.core.hierarchy_tags import merge_hierarchy_tags
from recipebook.core.sequence import is_sequence_eligible, resolve_classification
from recipebook.models.recipe import Recipe, RecipeTag, Tag
from recipebook.schemas.recipe import RecipeCreate, RecipeUpdate
from recipebook.services.category_repository import CategoryRepository, create_audit_log

logger = logging.getLogger(__name__)


class RecipeRepository:
    """Stores recipes, their ordered tags and their Dewey classification."""

    def __init__(self, db: Session, categories: Optional[CategoryRepository] = None):
        self.db = db
        self.categories = categories or CategoryRepository(db)

    def _query(self):
        return self.db.query(Recipe).options(
            selectinload(Recipe.recipe_tags).selectinload(RecipeTag.tag)
        )

    def list_all(self) -> List[Recipe]:
        return self._query().order_by(Recipe.created_at.desc(), Recipe.recipe_id.desc()).all()

    def get(self, recipe_id: int) -> Optional[Recipe]:
        return self._query().filter(Recipe.recipe_id == recipe_id).first()

    def _set_tags(self, recipe: Recipe, names: List[str]) -> None:
        """Replace the recipe's tags, reusing existing association rows."""
        current = {rt.tag.name: rt for rt in recipe.recipe_tags}
        new_tags: Dict[str, Tag] = {}
        ordered: List[RecipeTag] = []

        for position, name in enumerate(names):
            link = current.get(name)
            if link is None:
                tag = new_tags.get(name) or self.db.query(Tag).filter(Tag.name == name).first()
                if tag is None:
                    tag = Tag(name=name)
                    self.db.add(tag)
                new_tags[name] = tag
                link = RecipeTag(tag=tag)
            link.sort_order = position
            ordered.append(link)

        recipe.recipe_tags = ordered

    def _cleanup_orphaned_tags(self) -> None:
        """Remove tags no recipe uses any more."""
        self.db.flush()
        orphans = self.db.query(Tag).filter(~Tag.recipe_tags.any()).all()
        for tag in orphans:
            self.db.delete(tag)

    def _apply_classification(self, recipe: Recipe, dewey_code: Optional[str], tags: List[str]) -> List[str]:
        """Set ``recipe.dewey_decimal`` from a selected code and return the merged tags.

        A category code that is an eligible leaf gets the next sequence
        number, unless the recipe already holds a number under that same
        base. An already-suffixed code is kept when its base is an eligible
        leaf and no other recipe holds it.
        """
        tree = self.categories.tree()

        if not dewey_code or not dewey_code.strip():
            recipe.dewey_decimal = None
            return merge_hierarchy_tags(tree, tags, None)

        code = validate_code(dewey_code)
        base_code, suffix = split_sequence(code, known_codes=tree.codes)
        if base_code not in tree:
            raise CategoryNotFound(f"Dewey category '{base_code}' not found")

        current_base = None
        if recipe.dewey_decimal:
            current_base, current_suffix = split_sequence(recipe.dewey_decimal, known_codes=tree.codes)
            if current_suffix is None:
                current_base = None

        if suffix is not None:
            if not is_sequence_eligible(tree, base_code):
                raise InvalidCodeFormat(code, f"category '{base_code}' does not take sequence numbers")
            if code != recipe.dewey_decimal and code in self.categories.used_sequence_codes(base_code):
                raise SequenceCodeTaken(code)
            resolved = code
        elif current_base == code:
            resolved = recipe.dewey_decimal
        else:
            resolved = resolve_classification(tree, code, self.categories.used_sequence_codes(code))

        recipe.dewey_decimal = resolved
        logger.debug("Classified recipe %s as %s", recipe.recipe_id, resolved)
        return merge_hierarchy_tags(tree, tags, resolved)

    def create(self, data: RecipeCreate) -> Recipe:
        recipe = Recipe(
            name=data.name,
            page=data.page,
            url=data.url,
            notes=data.notes,
            rating=data.rating,
        )
        tags = list(data.tags)
        if data.dewey_code:
            tags = self._apply_classification(recipe, data.dewey_code, tags)

        self.db.add(recipe)
        self._set_tags(recipe, tags)
        self.db.flush()

        create_audit_log(
            db=self.db,
            entity_type="Recipe",
            entity_id=recipe.recipe_id,
            action="CREATE",
            changes={"name": recipe.name, "dewey_decimal": recipe.dewey_decimal}
        )
        self.db.commit()
        return self.get(recipe.recipe_id)

    def update(self, recipe: Recipe, data: RecipeUpdate) -> Recipe:
        update_data = data.model_dump(exclude_unset=True)
        tags = update_data.pop("tags", None)

        for field, value in update_data.items():
            if field == "name" and value is None:
                continue
            setattr(recipe, field, value)

        if tags is not None:
            self._set_tags(recipe, tags)
            self._cleanup_orphaned_tags()

        self.db.commit()
        return self.get(recipe.recipe_id)

    def classify(self, recipe: Recipe, dewey_code: Optional[str]) -> Recipe:
        """Select or clear a recipe's classification, refreshing its hierarchy tags."""
        old_code = recipe.dewey_decimal
        tags = self._apply_classification(recipe, dewey_code, recipe.tags)
        self._set_tags(recipe, tags)
        self._cleanup_orphaned_tags()

        if recipe.dewey_decimal != old_code:
            create_audit_log(
                db=self.db,
                entity_type="Recipe",
                entity_id=recipe.recipe_id,
                action="CLASSIFY",
                changes={"dewey_decimal": {"old": old_code, "new": recipe.dewey_decimal}}
            )
        self.db.commit()
        return self.get(recipe.recipe_id)

    def delete(self, recipe: Recipe) -> None:
        create_audit_log(
            db=self.db,
            entity_type="Recipe",
            entity_id=recipe.recipe_id,
            action="DELETE",
            changes={"name": recipe.name, "dewey_decimal": recipe.dewey_decimal}
        )
        self.db.delete(recipe)
        self._cleanup_orphaned_tags()
        self.db.commit()

    def search(self, search_term: str = "", tags: Optional[List[str]] = None) -> List[Recipe]:
        """Recipes carrying every tag in ``tags`` whose name or a tag contains ``search_term``."""
        query = self._query()
        wanted = sorted({t for t in (tags or []) if t})
        if wanted:
            matching = (
                select(RecipeTag.recipe_id)
                .join(Tag, Tag.tag_id == RecipeTag.tag_id)
                .where(Tag.name.in_(wanted))
                .group_by(RecipeTag.recipe_id)
                .having(func.count(func.distinct(Tag.name)) == len(wanted))
            )
            query = query.filter(Recipe.recipe_id.in_(matching))

        recipes = query.order_by(Recipe.created_at.desc(), Recipe.recipe_id.desc()).all()

        term = (search_term or "").strip().lower()
        if term:
            recipes = [
                r for r in recipes
                if term in r.name.lower() or any(term in tag.lower() for tag in r.tags)
            ]
        return recipes

    def by_dewey_code(self, dewey_code: str) -> List[Recipe]:
        """Recipes classified at a category or anywhere beneath it."""
        code = validate_code(dewey_code)
        tree = self.categories.tree()

        codes = {code}
        pending = [code]
        while pending:
            for child in tree.children_of(pending.pop(), include_inactive=True):
                if child.dewey_code not in codes:
                    codes.add(child.dewey_code)
                    pending.append(child.dewey_code)

        candidates = self._query().filter(
            Recipe.dewey_decimal.isnot(None),
            or_(*[Recipe.dewey_decimal.like(f"{c}%") for c in codes])
        ).order_by(Recipe.dewey_decimal, Recipe.recipe_id).all()

        known = tree.codes
        return [
            r for r in candidates
            if split_sequence(r.dewey_decimal, known_codes=known)[0] in codes
        ]

    def next_recipe(self, recipe_id: int) -> Optional[Recipe]:
        return self._query().filter(Recipe.recipe_id > recipe_id).order_by(Recipe.recipe_id.asc()).first()

    def previous_recipe(self, recipe_id: int) -> Optional[Recipe]:
        return self._query().filter(Recipe.recipe_id < recipe_id).order_by(Recipe.recipe_id.desc()).first()

    def all_tags(self) -> List[str]:
        return [name for (name,) in self.db.query(Tag.name).order_by(Tag.name).all()]

    def tag_counts(self) -> List[dict]:
        count = func.count(RecipeTag.recipe_id)
        rows = (
            self.db.query(Tag.name, count.label("count"))
            .outerjoin(RecipeTag, RecipeTag.tag_id == Tag.tag_id)
            .group_by(Tag.tag_id, Tag.name)
            .order_by(count.desc(), Tag.name.asc())
            .all()
        )
        return [{"name": name, "count": n} for name, n in rows]
