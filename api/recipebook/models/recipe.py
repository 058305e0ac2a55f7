"""Recipe and tag models."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from sqlalchemy import String, Text, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from recipebook.models.base import Base
from recipebook.core.time import utc_now


class Recipe(Base):
    """A catalogued recipe, optionally classified under a Dewey code."""
    __tablename__ = "recipes"
    __table_args__ = (
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_recipe_rating_range"),
    )

    recipe_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    page: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True,
        comment="Where to find it: book page, binder slot, etc."
    )
    url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    dewey_decimal: Mapped[Optional[str]] = mapped_column(
        String(60), nullable=True, index=True,
        comment="Base code or base code plus sequence suffix (e.g. 411.21.003)"
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    recipe_tags: Mapped[List["RecipeTag"]] = relationship(
        "RecipeTag", back_populates="recipe", cascade="all, delete-orphan",
        order_by="RecipeTag.sort_order"
    )

    @property
    def tags(self) -> List[str]:
        """Tag names in the order they were given."""
        return [rt.tag.name for rt in self.recipe_tags]

    def __repr__(self) -> str:
        return f"<Recipe(recipe_id={self.recipe_id}, name={self.name}, dewey_decimal={self.dewey_decimal})>"


class Tag(Base):
    """A tag name shared across recipes."""
    __tablename__ = "tags"

    tag_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    # delete-orphan lives on Recipe.recipe_tags only, so dropping a tag from
    # a recipe deletes the link row
    recipe_tags: Mapped[List["RecipeTag"]] = relationship(
        "RecipeTag", back_populates="tag", cascade="all"
    )


class RecipeTag(Base):
    """Association between a recipe and a tag, keeping tag order."""
    __tablename__ = "recipe_tags"

    recipe_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("recipes.recipe_id", ondelete="CASCADE"), primary_key=True
    )
    tag_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tags.tag_id", ondelete="CASCADE"), primary_key=True
    )
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="recipe_tags")
    tag: Mapped["Tag"] = relationship("Tag", back_populates="recipe_tags")
