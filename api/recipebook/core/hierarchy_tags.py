"""Project a recipe's Dewey code onto human-readable tags.

Selecting ``411.21.003`` under "Poultry > Chicken > Breast" tags the
recipe with each ancestor's name. Tags derived this way are recognised
later by exact match against the names of all known categories, so the
next classification change (or clearing it) can replace them while user
tags stay put.
"""
import logging
from typing import Iterable, List, Optional

from recipebook.core.category_tree import CategoryTree
from recipebook.core.dewey_codes import split_sequence
from recipebook.core.exceptions import InvalidCodeFormat

logger = logging.getLogger(__name__)


def category_label(category) -> str:
    """Tag text for one category: its name."""
    return category.name.strip()


def get_hierarchy_tags(tree: CategoryTree, dewey_code: Optional[str]) -> List[str]:
    """Ancestor labels for a code, root first.

    A sequence suffix is dropped before lookup and never yields a tag.
    Ancestors missing from the tree are skipped.
    """
    if not dewey_code or not dewey_code.strip():
        return []

    try:
        base_code, _ = split_sequence(dewey_code, known_codes=tree.codes)
    except InvalidCodeFormat:
        logger.warning("Cannot derive hierarchy tags from malformed code %r", dewey_code)
        return []

    tags: List[str] = []
    for category in tree.ancestor_path(base_code):
        label = category_label(category)
        if label and label not in tags:
            tags.append(label)
    return tags


def is_hierarchy_tag(tree: CategoryTree, tag: str) -> bool:
    return tag in tree.names


def strip_hierarchy_tags(tree: CategoryTree, tags: Iterable[str]) -> List[str]:
    """Drop every tag that names a known category, keeping the rest in order."""
    known = tree.names
    return [tag for tag in tags if tag not in known]


def merge_hierarchy_tags(tree: CategoryTree, current_tags: Iterable[str], dewey_code: Optional[str]) -> List[str]:
    """Replace previously derived tags with the ones for ``dewey_code``.

    Free-form tags keep their relative order and come first; the new
    hierarchy tags follow. An empty code only removes.
    """
    merged: List[str] = []
    for tag in strip_hierarchy_tags(tree, current_tags) + get_hierarchy_tags(tree, dewey_code):
        if tag not in merged:
            merged.append(tag)
    return merged
