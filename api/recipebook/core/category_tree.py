"""In-memory index over a snapshot of Dewey categories.

The tree is built once from a flat list (ORM rows or anything exposing
``dewey_code``, ``name``, ``level``, ``parent_code`` and ``is_active``)
and is never mutated; rebuild it after any create/update/delete.
"""
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Protocol, Set, Tuple

from recipebook.core.dewey_codes import get_level, get_parent_code, is_valid_code
from recipebook.core.exceptions import BrokenAncestorLink, InvalidCodeFormat

logger = logging.getLogger(__name__)


class CategoryLike(Protocol):
    dewey_code: str
    name: str
    level: int
    parent_code: Optional[str]
    is_active: bool


class CategoryTree:
    """Lookup tables for browsing and classifying against Dewey categories.

    Children are indexed by explicit ``parent_code`` only. Lookups are
    dictionary hits after the single pass in ``__init__``.
    """

    def __init__(self, categories: Iterable[CategoryLike]):
        self._categories: List[CategoryLike] = list(categories)
        self.by_code: Dict[str, CategoryLike] = {}
        self._children: Dict[str, List[CategoryLike]] = defaultdict(list)

        for category in self._categories:
            if category.dewey_code in self.by_code:
                logger.warning("Duplicate Dewey code %s in snapshot; keeping first", category.dewey_code)
                continue
            self.by_code[category.dewey_code] = category
            if category.parent_code:
                self._children[category.parent_code].append(category)

        for siblings in self._children.values():
            siblings.sort(key=lambda c: c.dewey_code)

    def __len__(self) -> int:
        return len(self.by_code)

    def __contains__(self, code: object) -> bool:
        return code in self.by_code

    def get(self, code: str) -> Optional[CategoryLike]:
        return self.by_code.get(code)

    @property
    def codes(self) -> Set[str]:
        return set(self.by_code)

    @property
    def names(self) -> Set[str]:
        """Names of every category, active or not."""
        return {category.name for category in self.by_code.values()}

    def all(self, include_inactive: bool = True) -> List[CategoryLike]:
        categories = sorted(self.by_code.values(), key=lambda c: c.dewey_code)
        if include_inactive:
            return categories
        return [c for c in categories if c.is_active]

    def children_of(self, code: str, include_inactive: bool = False) -> List[CategoryLike]:
        """Direct children by explicit parent link, sorted by code.

        Browse and selection views hide inactive children; admin listings
        pass ``include_inactive=True``.
        """
        children = self._children.get(code, [])
        if include_inactive:
            return list(children)
        return [c for c in children if c.is_active]

    def has_children(self, code: str, include_inactive: bool = False) -> bool:
        return self.child_count(code, include_inactive) > 0

    def child_count(self, code: str, include_inactive: bool = False) -> int:
        return len(self.children_of(code, include_inactive))

    def is_leaf(self, code: str) -> bool:
        """True when no category, active or not, names this code as parent."""
        return code in self.by_code and not self.has_children(code, include_inactive=True)

    def roots(self, include_inactive: bool = False) -> List[CategoryLike]:
        """Categories without a parent link, ordered by code as a string.

        String order is the classification convention: "10" sorts before "2".
        """
        roots = [c for c in self.by_code.values() if not c.parent_code]
        if not include_inactive:
            roots = [c for c in roots if c.is_active]
        return sorted(roots, key=lambda c: c.dewey_code)

    def effective_parent_code(self, category: CategoryLike) -> Optional[str]:
        """Explicit parent link, or the structural parent when none is stored."""
        if category.parent_code:
            return category.parent_code
        if not is_valid_code(category.dewey_code):
            return None
        return get_parent_code(category.dewey_code)

    def ancestor_path(self, code: str, strict: bool = False) -> List[CategoryLike]:
        """Categories from the root down to ``code`` (inclusive).

        The walk stops at the first code that is not in the snapshot. With
        ``strict=True`` an explicit parent link that does not resolve raises
        BrokenAncestorLink instead.
        """
        path: List[CategoryLike] = []
        seen: Set[str] = set()
        current_code: Optional[str] = code
        child_code: Optional[str] = None

        while current_code and current_code not in seen:
            category = self.by_code.get(current_code)
            if category is None:
                if child_code is not None:
                    explicit = self.by_code[child_code].parent_code == current_code
                    if explicit:
                        logger.warning("Broken ancestor link: %s -> %s", child_code, current_code)
                        if strict:
                            raise BrokenAncestorLink(child_code, current_code)
                break
            seen.add(current_code)
            path.insert(0, category)
            child_code = current_code
            current_code = self.effective_parent_code(category)

        return path

    def broken_links(self) -> List[Tuple[str, str]]:
        """(code, missing parent code) for every explicit link that does not resolve."""
        return [
            (c.dewey_code, c.parent_code)
            for c in self.all()
            if c.parent_code and c.parent_code not in self.by_code
        ]

    def level_mismatches(self) -> List[Tuple[str, int, Optional[int]]]:
        """(code, stored level, structural level) where the two disagree.

        A structural level of None means the stored code is malformed.
        """
        mismatches = []
        for category in self.all():
            try:
                expected = get_level(category.dewey_code)
            except InvalidCodeFormat:
                mismatches.append((category.dewey_code, category.level, None))
                continue
            if expected != category.level:
                mismatches.append((category.dewey_code, category.level, expected))
        return mismatches
