"""Caller-owned cache of the category snapshot and its tree."""
import logging
from typing import Callable, Iterable, Optional

from recipebook.core.category_tree import CategoryLike, CategoryTree

logger = logging.getLogger(__name__)


class CategoryTreeCache:
    """Holds one CategoryTree until told to drop it.

    The owner passes a loader that returns the full category list and
    calls ``invalidate()`` after every create, update, delete or import.
    There is no expiry.
    """

    def __init__(self, loader: Callable[[], Iterable[CategoryLike]]):
        self._loader = loader
        self._tree: Optional[CategoryTree] = None
        self.loads = 0

    def get(self) -> CategoryTree:
        if self._tree is None:
            self._tree = CategoryTree(self._loader())
            self.loads += 1
            logger.debug("Built category tree with %d categories", len(self._tree))
        return self._tree

    def invalidate(self) -> None:
        self._tree = None

    @property
    def is_loaded(self) -> bool:
        return self._tree is not None
