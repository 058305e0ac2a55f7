"""Per-recipe sequence numbers under leaf Dewey categories."""
import logging
import re
from typing import Iterable, Optional

from recipebook.core.category_tree import CategoryTree
from recipebook.core.config import settings
from recipebook.core.dewey_codes import make_sequence_code, validate_code
from recipebook.core.exceptions import CategoryNotFound, InvalidCodeFormat, OutOfSequenceSpace

logger = logging.getLogger(__name__)


def next_sequence(base_code: str, used_codes: Iterable[Optional[str]], width: Optional[int] = None) -> str:
    """Return ``base_code`` plus the next free zero-padded suffix.

    Numbering always continues after the highest suffix in use; numbers
    freed by deleting a recipe are not handed out again.

    Raises:
        InvalidCodeFormat: base code is malformed or already suffixed
        OutOfSequenceSpace: the next number does not fit in ``width`` digits
    """
    width = width or settings.SEQUENCE_WIDTH
    base = validate_code(base_code, width)
    if base.count(".") > 1:
        raise InvalidCodeFormat(base_code, "base code already carries a sequence suffix")

    pattern = re.compile(rf"^{re.escape(base)}\.(\d{{{width}}})$")
    highest = 0
    for code in used_codes:
        if not code:
            continue
        match = pattern.match(code.strip())
        if match:
            highest = max(highest, int(match.group(1)))

    max_sequence = 10 ** width - 1
    if highest + 1 > max_sequence:
        logger.error("Sequence space exhausted under %s", base)
        raise OutOfSequenceSpace(base, max_sequence)

    next_code = make_sequence_code(base, highest + 1, width)
    logger.debug("Allocated %s (previous highest suffix %d)", next_code, highest)
    return next_code


def is_sequence_eligible(tree: CategoryTree, code: str, min_level: Optional[int] = None) -> bool:
    """Leaf categories at or below ``min_level`` get numbered recipes.

    A category with any child, active or not, is not a leaf.
    """
    min_level = settings.SEQUENCE_MIN_LEVEL if min_level is None else min_level
    category = tree.get(code)
    if category is None:
        return False
    return tree.is_leaf(code) and category.level >= min_level


def resolve_classification(
    tree: CategoryTree,
    code: str,
    used_codes: Iterable[Optional[str]],
    min_level: Optional[int] = None,
    width: Optional[int] = None,
) -> str:
    """Turn a selected category code into the code stored on a recipe.

    Eligible leaves get the next sequence code; any other category is
    stored as-is.
    """
    if code not in tree:
        raise CategoryNotFound(f"Dewey category '{code}' not found")
    if is_sequence_eligible(tree, code, min_level):
        return next_sequence(code, used_codes, width)
    return code
