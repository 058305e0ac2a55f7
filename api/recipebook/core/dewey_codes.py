"""Dewey classification code grammar.

A code is a run of digits, optionally followed by one decimal fraction:

    "0" -> "00" -> "000"            (one digit per level before the point)
    "000" -> "000.0" -> "000.00"    (one digit per level after the point)

A catalogued recipe under a leaf category gets a second segment of
exactly ``DEFAULT_SEQUENCE_WIDTH`` digits, e.g. ``411.21.001``. That
suffix identifies the recipe, not a level, so it never changes the level
and its structural parent is the base code it was allocated under.

Everything here is pure string work; explicit ``parent_code`` links on
stored categories always win over ``get_parent_code``.
"""
import re
from typing import Collection, List, Optional, Tuple

from recipebook.core.exceptions import InvalidCodeFormat

DEFAULT_SEQUENCE_WIDTH = 3

CODE_PATTERN = re.compile(r"^\d+(?:\.\d+)?$")


def _sequence_pattern(width: int) -> re.Pattern:
    return re.compile(rf"^(\d+(?:\.\d+)?)\.(\d{{{width}}})$")


def _is_suffixed(code: str, width: int) -> bool:
    # Only the two-dot form is unambiguous without a category index
    return code.count(".") == 2 and bool(_sequence_pattern(width).match(code))


def validate_code(code: Optional[str], width: int = DEFAULT_SEQUENCE_WIDTH) -> str:
    """Return the stripped code, raising InvalidCodeFormat if it is malformed."""
    if code is None:
        raise InvalidCodeFormat("", "code is empty")
    stripped = code.strip()
    if not stripped:
        raise InvalidCodeFormat(code, "code is empty")
    if CODE_PATTERN.match(stripped) or _is_suffixed(stripped, width):
        return stripped
    if re.search(r"[^0-9.]", stripped):
        raise InvalidCodeFormat(code, "only digits and '.' are allowed")
    raise InvalidCodeFormat(code, "misplaced or repeated decimal point")


def validate_category_code(code: Optional[str], width: int = DEFAULT_SEQUENCE_WIDTH) -> str:
    """Like validate_code, but refuses the two-dot form that identifies a recipe."""
    code = validate_code(code, width)
    if code.count(".") > 1:
        raise InvalidCodeFormat(code, "sequence-suffixed codes identify recipes, not categories")
    return code


def is_valid_code(code: Optional[str], width: int = DEFAULT_SEQUENCE_WIDTH) -> bool:
    try:
        validate_code(code, width)
    except InvalidCodeFormat:
        return False
    return True


def get_level(code: str, width: int = DEFAULT_SEQUENCE_WIDTH) -> int:
    """Hierarchy depth implied by the code.

    ``"000"`` is 3, ``"000.0"`` is 4 and ``"000.00"`` is 5. A sequence
    suffix in the two-dot form does not add a level.
    """
    code = validate_code(code, width)
    if _is_suffixed(code, width):
        code = code.rsplit(".", 1)[0]
    if "." in code:
        whole, fraction = code.split(".")
        return len(whole) + len(fraction)
    return len(code)


def get_parent_code(code: str, width: int = DEFAULT_SEQUENCE_WIDTH) -> Optional[str]:
    """Structural parent of a code, or None for a single-digit root."""
    code = validate_code(code, width)
    if _is_suffixed(code, width):
        return code.rsplit(".", 1)[0]

    if "." in code:
        prefix, fraction = code.rsplit(".", 1)
        if len(fraction) > 1:
            return f"{prefix}.{fraction[:-1]}"
        return prefix

    if len(code) <= 1:
        return None
    return code[:-1]


def structural_ancestors(code: str, width: int = DEFAULT_SEQUENCE_WIDTH) -> List[str]:
    """All structural ancestors of a code, root first, including the code itself."""
    chain = []
    current: Optional[str] = validate_code(code, width)
    while current:
        chain.insert(0, current)
        current = get_parent_code(current, width)
    return chain


def split_sequence(
    code: str,
    known_codes: Optional[Collection[str]] = None,
    width: int = DEFAULT_SEQUENCE_WIDTH,
) -> Tuple[str, Optional[str]]:
    """Split ``<base>.<suffix>`` into (base, suffix).

    Returns (code, None) when there is no suffix. With ``known_codes`` the
    split only happens when the base is a known category and the full code
    is not one itself, which is how "000.001" (recipe #1 under "000") is
    told apart from a category at level 6.
    """
    code = validate_code(code, width)
    match = _sequence_pattern(width).match(code)
    if not match:
        return code, None

    base, suffix = match.group(1), match.group(2)
    if known_codes is not None:
        if code in known_codes or base not in known_codes:
            return code, None
    return base, suffix


def is_sequence_code(
    code: str,
    known_codes: Optional[Collection[str]] = None,
    width: int = DEFAULT_SEQUENCE_WIDTH,
) -> bool:
    return split_sequence(code, known_codes, width)[1] is not None


def make_sequence_code(base_code: str, number: int, width: int = DEFAULT_SEQUENCE_WIDTH) -> str:
    """Append a zero-padded sequence number to a base code."""
    return f"{validate_code(base_code, width)}.{number:0{width}d}"
