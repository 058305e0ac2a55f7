"""Error kinds raised by the classification core and repositories.

All of them derive from ``ValueError`` so callers that only care about
"bad input" can catch that; routers map each kind to an HTTP status.
"""
from typing import Optional


class ClassificationError(ValueError):
    """Base class for Dewey classification errors."""


class InvalidCodeFormat(ClassificationError):
    """A classification code string is malformed."""

    def __init__(self, code: str, reason: str = "malformed classification code"):
        self.code = code
        self.reason = reason
        super().__init__(f"Invalid Dewey code '{code}': {reason}")


class OutOfSequenceSpace(ClassificationError):
    """The next sequence suffix under a base code would exceed its width."""

    def __init__(self, base_code: str, max_sequence: int):
        self.base_code = base_code
        self.max_sequence = max_sequence
        super().__init__(
            f"No sequence numbers left under '{base_code}' (maximum is {max_sequence})"
        )


class HasChildrenError(ClassificationError):
    """A category is still referenced as parent by other categories."""

    def __init__(self, dewey_code: str, child_count: int):
        self.dewey_code = dewey_code
        self.child_count = child_count
        super().__init__(
            f"Cannot modify category '{dewey_code}': {child_count} child categor"
            f"{'y' if child_count == 1 else 'ies'} still reference it"
        )


class AmbiguousImportLine(ClassificationError):
    """An import field could not be split into code and name."""

    def __init__(self, field: str, line_number: Optional[int] = None):
        self.field = field
        self.line_number = line_number
        where = f"Line {line_number}: " if line_number is not None else ""
        super().__init__(f"{where}could not read a Dewey code from '{field}'")


class BrokenAncestorLink(ClassificationError):
    """A parent code does not resolve to any known category."""

    def __init__(self, dewey_code: str, missing_code: str):
        self.dewey_code = dewey_code
        self.missing_code = missing_code
        super().__init__(f"Parent '{missing_code}' of '{dewey_code}' does not exist")


class CategoryNotFound(ClassificationError):
    """No category matches the requested id or code."""


class DuplicateCategoryCode(ClassificationError):
    """A category with the same Dewey code already exists."""

    def __init__(self, dewey_code: str):
        self.dewey_code = dewey_code
        super().__init__(f"Dewey category with code '{dewey_code}' already exists")


class SequenceCodeTaken(ClassificationError):
    """Another recipe already holds this sequence code."""

    def __init__(self, dewey_code: str):
        self.dewey_code = dewey_code
        super().__init__(f"Sequence code '{dewey_code}' is already assigned to another recipe")


class CategoryInUse(ClassificationError):
    """Recipes are still classified under a category's code."""

    def __init__(self, dewey_code: str, recipe_count: int):
        self.dewey_code = dewey_code
        self.recipe_count = recipe_count
        super().__init__(
            f"Cannot change code of category '{dewey_code}': {recipe_count} recipe"
            f"{'' if recipe_count == 1 else 's'} classified under it"
        )
