"""Parse bulk Dewey category text into creation requests.

Input is one or more lines of comma-separated fields, each field holding
``<code> <name>``::

    000 Poultry, 000.0 Chicken, 000.00 Breast
    001 Beef

A line usually spells out a whole branch, so the same code shows up on
many lines; only its first occurrence counts. Codes that already exist
are skipped, which makes re-running an import a no-op.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Collection, List, Optional, Tuple

from recipebook.core.config import settings
from recipebook.core.dewey_codes import get_level, get_parent_code, validate_category_code
from recipebook.core.exceptions import AmbiguousImportLine, InvalidCodeFormat

logger = logging.getLogger(__name__)

FIELD_PATTERN = re.compile(r"^([0-9.]+)\s+(.+)$")


@dataclass(frozen=True)
class ImportedCategory:
    dewey_code: str
    name: str
    level: int
    parent_code: Optional[str]
    line_number: int


@dataclass
class ImportPlan:
    to_create: List[ImportedCategory] = field(default_factory=list)
    existing: List[str] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.existing) + len(self.duplicates) + len(self.warnings)


def parse_code_and_name(text: str) -> Tuple[str, str]:
    """Split ``"000.0 Chicken"`` into ("000.0", "Chicken").

    A field without a leading code comes back as ("", field).
    """
    text = text.strip()
    if not text:
        return "", ""
    match = FIELD_PATTERN.match(text)
    if match:
        return match.group(1).strip(), match.group(2).strip()
    return "", text


def _preview(line: str) -> str:
    limit = settings.MAX_IMPORT_ERROR_PREVIEW
    return line if len(line) <= limit else f"{line[:limit]}..."


def plan_import(text: str, existing_codes: Collection[str]) -> ImportPlan:
    """Work out which categories an import would create.

    Nothing here raises for bad input; problems end up in ``errors``
    (malformed codes) or ``warnings`` (fields with no code at all).
    """
    plan = ImportPlan()
    seen: set = set()

    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            continue

        for raw_field in line.split(","):
            if not raw_field.strip():
                continue

            code, name = parse_code_and_name(raw_field)
            if not code:
                plan.warnings.append(str(AmbiguousImportLine(raw_field.strip(), line_number)))
                continue

            try:
                code = validate_category_code(code)
                level = get_level(code)
                parent_code = get_parent_code(code)
            except InvalidCodeFormat as e:
                plan.errors.append(f'Line {line_number} "{_preview(line)}": {e}')
                continue

            if code in seen:
                plan.duplicates.append(code)
                continue
            seen.add(code)

            if code in existing_codes:
                plan.existing.append(code)
                continue

            plan.to_create.append(ImportedCategory(
                dewey_code=code,
                name=name,
                level=level,
                parent_code=parent_code,
                line_number=line_number,
            ))

    logger.info(
        "Import plan: %d to create, %d existing, %d duplicates, %d warnings, %d errors",
        len(plan.to_create), len(plan.existing), len(plan.duplicates),
        len(plan.warnings), len(plan.errors),
    )
    return plan
