"""Maps spreadsheet header text to logical profile fields."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from typing import Any

from profile_portal.models.profile import HeaderMap

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"\bid\b|(?:_|employee|emp)id\b")


def _contains(*needles: str) -> Callable[[str], bool]:
    return lambda header: any(needle in header for needle in needles)


# Evaluated in order; the first matching rule claims the column. Email and
# hindi-name rules run before the identifier and plain-name rules because
# "Gmail ID" and "Hindi Name" would otherwise be taken by those.
_RULES: list[tuple[str, Callable[[str], bool]]] = [
    ("gmail_id", _contains("gmail", "email")),
    ("hindi_name", _contains("hindi", "कर्मचारी")),
    ("hrms_id", lambda header: "hrms" in header or bool(_IDENTIFIER.search(header))),
    ("dob", _contains("dob", "date of birth")),
    ("designation", _contains("designation")),
    ("posting_office", _contains("office")),
    ("udise_code", _contains("udise")),
    ("adhar_number", _contains("adhar", "aadhaar")),
    ("epic_number", _contains("epic")),
    ("pan_number", _contains("pan")),
    ("mobile_number", _contains("mobile", "phone")),
    ("photo", _contains("photo")),
    ("employee_name", _contains("name")),
]


def match_field(header: Any) -> str | None:
    text = "" if header is None else str(header).lower().strip()
    if not text:
        return None
    for field, predicate in _RULES:
        if predicate(text):
            return field
    return None


def resolve_headers(header_row: Sequence[Any]) -> HeaderMap:
    """Build a HeaderMap from a table's first row.

    Unrecognised headers are ignored. If two columns map to the same field the
    leftmost one is kept.
    """
    indexes: dict[str, int] = {}
    for index, header in enumerate(header_row):
        field = match_field(header)
        if field is None:
            continue
        if field in indexes:
            logger.warning(
                "Header %r (column %d) also matches %s; keeping column %d",
                header,
                index,
                field,
                indexes[field],
            )
            continue
        indexes[field] = index
    if indexes and "hrms_id" not in indexes:
        logger.warning("No HRMS ID column among headers %r; no row can be matched", list(header_row))
    return HeaderMap(**indexes)
