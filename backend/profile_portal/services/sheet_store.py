"""Spreadsheet-backed table storage."""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any

from profile_portal.core.config import Settings

logger = logging.getLogger(__name__)

# A leading apostrophe forces the cell to be stored as literal text.
TEXT_MARKER = "'"

ROSTER_HEADERS: list[str] = [
    "HRMS ID",
    "Employee Name",
    "Hindi Name",
    "Designation",
    "DOB",
    "Posting Office",
    "UDISE Code",
]

DETAIL_HEADERS: list[str] = [
    *ROSTER_HEADERS,
    "Adhar Number",
    "EPIC Number",
    "PAN Number",
    "Mobile Number",
    "Gmail ID",
    "Photo",
]


def strip_text_marker(value: Any) -> Any:
    if isinstance(value, str) and value.startswith(TEXT_MARKER):
        return value[len(TEXT_MARKER) :]
    return value


class SheetTable(ABC):
    """One worksheet. Row indexes are zero-based positions in get_values()."""

    @abstractmethod
    def get_values(self) -> list[list[Any]]: ...

    @abstractmethod
    def update_row(self, index: int, values: list[Any]) -> None: ...

    @abstractmethod
    def append_row(self, values: list[Any]) -> None: ...

    @abstractmethod
    def update_cell(self, index: int, column: int, value: Any) -> None: ...


class SheetStore(ABC):
    @abstractmethod
    def get_table(self, name: str) -> SheetTable | None: ...

    def refresh(self) -> None:
        """Pick up changes made outside this process. Called once per request."""


class InMemoryTable(SheetTable):
    def __init__(self, rows: list[list[Any]]) -> None:
        self.rows = rows

    def get_values(self) -> list[list[Any]]:
        return copy.deepcopy(self.rows)

    def update_row(self, index: int, values: list[Any]) -> None:
        row = self.rows[index]
        for column, value in enumerate(values):
            if column < len(row):
                row[column] = strip_text_marker(value)
            else:
                row.append(strip_text_marker(value))

    def append_row(self, values: list[Any]) -> None:
        self.rows.append([strip_text_marker(v) for v in values])

    def update_cell(self, index: int, column: int, value: Any) -> None:
        row = self.rows[index]
        while len(row) <= column:
            row.append("")
        row[column] = strip_text_marker(value)


class InMemoryStore(SheetStore):
    """Process-local store, used for development and tests."""

    def __init__(self, tables: dict[str, list[list[Any]]] | None = None) -> None:
        self.tables: dict[str, InMemoryTable] = {
            name: InMemoryTable([list(row) for row in rows]) for name, rows in (tables or {}).items()
        }

    def get_table(self, name: str) -> InMemoryTable | None:
        return self.tables.get(name)

    def rows(self, name: str) -> list[list[Any]]:
        return self.tables[name].rows


def build_store(settings: Settings) -> SheetStore:
    backend = settings.STORE_BACKEND.lower()

    if backend == "memory":
        logger.warning("Using in-memory sheet store; data is lost on restart")
        return InMemoryStore(
            {
                settings.ROSTER_SHEET_NAME: [list(ROSTER_HEADERS)],
                settings.DETAIL_SHEET_NAME: [list(DETAIL_HEADERS)],
            }
        )

    if backend == "workbook":
        from profile_portal.services.workbook_store import WorkbookStore

        return WorkbookStore(settings.WORKBOOK_PATH)

    if backend == "google_sheets":
        from profile_portal.services.google_sheets_store import GoogleSheetsStore

        return GoogleSheetsStore(
            settings.GOOGLE_SPREADSHEET_ID,
            settings.GOOGLE_SERVICE_ACCOUNT_FILE,
        )

    raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND}")
