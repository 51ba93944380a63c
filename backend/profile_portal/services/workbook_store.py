"""Local .xlsx workbook store (openpyxl)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from openpyxl import Workbook, load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from profile_portal.services.sheet_store import SheetStore, SheetTable, strip_text_marker

logger = logging.getLogger(__name__)


class WorkbookTable(SheetTable):
    def __init__(self, store: WorkbookStore, worksheet: Worksheet) -> None:
        self.store = store
        self.worksheet = worksheet

    def get_values(self) -> list[list[Any]]:
        return [list(row) for row in self.worksheet.iter_rows(values_only=True)]

    def update_row(self, index: int, values: list[Any]) -> None:
        for column, value in enumerate(values, start=1):
            self.worksheet.cell(row=index + 1, column=column, value=strip_text_marker(value))
        self.store.save(self.worksheet.parent)

    def append_row(self, values: list[Any]) -> None:
        self.worksheet.append([strip_text_marker(v) for v in values])
        self.store.save(self.worksheet.parent)

    def update_cell(self, index: int, column: int, value: Any) -> None:
        self.worksheet.cell(row=index + 1, column=column + 1, value=strip_text_marker(value))
        self.store.save(self.worksheet.parent)


class WorkbookStore(SheetStore):
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Workbook not found: {self.path}")
        self.workbook = load_workbook(self.path)
        logger.info("Loaded workbook %s (sheets=%s)", self.path, self.workbook.sheetnames)

    def refresh(self) -> None:
        # saves write the whole workbook, so it must be the file's current content
        self.workbook = load_workbook(self.path)

    def get_table(self, name: str) -> WorkbookTable | None:
        if name not in self.workbook.sheetnames:
            return None
        return WorkbookTable(self, self.workbook[name])

    def save(self, workbook: Workbook) -> None:
        workbook.save(self.path)
