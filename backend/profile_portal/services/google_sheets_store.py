"""Google Sheets store (gspread, service-account auth)."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

import gspread
from gspread.exceptions import WorksheetNotFound
from gspread.utils import rowcol_to_a1

from profile_portal.services.header_resolver import resolve_headers
from profile_portal.services.sheet_store import SheetStore, SheetTable

logger = logging.getLogger(__name__)

# Lets Sheets parse a leading apostrophe as "store as text".
_INPUT_OPTION = "USER_ENTERED"

# Day zero of the Sheets date serial numbering.
_SERIAL_EPOCH = datetime(1899, 12, 30)


def serial_to_date(value: Any) -> Any:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return value
    return (_SERIAL_EPOCH + timedelta(days=value)).date()


class GoogleSheetsTable(SheetTable):
    def __init__(self, worksheet: Any) -> None:
        self.worksheet = worksheet

    def get_values(self) -> list[list[Any]]:
        """Raw cell values; date serials in the DOB column come back as dates."""
        rows = self.worksheet.get_all_values(
            value_render_option="UNFORMATTED_VALUE",
            date_time_render_option="SERIAL_NUMBER",
        )
        if not rows:
            return rows

        dob = resolve_headers(rows[0]).dob
        if dob is not None:
            for row in rows[1:]:
                if dob < len(row):
                    row[dob] = serial_to_date(row[dob])
        return rows

    def update_row(self, index: int, values: list[Any]) -> None:
        self.worksheet.update(
            values=[values],
            range_name=rowcol_to_a1(index + 1, 1),
            value_input_option=_INPUT_OPTION,
        )

    def append_row(self, values: list[Any]) -> None:
        self.worksheet.append_row(values, value_input_option=_INPUT_OPTION)

    def update_cell(self, index: int, column: int, value: Any) -> None:
        self.worksheet.update_cell(index + 1, column + 1, value)


class GoogleSheetsStore(SheetStore):
    def __init__(self, spreadsheet_id: str, service_account_file: str) -> None:
        if not spreadsheet_id or not service_account_file:
            raise ValueError("GOOGLE_SPREADSHEET_ID and GOOGLE_SERVICE_ACCOUNT_FILE must be set")
        client = gspread.service_account(filename=service_account_file)
        self.spreadsheet = client.open_by_key(spreadsheet_id)
        logger.info("Opened Google spreadsheet %s", spreadsheet_id)

    def get_table(self, name: str) -> GoogleSheetsTable | None:
        try:
            return GoogleSheetsTable(self.spreadsheet.worksheet(name))
        except WorksheetNotFound:
            return None
