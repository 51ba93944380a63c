from __future__ import annotations

from datetime import date, datetime
from unittest.mock import MagicMock, patch

import pytest
from gspread.exceptions import WorksheetNotFound
from openpyxl import Workbook, load_workbook

from profile_portal.core.config import Settings
from profile_portal.services.google_sheets_store import GoogleSheetsStore, serial_to_date
from profile_portal.services.record_service import RecordService
from profile_portal.services.sheet_store import (
    DETAIL_HEADERS,
    ROSTER_HEADERS,
    InMemoryStore,
    build_store,
    strip_text_marker,
)
from profile_portal.services.workbook_store import WorkbookStore


@pytest.fixture
def workbook_path(tmp_path):
    path = tmp_path / "portal.xlsx"
    workbook = Workbook()
    roster = workbook.active
    roster.title = "List"
    roster.append(ROSTER_HEADERS)
    roster.append(["E100", "Asha Rao", "आशा राव", "Officer", datetime(1990, 3, 5), "Block Office", 10010203])
    detail = workbook.create_sheet("Data")
    detail.append(DETAIL_HEADERS)
    workbook.save(path)
    return path


def test_strip_text_marker():
    assert strip_text_marker("'0042") == "0042"
    assert strip_text_marker("0042") == "0042"
    assert strip_text_marker(42) == 42


class TestInMemoryStore:
    def test_unknown_table(self):
        assert InMemoryStore().get_table("List") is None

    def test_get_values_returns_copy(self):
        store = InMemoryStore({"List": [["HRMS ID"], ["E1"]]})
        values = store.get_table("List").get_values()
        values[1][0] = "changed"
        assert store.rows("List")[1][0] == "E1"

    def test_update_cell_extends_short_row(self):
        store = InMemoryStore({"List": [["HRMS ID"], ["E1"]]})
        store.get_table("List").update_cell(1, 2, "'x")
        assert store.rows("List")[1] == ["E1", "", "x"]

    def test_update_row_extends_short_row(self):
        store = InMemoryStore({"Data": [["HRMS ID"], ["E1"]]})
        store.get_table("Data").update_row(1, ["'E1", "a", "b"])
        assert store.rows("Data")[1] == ["E1", "a", "b"]


class TestBuildStore:
    def test_memory_backend_has_default_headers(self):
        store = build_store(Settings(STORE_BACKEND="memory"))
        assert store.get_table("List").get_values() == [ROSTER_HEADERS]
        assert store.get_table("Data").get_values() == [DETAIL_HEADERS]

    def test_workbook_backend(self, workbook_path):
        store = build_store(Settings(STORE_BACKEND="workbook", WORKBOOK_PATH=str(workbook_path)))
        assert isinstance(store, WorkbookStore)

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown STORE_BACKEND"):
            build_store(Settings(STORE_BACKEND="csv"))

    def test_google_sheets_requires_configuration(self):
        with pytest.raises(ValueError, match="GOOGLE_SPREADSHEET_ID"):
            build_store(Settings(STORE_BACKEND="google_sheets"))


class TestWorkbookStore:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            WorkbookStore(tmp_path / "missing.xlsx")

    def test_reads_native_values(self, workbook_path):
        store = WorkbookStore(workbook_path)
        values = store.get_table("List").get_values()

        assert values[0] == ROSTER_HEADERS
        assert values[1][4] == datetime(1990, 3, 5)
        assert store.get_table("Nope") is None

    def test_writes_are_saved_as_text(self, workbook_path):
        store = WorkbookStore(workbook_path)
        table = store.get_table("Data")
        table.append_row(["'E100", "Asha Rao", "", "", "", "", "", "'012345678901"])
        table.update_row(1, ["'E100", "Asha R."])
        store.get_table("List").update_cell(1, 2, "आशा")

        reloaded = load_workbook(workbook_path)
        assert reloaded["Data"]["A2"].value == "E100"
        assert reloaded["Data"]["B2"].value == "Asha R."
        assert reloaded["Data"]["H2"].value == "012345678901"
        assert reloaded["List"]["C2"].value == "आशा"

    @pytest.mark.anyio
    async def test_record_service_end_to_end(self, workbook_path):
        service = RecordService()
        await service.initialize(Settings(STORE_BACKEND="workbook", WORKBOOK_PATH=str(workbook_path)))

        login = await service.authenticate("E100", "05-03-1990")
        assert login.exists is False
        assert login.data.udise_code == "10010203"

        profile = login.data.model_copy(update={"mobile_number": "9876501234", "hindi_name": "आशा"})
        assert await service.upsert(profile) == "Data Saved Successfully!"
        assert await service.upsert(profile) == "Data Updated Successfully!"

        reloaded = load_workbook(workbook_path)
        assert reloaded["Data"].max_row == 2
        assert reloaded["Data"]["K2"].value == "9876501234"
        assert reloaded["List"]["C2"].value == "आशा"

        again = await service.authenticate("E100", "05-03-1990")
        assert again.exists is True
        assert again.data == profile

    @pytest.mark.anyio
    async def test_outside_edits_are_seen_and_preserved(self, workbook_path):
        service = RecordService()
        await service.initialize(Settings(STORE_BACKEND="workbook", WORKBOOK_PATH=str(workbook_path)))
        await service.authenticate("E100", "05-03-1990")

        edited = load_workbook(workbook_path)
        edited["List"].append(["E500", "Late Joiner", "", "Clerk", datetime(1990, 1, 1), "", ""])
        edited.save(workbook_path)

        login = await service.authenticate("E500", "01-01-1990")
        assert login.data.employee_name == "Late Joiner"

        await service.upsert(login.data.model_copy(update={"hindi_name": "नया"}))

        reloaded = load_workbook(workbook_path)
        roster_ids = [row[0] for row in reloaded["List"].iter_rows(values_only=True)]
        assert roster_ids == ["HRMS ID", "E100", "E500"]
        assert reloaded["List"]["C3"].value == "नया"
        assert reloaded["Data"]["A2"].value == "E500"


class TestGoogleSheetsStore:
    def _store(self, spreadsheet: MagicMock) -> GoogleSheetsStore:
        with patch("profile_portal.services.google_sheets_store.gspread") as mock_gspread:
            mock_gspread.service_account.return_value.open_by_key.return_value = spreadsheet
            store = GoogleSheetsStore("sheet-id", "/secrets/sa.json")
        mock_gspread.service_account.assert_called_once_with(filename="/secrets/sa.json")
        return store

    def test_get_table_and_values(self):
        worksheet = MagicMock()
        worksheet.get_all_values.return_value = [["HRMS ID"], ["E100"]]
        spreadsheet = MagicMock()
        spreadsheet.worksheet.return_value = worksheet

        table = self._store(spreadsheet).get_table("List")

        assert table.get_values() == [["HRMS ID"], ["E100"]]
        spreadsheet.worksheet.assert_called_once_with("List")
        worksheet.get_all_values.assert_called_once_with(
            value_render_option="UNFORMATTED_VALUE",
            date_time_render_option="SERIAL_NUMBER",
        )

    def test_dob_serials_become_dates(self):
        worksheet = MagicMock()
        worksheet.get_all_values.return_value = [
            ["HRMS ID", "Employee Name", "DOB", "UDISE Code"],
            [10010203, "Asha Rao", 32937, 10010203],
            ["E200", "Ravi Kumar", "14/07/1992", ""],
            ["E300"],
        ]
        spreadsheet = MagicMock()
        spreadsheet.worksheet.return_value = worksheet

        values = self._store(spreadsheet).get_table("List").get_values()

        assert values[1] == [10010203, "Asha Rao", date(1990, 3, 5), 10010203]
        assert values[2][2] == "14/07/1992"
        assert values[3] == ["E300"]

    def test_serial_to_date(self):
        assert serial_to_date(32937) == date(1990, 3, 5)
        assert serial_to_date(32937.0) == date(1990, 3, 5)
        assert serial_to_date("05-03-1990") == "05-03-1990"
        assert serial_to_date("") == ""

    @pytest.mark.anyio
    async def test_record_service_login_with_serial_dob(self):
        worksheets = {
            "List": MagicMock(),
            "Data": MagicMock(),
        }
        worksheets["List"].get_all_values.return_value = [
            ["HRMS ID", "Employee Name", "DOB"],
            [10010203, "Asha Rao", 32937],
        ]
        worksheets["Data"].get_all_values.return_value = [["HRMS ID", "Mobile Number"]]
        spreadsheet = MagicMock()
        spreadsheet.worksheet.side_effect = worksheets.__getitem__

        service = RecordService()
        service.store = self._store(spreadsheet)
        service.initialized = True

        result = await service.authenticate("10010203", "05-03-1990")

        assert result.data.dob == "05-03-1990"
        assert result.data.hrms_id == "10010203"

    def test_missing_worksheet(self):
        spreadsheet = MagicMock()
        spreadsheet.worksheet.side_effect = WorksheetNotFound("Data")

        assert self._store(spreadsheet).get_table("Data") is None

    def test_writes_use_user_entered_input(self):
        worksheet = MagicMock()
        spreadsheet = MagicMock()
        spreadsheet.worksheet.return_value = worksheet
        table = self._store(spreadsheet).get_table("Data")

        table.update_row(4, ["'E100", "Asha"])
        table.append_row(["'E200", "Ravi"])
        table.update_cell(4, 2, "आशा")

        worksheet.update.assert_called_once_with(
            values=[["'E100", "Asha"]],
            range_name="A5",
            value_input_option="USER_ENTERED",
        )
        worksheet.append_row.assert_called_once_with(["'E200", "Ravi"], value_input_option="USER_ENTERED")
        worksheet.update_cell.assert_called_once_with(5, 3, "आशा")
