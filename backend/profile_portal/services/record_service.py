"""Record resolution and upsert over the Roster (List) and Detail (Data) sheets."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Any, TypeVar

from profile_portal.core.config import Settings
from profile_portal.models.profile import (
    EDITABLE_FIELDS,
    ROSTER_FIELDS,
    HeaderMap,
    LoginResult,
    MergedProfile,
)
from profile_portal.services.header_resolver import resolve_headers
from profile_portal.services.sheet_store import TEXT_MARKER, SheetStore, SheetTable, build_store

logger = logging.getLogger(__name__)

T = TypeVar("T")

DOB_FORMAT = "%d-%m-%Y"
TEXT_FIELDS: frozenset[str] = frozenset({"hrms_id", "adhar_number", "mobile_number"})

MSG_NOT_FOUND = "HRMS ID not found in Master List."
MSG_INVALID_CREDENTIAL = "Invalid Password. Date of Birth mismatch."
MSG_UPDATED = "Data Updated Successfully!"
MSG_CREATED = "Data Saved Successfully!"

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T ].*)?$")


class RecordServiceError(Exception):
    pass


class NotFoundError(RecordServiceError):
    pass


class InvalidCredentialError(RecordServiceError):
    pass


class SchemaMissingError(RecordServiceError):
    pass


class MalformedRequestError(RecordServiceError):
    pass


class LockTimeoutError(RecordServiceError):
    pass


def format_dob(value: Any) -> str:
    if value is None or value == "":
        return ""
    if isinstance(value, datetime | date):
        return value.strftime(DOB_FORMAT)
    text = str(value).strip()
    match = _ISO_DATE.match(text)
    if match:
        year, month, day = match.groups()
        return f"{day}-{month}-{year}"
    return text


def cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime | date):
        return value.strftime(DOB_FORMAT)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _cell(row: list[Any], index: int | None) -> Any:
    if index is None or index >= len(row):
        return None
    return row[index]


def find_row(rows: list[list[Any]], header_map: HeaderMap, hrms_id: str) -> int | None:
    """Index of the first data row whose identifier equals hrms_id."""
    if header_map.hrms_id is None:
        return None
    for index in range(1, len(rows)):
        if cell_text(_cell(rows[index], header_map.hrms_id)) == hrms_id:
            return index
    return None


class RecordService:
    def __init__(self) -> None:
        self.store: SheetStore | None = None
        self.initialized: bool = False
        self.roster_sheet = "List"
        self.detail_sheet = "Data"
        self.lock_timeout = 10.0
        self.photo_max_chars = 50000
        self._lock = asyncio.Lock()

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        self.roster_sheet = settings.ROSTER_SHEET_NAME
        self.detail_sheet = settings.DETAIL_SHEET_NAME
        self.lock_timeout = settings.LOCK_TIMEOUT_SECONDS
        self.photo_max_chars = settings.PHOTO_MAX_CHARS
        self._lock = asyncio.Lock()

        try:
            self.store = await asyncio.to_thread(build_store, settings)
        except (FileNotFoundError, ValueError) as e:
            logger.warning("Sheet store not configured (%s) — RecordService not initialized", e)
            return

        self.initialized = True
        logger.info("RecordService initialized (backend=%s)", settings.STORE_BACKEND)

    async def close(self) -> None:
        self.store = None
        self.initialized = False

    async def check_connection(self) -> bool:
        if not self.store:
            return False
        try:
            return await asyncio.to_thread(self._tables_present)
        except Exception:
            logger.exception("Sheet store connection check failed")
            return False

    async def authenticate(self, hrms_id: str, password: str) -> LoginResult:
        return await self._run_locked(self._authenticate, hrms_id, password)

    async def upsert(self, profile: MergedProfile) -> str:
        return await self._run_locked(self._upsert, profile)

    async def _run_locked(self, func: Callable[..., T], *args: Any) -> T:
        async with self._locked():
            worker = asyncio.ensure_future(asyncio.to_thread(func, *args))
            try:
                return await asyncio.shield(worker)
            except asyncio.CancelledError:
                # the thread cannot be interrupted; keep the lock until it is done
                await asyncio.wait({worker})
                if not worker.cancelled() and worker.exception() is not None:
                    logger.warning("Cancelled request failed in worker: %s", worker.exception())
                raise

    @asynccontextmanager
    async def _locked(self) -> AsyncIterator[None]:
        if not self.store:
            raise RecordServiceError("Record store is not configured.")
        try:
            await asyncio.wait_for(self._lock.acquire(), timeout=self.lock_timeout)
        except asyncio.TimeoutError as e:
            logger.warning("Could not acquire record lock within %.1fs", self.lock_timeout)
            raise LockTimeoutError("Server is busy, please try again.") from e
        try:
            yield
        finally:
            self._lock.release()

    def _tables_present(self) -> bool:
        assert self.store is not None
        self.store.refresh()
        return all(self.store.get_table(name) is not None for name in (self.roster_sheet, self.detail_sheet))

    def _tables(self) -> tuple[SheetTable, SheetTable]:
        assert self.store is not None
        self.store.refresh()
        roster = self.store.get_table(self.roster_sheet)
        detail = self.store.get_table(self.detail_sheet)
        if roster is None or detail is None:
            raise SchemaMissingError(
                f"Required sheets '{self.detail_sheet}' or '{self.roster_sheet}' are missing."
            )
        return roster, detail

    def _authenticate(self, hrms_id: str, password: str) -> LoginResult:
        hrms_id = str(hrms_id).strip()
        password = str(password).strip()
        roster, detail = self._tables()

        roster_rows = roster.get_values()
        roster_map = resolve_headers(roster_rows[0] if roster_rows else [])
        roster_index = find_row(roster_rows, roster_map, hrms_id)
        if roster_index is None:
            raise NotFoundError(MSG_NOT_FOUND)

        roster_row = roster_rows[roster_index]
        dob = format_dob(_cell(roster_row, roster_map.dob))
        if not dob:
            logger.warning("Login rejected for %s: no date of birth on the roster", hrms_id)
            raise InvalidCredentialError(MSG_INVALID_CREDENTIAL)
        if dob != password:
            logger.info("Login rejected for %s: date of birth mismatch", hrms_id)
            raise InvalidCredentialError(MSG_INVALID_CREDENTIAL)

        profile = {field: cell_text(_cell(roster_row, getattr(roster_map, field))) for field in ROSTER_FIELDS}
        profile["hrms_id"] = hrms_id
        profile["dob"] = dob

        detail_rows = detail.get_values()
        detail_map = resolve_headers(detail_rows[0] if detail_rows else [])
        detail_index = find_row(detail_rows, detail_map, hrms_id)
        if detail_index is None:
            logger.info("Login %s: no saved details yet", hrms_id)
            return LoginResult(exists=False, source="List", data=MergedProfile(**profile))

        detail_row = detail_rows[detail_index]
        for field in EDITABLE_FIELDS:
            value = _cell(detail_row, getattr(detail_map, field))
            if field == "photo":
                # data URIs are kept verbatim
                profile[field] = "" if value is None else str(value)
            else:
                profile[field] = cell_text(value)

        hindi_name = cell_text(_cell(detail_row, detail_map.hindi_name))
        if hindi_name:
            profile["hindi_name"] = hindi_name

        logger.info("Login %s: loaded saved details (row %d)", hrms_id, detail_index + 1)
        return LoginResult(exists=True, source="Data", data=MergedProfile(**profile))

    def _upsert(self, profile: MergedProfile) -> str:
        hrms_id = profile.hrms_id.strip()
        if not hrms_id:
            raise MalformedRequestError("HRMS ID is required.")
        if len(profile.photo) > self.photo_max_chars:
            raise MalformedRequestError(
                f"Photo is too large ({len(profile.photo)} characters, maximum {self.photo_max_chars})."
            )
        profile = profile.model_copy(update={"hrms_id": hrms_id})
        roster, detail = self._tables()

        detail_rows = detail.get_values()
        detail_map = resolve_headers(detail_rows[0] if detail_rows else [])
        if detail_map.hrms_id is None:
            raise SchemaMissingError(f"Sheet '{self.detail_sheet}' has no HRMS ID column.")

        row: list[Any] = [""] * detail_map.width()
        for field, index in detail_map.resolved().items():
            value = getattr(profile, field)
            row[index] = TEXT_MARKER + value if field in TEXT_FIELDS else value

        detail_index = find_row(detail_rows, detail_map, hrms_id)
        if detail_index is not None:
            detail.update_row(detail_index, row)
            message = MSG_UPDATED
            logger.info("Updated details for %s (row %d)", hrms_id, detail_index + 1)
        else:
            detail.append_row(row)
            message = MSG_CREATED
            logger.info("Created details for %s", hrms_id)

        try:
            self._sync_roster_hindi_name(roster, profile)
        except Exception:
            logger.exception("Roster hindi name sync failed for %s", hrms_id)

        return message

    def _sync_roster_hindi_name(self, roster: SheetTable, profile: MergedProfile) -> None:
        rows = roster.get_values()
        roster_map = resolve_headers(rows[0] if rows else [])
        if roster_map.hindi_name is None:
            return
        index = find_row(rows, roster_map, profile.hrms_id)
        if index is None:
            return
        roster.update_cell(index, roster_map.hindi_name, profile.hindi_name)


record_service = RecordService()
