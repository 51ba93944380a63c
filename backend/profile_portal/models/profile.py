"""Profile models shared by the record service and the portal endpoint."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

ROSTER_FIELDS: tuple[str, ...] = (
    "hrms_id",
    "employee_name",
    "hindi_name",
    "designation",
    "dob",
    "posting_office",
    "udise_code",
)

EDITABLE_FIELDS: tuple[str, ...] = (
    "adhar_number",
    "epic_number",
    "pan_number",
    "mobile_number",
    "gmail_id",
    "photo",
)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class MergedProfile(CamelModel):
    """Roster facts combined with the employee's editable detail fields."""

    hrms_id: str = ""
    employee_name: str = ""
    hindi_name: str = ""
    designation: str = ""
    dob: str = ""
    posting_office: str = ""
    udise_code: str = ""
    adhar_number: str = ""
    epic_number: str = ""
    pan_number: str = ""
    mobile_number: str = ""
    gmail_id: str = ""
    photo: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _none_as_empty(cls, value: object) -> object:
        return "" if value is None else value


class HeaderMap(BaseModel):
    """Zero-based column index per logical field; None when a table lacks the column."""

    hrms_id: int | None = None
    employee_name: int | None = None
    hindi_name: int | None = None
    designation: int | None = None
    dob: int | None = None
    posting_office: int | None = None
    udise_code: int | None = None
    adhar_number: int | None = None
    epic_number: int | None = None
    pan_number: int | None = None
    mobile_number: int | None = None
    gmail_id: int | None = None
    photo: int | None = None

    def resolved(self) -> dict[str, int]:
        return {name: index for name, index in self if index is not None}

    def width(self) -> int:
        indexes = self.resolved().values()
        return max(indexes) + 1 if indexes else 0


class LoginResult(BaseModel):
    exists: bool
    source: Literal["Data", "List"]
    data: MergedProfile


class LoginRequest(CamelModel):
    action: Literal["login"]
    hrms_id: str
    password: str


class SaveRequest(CamelModel):
    action: Literal["save"]
    data: MergedProfile


class LoginResponse(BaseModel):
    status: Literal["success"] = "success"
    exists: bool
    source: Literal["Data", "List"]
    data: MergedProfile


class SaveResponse(BaseModel):
    status: Literal["success"] = "success"
    message: str


class ErrorResponse(BaseModel):
    status: Literal["error"] = "error"
    message: str
