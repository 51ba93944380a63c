from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, Request
from pydantic import ValidationError

from profile_portal.models.profile import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    SaveRequest,
    SaveResponse,
)
from profile_portal.services.record_service import (
    MalformedRequestError,
    RecordServiceError,
    record_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portal", tags=["portal"])


def _parse_body(raw: bytes) -> dict[str, Any]:
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedRequestError("Malformed request body.") from e
    if not isinstance(payload, dict):
        raise MalformedRequestError("Malformed request body.")
    return payload


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"Malformed request: {location}: {first['msg']}"


async def _dispatch(payload: dict[str, Any]) -> LoginResponse | SaveResponse:
    action = payload.get("action")

    if action == "login":
        try:
            login = LoginRequest.model_validate(payload)
        except ValidationError as e:
            raise MalformedRequestError(_validation_message(e)) from e
        result = await record_service.authenticate(login.hrms_id, login.password)
        return LoginResponse(exists=result.exists, source=result.source, data=result.data)

    if action == "save":
        try:
            save = SaveRequest.model_validate(payload)
        except ValidationError as e:
            raise MalformedRequestError(_validation_message(e)) from e
        message = await record_service.upsert(save.data)
        return SaveResponse(message=message)

    raise MalformedRequestError("Invalid action")


@router.post("")
async def portal_action(request: Request) -> dict[str, Any]:
    try:
        payload = _parse_body(await request.body())
        response = await _dispatch(payload)
    except RecordServiceError as e:
        logger.info("Portal request failed: %s", e)
        return ErrorResponse(message=str(e)).model_dump()
    except Exception:
        logger.exception("Unexpected error handling portal request")
        return ErrorResponse(message="Unexpected server error.").model_dump()

    return response.model_dump(by_alias=True)
