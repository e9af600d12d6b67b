"""Envelope shared by every endpoint.

    {"code": 0, "message": "success", "data": {...}, "timestamp": "...", "request_id": "req_..."}

`code` is 0 on success, otherwise the AppError code (2001 insufficient
balance, 4004 insufficient supply, ...) with `data` null. Decimals inside
`data` are dumped in JSON mode, i.e. as strings.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from pydantic import BaseModel, Field

from src.pt_common.errors import AppError


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=_now_iso)
    request_id: str = Field(default_factory=_new_request_id)


def success_response(data: Any = None) -> ApiResponse:
    return ApiResponse(data=data)


def error_response(code: int, message: str) -> ApiResponse:
    return ApiResponse(code=code, message=message)


def _tag(resp: ApiResponse, request: Request) -> ApiResponse:
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


def request_success(request: Request, data: BaseModel, message: str = "success") -> ApiResponse:
    resp = success_response(data.model_dump(mode="json"))
    resp.message = message
    return _tag(resp, request)


def request_error(request: Request, exc: AppError) -> ApiResponse:
    return _tag(error_response(exc.code, exc.message), request)
