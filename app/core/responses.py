from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_pagination(page: int, limit: int, total_count: int) -> dict[str, Any]:
    total_pages = math.ceil(total_count / limit) if limit > 0 else 0
    return {
        "page": page,
        "limit": limit,
        "totalCount": total_count,
        "totalPages": total_pages,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }


def success_response(
    data: Any = None,
    *,
    message: str | None = None,
    status_code: int = 200,
) -> JSONResponse:
    body: dict[str, Any] = {
        "success": True,
        "data": data,
        "statusCode": status_code,
        "timestamp": _timestamp(),
    }
    if message:
        body["message"] = message
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def paginated_response(
    items: list[Any],
    *,
    total_count: int,
    page: int,
    limit: int,
    message: str | None = None,
) -> JSONResponse:
    body: dict[str, Any] = {
        "success": True,
        "data": items,
        "pagination": build_pagination(page, limit, total_count),
        "statusCode": 200,
        "timestamp": _timestamp(),
    }
    if message:
        body["message"] = message
    return JSONResponse(status_code=200, content=jsonable_encoder(body))


def error_body(
    message: str,
    status_code: int,
    *,
    details: list[dict] | None = None,
    stack: str | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "success": False,
        "error": message,
        "statusCode": status_code,
        "timestamp": _timestamp(),
    }
    if details is not None:
        body["details"] = details
    if stack is not None:
        body["stack"] = stack
    return body


def error_response(
    message: str,
    status_code: int,
    *,
    details: list[dict] | None = None,
    stack: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(error_body(message, status_code, details=details, stack=stack)),
        headers=headers,
    )
