"""
Ivay Shop - JSON Envelopes
===========================
Success body: {timestamp, message, code, data}
Error body:   {timestamp, status, message, errors}
"""

from typing import Any, List, Optional

from fastapi import status as http_status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

from common.helpers import now_utc


def api_response(message: str, data: Any = None, code: int = http_status.HTTP_200_OK) -> JSONResponse:
    """Wrap `data` (pydantic models, lists or plain dicts) in the success envelope."""
    return JSONResponse(
        {
            "timestamp": now_utc().isoformat(),
            "message": message,
            "code": code,
            "data": jsonable_encoder(data),
        },
        status_code=code,
    )


def api_error(status_code: int, message: str, errors: Optional[List[str]] = None) -> JSONResponse:
    return JSONResponse(
        {
            "timestamp": now_utc().isoformat(),
            "status": status_code,
            "message": message,
            "errors": errors if errors is not None else [message],
        },
        status_code=status_code,
    )


def no_content() -> Response:
    return Response(status_code=http_status.HTTP_204_NO_CONTENT)
