"""
Response envelope: every response body is {success, message?, data?}.
"""
from typing import Any, Optional

from fastapi.responses import JSONResponse


def success_response(data: Any = None, message: Optional[str] = None) -> dict:
    body = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def error_response(status_code: int, message: str, error: Optional[str] = None, headers: Optional[dict] = None) -> JSONResponse:
    body = {"success": False, "message": message}
    if error:
        body["error"] = error
    return JSONResponse(status_code=status_code, content=body, headers=headers)
