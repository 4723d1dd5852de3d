"""
JSON envelope used by every route: {"success": ..., "data"?: ..., "message"?: ...}
"""
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel


def envelope(
    success: bool,
    data: Any = None,
    message: Optional[str] = None,
    status_code: int = 200,
    **extra: Any
) -> JSONResponse:
    content = {"success": success}
    if data is not None:
        content["data"] = jsonable_encoder(data, by_alias=True)
    if message is not None:
        content["message"] = message
    for key, value in extra.items():
        if value is not None:
            content[to_camel(key)] = jsonable_encoder(value, by_alias=True)
    return JSONResponse(status_code=status_code, content=content)
