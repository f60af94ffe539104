from typing import Any
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(data: Any = None, status_code: int = 200) -> JSONResponse:
    """Wrap data in the {success, data} envelope"""
    content = {"success": True}
    if data is not None:
        content["data"] = jsonable_encoder(data)
    return JSONResponse(status_code=status_code, content=content)


def error_response(message: str, status_code: int) -> JSONResponse:
    """Wrap an error message in the {success, error} envelope"""
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})
