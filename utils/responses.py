from fastapi.responses import JSONResponse

from schemas.common import ErrorDetail


def ok(data, **extra):
    return {"success": True, "data": data, **extra}


def fail(status_code: int, message: str) -> JSONResponse:
    """{"success": False, "error": {...}} with the matching HTTP status."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": ErrorDetail(code=status_code, message=message).model_dump()},
    )
