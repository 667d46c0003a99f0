"""
Mapping of storage failures onto HTTP responses.
"""
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from finder.monitoring.logger import log
from finder.storage.errors import StorageError

STATUS_BY_KIND = {
    "invalid_path": HTTP_400_BAD_REQUEST,
    "not_found": HTTP_404_NOT_FOUND,
    "io": HTTP_500_INTERNAL_SERVER_ERROR,
    "already_exists": HTTP_400_BAD_REQUEST,
    "no_adapters": HTTP_400_BAD_REQUEST,
    "invalid_request": HTTP_400_BAD_REQUEST,
}


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": False, "message": message})


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    status_code = STATUS_BY_KIND.get(exc.kind, HTTP_500_INTERNAL_SERVER_ERROR)
    level = "ERROR" if status_code >= HTTP_500_INTERNAL_SERVER_ERROR else "WARNING"
    log(level, f"{request.query_params.get('q', '')} failed: {exc.message}",
        module="api", error_kind=exc.kind)
    return error_response(status_code, exc.message)
