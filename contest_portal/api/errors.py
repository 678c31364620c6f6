# contest_portal/api/errors.py
"""
Mapowanie wyjatkow na koperte {success: false, error}.
- AppError (domena) -> jego status_code i komunikat,
- HTTPException / bledy walidacji FastAPI -> ta sama koperta,
- cokolwiek innego -> 500, stack trace tylko w logu.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from contest_portal.api.responses import fail
from contest_portal.domain.errors import AppError
from contest_portal.utils.logging import get_logger

logger = get_logger(__name__)

GENERIC_ERROR = "Internal server error"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
        return JSONResponse(status_code=exc.status_code, content=fail(exc.message, exc.details))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content=fail(str(exc.detail)))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]
        return JSONResponse(status_code=400, content=fail("Invalid input", details))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(status_code=500, content=fail(GENERIC_ERROR))
