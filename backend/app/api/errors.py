"""
Exception handlers mapping domain errors to response bodies.

Business failures are reported with status 200 and `success: false`;
only unexpected exceptions produce a 500.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.exceptions import RideShareError
from app.core.logging import get_logger

logger = get_logger(__name__)


async def rideshare_error_handler(request: Request, exc: RideShareError) -> JSONResponse:
    logger.info("request_rejected", kind=exc.kind, error=exc.message)
    return JSONResponse(status_code=200, content={"success": False, "error": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("request_invalid", errors=len(exc.errors()))
    return JSONResponse(
        status_code=200,
        content={"success": False, "error": "Invalid request payload"},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", error_type=type(exc).__name__)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RideShareError, rideshare_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
