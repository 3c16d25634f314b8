import logging
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError

from core.exceptions import BaseCustomException
from core.logging.providers import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    """
    Build error response in the common envelope.

    Parameters
    ----------
    status_code : int
        HTTP status code
    message : str
        Error message
    **extra
        Additional body fields

    Returns
    -------
    JSONResponse
        Error response
    """
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "message": message, **extra}
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for request validation errors.

    Parameters
    ----------
    request : Request
        FastAPI request
    exc : RequestValidationError
        Validation error

    Returns
    -------
    JSONResponse
        Error response with per-field details
    """
    errors = [
        {
            "field": ".".join(
                str(x) for x in error["loc"] if not isinstance(x, int) and x != "body"
            ) or "body",
            "message": error["msg"],
            "type": error["type"]
        }
        for error in exc.errors()
    ]
    return error_response(422, "Validation error", errors=errors)


async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Handler for HTTP exceptions.

    Parameters
    ----------
    request : Request
        FastAPI request
    exc : HTTPException
        HTTP exception

    Returns
    -------
    JSONResponse
        Error response
    """
    return error_response(exc.status_code, exc.detail)


async def starlette_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Handler for Starlette HTTP exceptions, e.g. unknown routes.
    """
    return error_response(exc.status_code, exc.detail)


async def custom_exception_handler(request: Request, exc: Exception):
    """
    Handler for domain and unexpected exceptions.

    Domain errors keep their own status code and message; anything else
    is logged with traceback and reported as a 500.

    Parameters
    ----------
    request : Request
        FastAPI request
    exc : Exception
        Exception

    Returns
    -------
    JSONResponse
        Error response
    """
    if isinstance(exc, BaseCustomException):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return error_response(exc.get_status_code(), exc.message)

    logger.exception(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return error_response(500, "Internal server error")
