"""
Exception handlers - Translate domain errors into HTTP responses.

Every SignupError becomes its status code with a body shaped like
FastAPI's HTTPException detail: {"detail": {"code": ..., "message": ...}}.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from registrar.domain.exceptions import SignupError

logger = logging.getLogger(__name__)


async def signup_error_handler(request: Request, exc: SignupError) -> JSONResponse:
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.code)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": {"code": exc.code, "message": exc.message}},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach domain error handlers to the application."""
    app.add_exception_handler(SignupError, signup_error_handler)
