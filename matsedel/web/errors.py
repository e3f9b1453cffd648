"""Translate Matsedel errors into HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from matsedel.core.errors import (
    InvalidRequestError,
    MatsedelError,
    NotFoundError,
    ParseError,
    UpstreamError,
)

# Checked in order, so subclasses must come before their bases
STATUS_CODES: list[tuple[type[MatsedelError], int]] = [
    (ParseError, 422),
    (NotFoundError, 404),
    (InvalidRequestError, 400),
    (UpstreamError, 502),
]


def status_code_for(error: MatsedelError) -> int:
    """Get the HTTP status code for an error kind."""
    for error_class, status_code in STATUS_CODES:
        if isinstance(error, error_class):
            return status_code
    return 500


async def handle_matsedel_error(request: Request, exc: MatsedelError) -> JSONResponse:
    """Render an error as a JSON body with the matching status code."""
    return JSONResponse(
        {"error": exc.kind, "message": exc.message},
        status_code=status_code_for(exc),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the error handlers on an application."""
    app.add_exception_handler(MatsedelError, handle_matsedel_error)
