"""Translate domain errors into ``{"message": ...}`` JSON responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..domain.errors import AuthFailure, RecordsServiceError, StoreUnavailable


async def handle_domain_error(request: Request, exc: RecordsServiceError) -> JSONResponse:
    # auth and storage failures never echo internal detail
    if isinstance(exc, (AuthFailure, StoreUnavailable)):
        message = exc.public_message
    else:
        message = str(exc)
    return JSONResponse(status_code=exc.status_code, content={"message": message})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RecordsServiceError, handle_domain_error)
