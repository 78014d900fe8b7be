from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class ApiError(Exception):
    status_code = 400

    def __init__(self, errors: dict[str, list[str]] | None = None, message: str | None = None):
        self.errors = errors or {}
        self.message = message
        super().__init__(message or str(self.errors))

    @classmethod
    def for_field(cls, field: str, message: str) -> "ApiError":
        return cls({field: [message]})

    def payload(self) -> dict:
        if self.errors:
            return {"errors": self.errors}
        return {"message": self.message or ""}


class BadRequestError(ApiError):
    status_code = 400


class ValidationError(ApiError):
    status_code = 422


class AuthorizationError(ApiError):
    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


class FileOperationError(Exception):
    """Raised by the file storage when a file cannot be written or removed."""


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def _api_error_handler(_request: Request, exc: ApiError):
        return JSONResponse(status_code=exc.status_code, content=exc.payload())
