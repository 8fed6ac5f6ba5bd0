"""
Error responses for the router dashboard.

Every failure leaves the API as {"message": ..., "error": ...}.
"""
from typing import Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse


class DashboardError(HTTPException):
    def __init__(self, status_code: int, message: str, error: Optional[str] = None, headers: Optional[dict] = None):
        self.message = message
        self.error = error if error is not None else message
        super().__init__(status_code=status_code, detail=message, headers=headers)

    def to_body(self) -> dict:
        return {"message": self.message, "error": self.error}


class DashboardValidationError(DashboardError):
    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, message, error)


class DashboardNotFoundError(DashboardError):
    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(status.HTTP_404_NOT_FOUND, message, error)


class RouterUnavailableError(DashboardError):
    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(status.HTTP_502_BAD_GATEWAY, message, error)


async def dashboard_error_handler(request: Request, exc: DashboardError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=exc.headers)


async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Plain HTTPExceptions (auth, 404 routes) get the same body shape."""
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": detail, "error": detail},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc) -> JSONResponse:
    """Malformed bodies are client errors, reported as 400 like the other validation failures."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request", "error": str(exc.errors())},
    )
