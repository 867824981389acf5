from fastapi import Request
from fastapi.responses import JSONResponse


class SysdashError(Exception):
    """Base exception for sysdash errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status: int = 500,
        details: dict | None = None,
    ):
        self.code = code
        self.message = message
        self.status = status
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        result = {
            "error": {
                "code": self.code,
                "message": self.message,
                "status": self.status,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result


class ProviderUnavailable(SysdashError):
    """An optional reading (disk, process table) failed or timed out."""

    def __init__(self, message: str = "Metric provider is unavailable.", details: dict | None = None):
        super().__init__(code="provider_unavailable", message=message, status=500, details=details)


class PreconditionViolation(SysdashError):
    """Raw samples broke an invariant, such as a host reporting zero CPU cores."""

    def __init__(self, message: str = "Malformed raw sample.", details: dict | None = None):
        super().__init__(code="precondition_violation", message=message, status=500, details=details)


async def sysdash_error_handler(request: Request, exc: SysdashError) -> JSONResponse:
    """Global exception handler for SysdashError and subclasses."""
    return JSONResponse(status_code=exc.status, content=exc.to_dict())
