from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class ResourceError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "resource_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code}


class ValidationError(ResourceError):
    """A required field is missing or a value breaks a domain rule."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "validation_error"

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        if self.errors:
            payload["errors"] = self.errors
        return payload


class ConversionError(ResourceError):
    """A property cannot be set, or a reference cannot be resolved."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "conversion_error"


class NotSupportedError(ResourceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "not_supported"


class NotFoundError(ResourceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ResourceError)
    async def resource_error_handler(request: Request, exc: ResourceError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())
