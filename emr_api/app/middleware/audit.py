from __future__ import annotations

import logging
import time
import uuid

from fastapi import FastAPI, HTTPException as FastAPIHTTPException, Request
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from ..services import audit_logs

logger = logging.getLogger(__name__)

SKIPPED_METHODS = {"OPTIONS", "HEAD"}
REQUEST_ID_HEADER = "X-Request-Id"


def register_audit_logging(app: FastAPI) -> None:
    """Emit one request record per call and tag responses with a request id."""

    @app.middleware("http")
    async def audit_logging(request: Request, call_next):
        request.state.current_user = None
        request.state.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

        started = time.perf_counter()
        response: Response | None = None
        status_override = None
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request.state.request_id
            return response
        except (FastAPIHTTPException, StarletteHTTPException) as exc:
            status_override = exc.status_code
            raise
        except Exception:
            status_override = 500
            logger.exception(
                "unhandled error during %s %s [%s]", request.method, request.url.path, request.state.request_id
            )
            raise
        finally:
            if request.method not in SKIPPED_METHODS:
                audit_logs.log_request_event(
                    request,
                    response,
                    status_code_override=status_override,
                    duration_ms=(time.perf_counter() - started) * 1000,
                )
