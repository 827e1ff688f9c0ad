from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


def attach_request_metadata(request: Request, **metadata: Any) -> None:
    """Merge ``metadata`` into the audit record emitted when the request finishes."""
    existing = getattr(request.state, "audit_metadata", None)
    if not isinstance(existing, dict):
        existing = {}
    existing.update({key: value for key, value in metadata.items() if value is not None})
    request.state.audit_metadata = existing


def build_request_event(
    request: Request,
    response: Optional[Response],
    *,
    status_code_override: Optional[int] = None,
    duration_ms: Optional[float] = None,
) -> Dict[str, Any]:
    route = request.scope.get("route")
    resource = getattr(route, "path", None) if route is not None else None
    metadata: Dict[str, Any] = {}
    extra_metadata = getattr(request.state, "audit_metadata", None)
    if isinstance(extra_metadata, dict):
        metadata.update(extra_metadata)
    if request.url.query:
        metadata.setdefault("query_string", request.url.query)
    return {
        "request_id": getattr(request.state, "request_id", None),
        "user": getattr(request.state, "current_user", None),
        "action": f"{request.method} {resource or request.url.path}",
        "method": request.method,
        "path": request.url.path,
        "status_code": status_code_override or getattr(response, "status_code", 500),
        "ip_address": _client_ip(request),
        "duration_ms": round(duration_ms, 2) if duration_ms is not None else None,
        "metadata": metadata,
    }


def log_request_event(
    request: Request,
    response: Optional[Response],
    *,
    status_code_override: Optional[int] = None,
    duration_ms: Optional[float] = None,
) -> Dict[str, Any]:
    event = build_request_event(
        request,
        response,
        status_code_override=status_code_override,
        duration_ms=duration_ms,
    )
    logger.info(
        "[%s] %s %s -> %s in %sms user=%s metadata=%s",
        event["request_id"],
        event["method"],
        event["path"],
        event["status_code"],
        event["duration_ms"],
        event["user"],
        event["metadata"],
        extra={"audit": event},
    )
    request.state.audit_metadata = None
    return event


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None
