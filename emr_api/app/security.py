import os
from typing import Optional

from fastapi import Header, Request

DEFAULT_AUDIT_USER = os.environ.get("DEFAULT_AUDIT_USER", "admin")


def get_current_username(request: Request, x_user: Optional[str] = Header(default=None)) -> str:
    """Name recorded as creator/changer/voider of records touched by this request.

    Authentication happens upstream of this service; the gateway forwards the
    user in ``X-User``.
    """
    username = (x_user or "").strip() or DEFAULT_AUDIT_USER
    request.state.current_user = username
    return username
