"""Per-request correlation id, visible to every log call made while serving it."""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

request_id_var: ContextVar[str] = ContextVar("recipe_ai_request_id", default="")

_ACCEPTED_ID = re.compile(r"^[A-Za-z0-9_\-]{8,64}$")


def resolve_request_id(incoming: Optional[str] = None) -> str:
    """Reuse a caller-supplied ``X-Request-ID`` when it looks sane, else mint one."""
    if incoming and _ACCEPTED_ID.match(incoming.strip()):
        return incoming.strip()
    return uuid.uuid4().hex


def get_request_id() -> str:
    return request_id_var.get()


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)
