from __future__ import annotations

import json
import logging
import time
from contextvars import ContextVar
from uuid import uuid4

from fastapi import Request

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
logger = logging.getLogger("tempmail.api")


def build_request_id(request: Request, *, header_name: str) -> str:
    incoming = (request.headers.get(header_name) or "").strip()
    if incoming:
        return incoming[:128]
    return uuid4().hex


def log_request_completion(
    *,
    request_id: str,
    method: str,
    path: str,
    status_code: int,
    duration_ms: int,
) -> None:
    logger.info(
        json.dumps(
            {
                "event": "http.request.completed",
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": duration_ms,
            },
            separators=(",", ":"),
            sort_keys=True,
        )
    )


def now_ts() -> float:
    return time.time()
