from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request
from starlette.responses import Response

from src.core.context import reset_current_organization_id, set_current_organization_id

logger = logging.getLogger(__name__)


async def organization_context_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    token = set_current_organization_id(None)
    started = time.perf_counter()
    try:
        response = await call_next(request)
    finally:
        reset_current_organization_id(token)

    logger.info(
        "%s %s %d %.1fms",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response
