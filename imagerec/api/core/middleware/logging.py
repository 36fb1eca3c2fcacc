import time
import uuid

import structlog
from fastapi import Request

from imagerec.api.core.constants import REQUEST_ID_HEADER, SKIP_LOGGING_PATHS
from imagerec.utils.logger import get_client_ip, get_logger

logger = get_logger(__name__)


async def logging_middleware(request: Request, call_next):
    start_time = time.time()

    if request.url.path in SKIP_LOGGING_PATHS:
        return await call_next(request)

    structlog.contextvars.clear_contextvars()
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    ip_address = get_client_ip(request)
    structlog.contextvars.bind_contextvars(
        ip_address=ip_address,
        method=request.method,
        path=request.url.path,
        request_id=request_id,
    )

    response = await call_next(request)

    process_time = time.time() - start_time
    response.headers[REQUEST_ID_HEADER] = request_id

    logger.info(
        "request",
        ip_address=ip_address,
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration=int(process_time * 1000),
        htmx=request.headers.get("HX-Request") == "true",
    )

    return response
