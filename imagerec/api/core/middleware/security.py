from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from imagerec.api.core.constants import API_VERSION_HEADER
from imagerec.api.core.messages import MessageCode, get_default_message
from imagerec.utils.logger import get_logger
from imagerec.utils.settings.app import AppSettings

logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    def __init__(self, app, is_production: bool = False, api_version: str | None = None):
        super().__init__(app)
        self.is_production = is_production
        self.api_version = api_version or AppSettings().API_VERSION

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        headers = {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
            "Referrer-Policy": "strict-origin-when-cross-origin",
            "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
            "X-Permitted-Cross-Domain-Policies": "none",
            API_VERSION_HEADER: self.api_version,
        }

        if self.is_production:
            headers["Content-Security-Policy"] = self._get_csp()

        if self.is_production and request.url.scheme == "https":
            headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        cors_headers = {
            "Access-Control-Allow-Origin",
            "Access-Control-Allow-Methods",
            "Access-Control-Allow-Headers",
            "Access-Control-Allow-Credentials",
            "Access-Control-Expose-Headers",
            "Access-Control-Max-Age",
        }

        for key, value in headers.items():
            if key not in response.headers and key not in cors_headers:
                response.headers[key] = value

        return response

    def _get_csp(self) -> str:
        """Generate Content Security Policy for the upload page."""
        csp = {
            "default-src": ["'self'"],
            # the upload page pulls htmx from a CDN
            "script-src": ["'self'", "'unsafe-inline'", "https://unpkg.com"],
            "style-src": ["'self'", "'unsafe-inline'"],
            "img-src": ["'self'", "data:", "blob:"],
            "connect-src": ["'self'"],
            "object-src": ["'none'"],
            "base-uri": ["'self'"],
            "form-action": ["'self'"],
            "frame-ancestors": ["'none'"],
        }

        return "; ".join(
            f"{directive} {' '.join(sources)}" for directive, sources in csp.items()
        )


class PayloadSizeMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared Content-Length exceeds the limit."""

    def __init__(self, app, max_request_size: int | None = None):
        super().__init__(app)
        self.max_request_size = max_request_size or AppSettings().MAX_REQUEST_SIZE

    async def dispatch(self, request: Request, call_next) -> Response:
        content_length = request.headers.get("Content-Length")
        if content_length and content_length.isdigit():
            if int(content_length) > self.max_request_size:
                logger.warning(
                    f"Request too large: {content_length} bytes from "
                    f"{request.client.host if request.client else 'unknown'}"
                )
                return JSONResponse(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    content={
                        "message_code": MessageCode.FILE_TOO_LARGE,
                        "message": get_default_message(MessageCode.FILE_TOO_LARGE),
                        "details": {
                            "description": f"Request size ({content_length} bytes) exceeds "
                            f"maximum allowed ({self.max_request_size} bytes)"
                        },
                    },
                )

        return await call_next(request)
