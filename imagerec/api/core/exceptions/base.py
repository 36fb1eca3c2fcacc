"""Exception taxonomy and global exception handlers for the FastAPI application."""

import traceback

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..messages import MessageCode, get_default_message
from imagerec.utils.logger import get_logger

logger = get_logger(__name__)


class ImageRecException(Exception):
    """Base exception for the image recognition service with unified message codes."""

    def __init__(
        self,
        message_code: MessageCode,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict | None = None,
        headers: dict | None = None,
    ):
        self.message_code = message_code
        self.status_code = status_code
        self.message: str = get_default_message(message_code)
        self.details = details or {}
        self.headers = headers or {}
        super().__init__(self.message)

    @property
    def description(self) -> str:
        return str(self.details.get("description", ""))

    def to_response_dict(self) -> dict:
        """Convert exception to API response format."""
        return {
            "message_code": self.message_code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        if self.description:
            return f"{self.message}: {self.description}"
        return self.message


def _describe(description: str | None, details: dict | None) -> dict:
    merged = dict(details or {})
    if description:
        merged.setdefault("description", description)
    return merged


class ImageValidationError(ImageRecException):
    """Upload rejected by size or type policy."""

    def __init__(
        self,
        description: str,
        message_code: MessageCode = MessageCode.INVALID_IMAGE,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: dict | None = None,
    ):
        super().__init__(message_code, status_code, _describe(description, details))


class ImageDecodeError(ImageRecException):
    def __init__(self, description: str = "unsupported image format"):
        super().__init__(
            MessageCode.INVALID_IMAGE,
            status.HTTP_400_BAD_REQUEST,
            details={"description": description},
        )


class PreprocessError(ImageRecException):
    def __init__(self, description: str):
        super().__init__(
            MessageCode.IMAGE_PROCESSING_ERROR,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            details={"description": description},
        )


class ModelNotFoundError(ImageRecException):
    def __init__(self, model_id: str):
        self.model_id = model_id
        super().__init__(
            MessageCode.MODEL_NOT_FOUND,
            status.HTTP_404_NOT_FOUND,
            details={"description": f"model not found: {model_id}", "model_id": model_id},
        )


class ModelLoadError(ImageRecException):
    def __init__(self, model_id: str, description: str):
        self.model_id = model_id
        super().__init__(
            MessageCode.MODEL_LOAD_FAILED,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"description": description, "model_id": model_id},
        )


class InferenceError(ImageRecException):
    def __init__(self, description: str, model_id: str | None = None):
        details: dict = {"description": description}
        if model_id:
            details["model_id"] = model_id
        super().__init__(
            MessageCode.PREDICTION_FAILED,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
        )


class ModelUnavailableError(ImageRecException):
    def __init__(self, model_id: str, description: str):
        self.model_id = model_id
        super().__init__(
            MessageCode.SERVICE_UNAVAILABLE,
            status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"description": description, "model_id": model_id},
        )


class ResultNotFoundError(ImageRecException):
    def __init__(self, result_id: str):
        self.result_id = result_id
        super().__init__(
            MessageCode.NOT_FOUND,
            status.HTTP_404_NOT_FOUND,
            details={"description": f"result not found: {result_id}"},
        )


class DeadlineExceededError(ImageRecException):
    def __init__(self, stage: str, cancelled: bool = False):
        self.stage = stage
        reason = "cancelled" if cancelled else "deadline exceeded"
        super().__init__(
            MessageCode.REQUEST_TIMEOUT,
            status.HTTP_504_GATEWAY_TIMEOUT,
            details={"description": f"{reason} before {stage}", "stage": stage},
        )


def is_htmx_request(request: Request) -> bool:
    return request.headers.get("HX-Request") == "true"


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""

    @app.exception_handler(ImageRecException)
    async def imagerec_exception_handler(
        request: Request, exc: ImageRecException
    ) -> JSONResponse | HTMLResponse:
        """Handle service exceptions, rendering a fragment for HTMX callers."""
        logger.error(
            f"Request error: {exc.message_code.value}",
            path=request.url.path,
            method=request.method,
            status_code=exc.status_code,
            details=exc.details,
        )

        if is_htmx_request(request):
            from imagerec.api.prediction.fragments import render_error

            return HTMLResponse(
                content=render_error(exc.message, exc.description),
                status_code=exc.status_code,
                headers=exc.headers,
            )

        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response_dict(),
            headers=exc.headers,
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        """Handle FastAPI HTTP exceptions."""
        logger.warning(
            f"HTTP exception {exc.status_code}: {exc.detail}",
            path=request.url.path,
            method=request.method,
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "message_code": _code_for_status(exc.status_code),
                "message": str(exc.detail),
                "details": {"description": "HTTP exception occurred"},
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle Starlette HTTP exceptions."""
        logger.warning(
            f"Starlette HTTP exception {exc.status_code}: {exc.detail}",
            path=request.url.path,
            method=request.method,
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "message_code": _code_for_status(exc.status_code),
                "message": str(exc.detail),
                "details": {"description": "HTTP exception occurred"},
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request validation errors."""
        serializable_errors = []
        for error in exc.errors():
            error_dict = {
                key: value for key, value in dict(error).items() if key != "ctx"
            }
            if "input" in error_dict and not isinstance(
                error_dict["input"], (str, int, float, bool, type(None), list, dict)
            ):
                error_dict["input"] = str(error_dict["input"])
            serializable_errors.append(error_dict)

        logger.warning(
            "Validation error occurred",
            path=request.url.path,
            method=request.method,
        )

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "message_code": MessageCode.INVALID_REQUEST,
                "message": get_default_message(MessageCode.INVALID_REQUEST),
                "details": {
                    "description": "Request validation failed",
                    "validation_errors": serializable_errors,
                },
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse | HTMLResponse:
        """Handle all other unhandled exceptions."""
        if isinstance(exc, ImageRecException):
            return await imagerec_exception_handler(request, exc)

        logger.error(
            f"Unhandled exception: {str(exc)}",
            path=request.url.path,
            method=request.method,
            exception_type=type(exc).__name__,
            traceback=traceback.format_exc(),
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "message_code": MessageCode.INTERNAL_ERROR,
                "message": "Internal server error",
                "details": {"error_type": type(exc).__name__},
            },
        )


def _code_for_status(status_code: int) -> MessageCode:
    if status_code == status.HTTP_404_NOT_FOUND:
        return MessageCode.NOT_FOUND
    if status_code == status.HTTP_429_TOO_MANY_REQUESTS:
        return MessageCode.RATE_LIMIT_EXCEEDED
    if 400 <= status_code < 500:
        return MessageCode.INVALID_REQUEST
    return MessageCode.INTERNAL_ERROR
