"""Centralized message codes and default messages for API responses."""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel


class MessageCode(str, Enum):
    """Centralized message codes for API responses."""

    # Success codes
    SUCCESS = "SUCCESS"
    IMAGE_PROCESSED = "IMAGE_PROCESSED"
    BATCH_PROCESSED = "BATCH_PROCESSED"
    BATCH_PARTIALLY_PROCESSED = "BATCH_PARTIALLY_PROCESSED"
    MODEL_RELOADED = "MODEL_RELOADED"

    # Image errors
    INVALID_IMAGE = "INVALID_IMAGE"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    IMAGE_PROCESSING_ERROR = "IMAGE_PROCESSING_ERROR"

    # Model errors
    MODEL_NOT_FOUND = "MODEL_NOT_FOUND"
    MODEL_LOAD_FAILED = "MODEL_LOAD_FAILED"

    # Prediction errors
    PREDICTION_FAILED = "PREDICTION_FAILED"
    REQUEST_TIMEOUT = "REQUEST_TIMEOUT"

    # Rate limiting
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Validation errors
    INVALID_REQUEST = "INVALID_REQUEST"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    NOT_FOUND = "NOT_FOUND"


# Default messages for each message code
DEFAULT_MESSAGES = {
    # Success messages
    MessageCode.SUCCESS: "Operation completed successfully",
    MessageCode.IMAGE_PROCESSED: "Image processed successfully",
    MessageCode.BATCH_PROCESSED: "All images processed successfully",
    MessageCode.BATCH_PARTIALLY_PROCESSED: "Some images could not be processed",
    MessageCode.MODEL_RELOADED: "Model reloaded successfully",
    # Image errors
    MessageCode.INVALID_IMAGE: "Invalid image",
    MessageCode.UNSUPPORTED_FORMAT: "Unsupported image format",
    MessageCode.FILE_TOO_LARGE: "File size too large",
    MessageCode.IMAGE_PROCESSING_ERROR: "Error processing image",
    # Model errors
    MessageCode.MODEL_NOT_FOUND: "Model not found",
    MessageCode.MODEL_LOAD_FAILED: "Model could not be loaded",
    # Prediction errors
    MessageCode.PREDICTION_FAILED: "Prediction failed",
    MessageCode.REQUEST_TIMEOUT: "Request took too long to process",
    # Rate limiting
    MessageCode.RATE_LIMIT_EXCEEDED: "Rate limit exceeded",
    # Validation errors
    MessageCode.INVALID_REQUEST: "Invalid request",
    MessageCode.VALIDATION_ERROR: "Validation failed",
    # Generic errors
    MessageCode.INTERNAL_ERROR: "Internal server error",
    MessageCode.SERVICE_UNAVAILABLE: "Service temporarily unavailable",
    MessageCode.NOT_FOUND: "Resource not found",
}

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Base API response model with consistent structure and proper typing."""

    message_code: MessageCode
    message: str
    data: T | None = None

    @classmethod
    def success(
        cls,
        message_code: MessageCode = MessageCode.SUCCESS,
        message: str | None = None,
        data: T | None = None,
    ) -> "APIResponse[T]":
        """Create a success response."""
        return cls(
            message_code=message_code,
            message=message or DEFAULT_MESSAGES.get(message_code, "Success"),
            data=data,
        )

    @classmethod
    def error(
        cls,
        message_code: MessageCode,
        message: str | None = None,
        data: T | None = None,
    ) -> "APIResponse[T]":
        """Create an error response."""
        return cls(
            message_code=message_code,
            message=message or DEFAULT_MESSAGES.get(message_code, "Error occurred"),
            data=data,
        )


def get_default_message(message_code: MessageCode) -> str:
    """Get default message for a message code."""
    return DEFAULT_MESSAGES.get(message_code, "Operation completed")
