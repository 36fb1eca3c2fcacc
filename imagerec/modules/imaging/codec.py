"""Upload validation and Pillow-backed decoding for PNG, JPEG and WebP images."""

import io
from dataclasses import dataclass

from fastapi import status
from PIL import Image, UnidentifiedImageError

from imagerec.api.core.constants import PREPROCESSED_JPEG_QUALITY
from imagerec.api.core.exceptions.base import ImageDecodeError, ImageValidationError
from imagerec.api.core.messages import MessageCode

OCTET_STREAM = "application/octet-stream"
SNIFF_LENGTH = 512

# Tried in order, first successful decode wins
DECODE_ORDER: tuple[tuple[str, str], ...] = (
    ("PNG", "png"),
    ("JPEG", "jpeg"),
    ("WEBP", "webp"),
)


@dataclass(frozen=True)
class DecodedImage:
    image: Image.Image
    format: str

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height


def sniff_mime_type(data: bytes) -> str:
    """Detect the MIME type of ``data`` from its magic number."""
    head = data[:SNIFF_LENGTH]
    if len(head) < 4:
        return OCTET_STREAM
    if head.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if head.startswith(b"\x89PNG"):
        return "image/png"
    if len(head) >= 12 and head.startswith(b"RIFF") and head[8:12] == b"WEBP":
        return "image/webp"
    return OCTET_STREAM


def normalize_content_type(content_type: str | None) -> str:
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def validate(
    data: bytes,
    declared_content_type: str | None,
    declared_size: int | None,
    max_file_size: int,
    allowed_types: list[str],
) -> str:
    """Apply the upload policy and return the sniffed MIME type.

    Raises:
        ImageValidationError: on size, emptiness or type violations.
    """
    if declared_size is not None and declared_size > max_file_size:
        raise ImageValidationError(
            f"file size {declared_size} bytes exceeds maximum allowed size {max_file_size} bytes",
            message_code=MessageCode.FILE_TOO_LARGE,
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )

    if len(data) > max_file_size:
        raise ImageValidationError(
            f"file size {len(data)} bytes exceeds maximum allowed size {max_file_size} bytes",
            message_code=MessageCode.FILE_TOO_LARGE,
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )

    if not data:
        raise ImageValidationError("empty file")

    allowed = {normalize_content_type(item) for item in allowed_types}
    content_type = normalize_content_type(declared_content_type)
    if content_type not in allowed:
        raise ImageValidationError(
            f"unsupported file type: {declared_content_type or 'none'}",
            message_code=MessageCode.UNSUPPORTED_FORMAT,
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
        )

    detected = sniff_mime_type(data)
    if detected not in allowed:
        raise ImageValidationError(
            f"detected file type {detected} is not allowed",
            message_code=MessageCode.UNSUPPORTED_FORMAT,
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            details={"detected_type": detected},
        )

    return detected


def decode(data: bytes) -> DecodedImage:
    """Decode ``data`` trying PNG, then JPEG, then WebP."""
    for pil_format, name in DECODE_ORDER:
        try:
            image = Image.open(io.BytesIO(data), formats=[pil_format])
            image.load()
        except (
            UnidentifiedImageError,
            Image.DecompressionBombError,
            OSError,
            SyntaxError,
            ValueError,
        ):
            continue
        return DecodedImage(image=image, format=name)

    raise ImageDecodeError("unsupported image format")


def encode_jpeg(image: Image.Image, quality: int = PREPROCESSED_JPEG_QUALITY) -> bytes:
    if image.mode != "RGB":
        image = image.convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()
