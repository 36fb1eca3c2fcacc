from fastapi import UploadFile, status

from imagerec.api.core.constants import MAX_BATCH_FILES
from imagerec.api.core.exceptions.base import ImageRecException, ImageValidationError
from imagerec.api.core.messages import MessageCode


async def read_image_upload(file: UploadFile) -> tuple[bytes, int | None]:
    """Read an uploaded file, returning its bytes and the size the client declared."""
    content = await file.read()
    return content, file.size


def validate_batch_size(files: list[UploadFile]) -> None:
    if not files:
        raise ImageValidationError("no files provided")
    if len(files) > MAX_BATCH_FILES:
        raise ImageRecException(
            MessageCode.INVALID_REQUEST,
            status.HTTP_400_BAD_REQUEST,
            details={
                "description": f"batch of {len(files)} files exceeds the limit of "
                f"{MAX_BATCH_FILES}"
            },
        )
