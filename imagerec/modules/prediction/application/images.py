from imagerec.core.base import BaseService
from imagerec.core.context import PredictionContext
from imagerec.modules.imaging import codec
from imagerec.modules.imaging.preprocessing import ImagePreprocessor
from imagerec.modules.prediction.models import ImageMetadata, ProcessedUpload
from imagerec.utils.settings.upload import UploadSettings


class ImageService(BaseService):
    """Turns raw uploads into validated, model-ready images."""

    def __init__(self, settings: UploadSettings, preprocessor: ImagePreprocessor):
        super().__init__()
        self.settings = settings
        self.preprocessor = preprocessor

    def process_upload(
        self,
        data: bytes,
        filename: str,
        content_type: str | None,
        declared_size: int | None = None,
        context: PredictionContext | None = None,
    ) -> ProcessedUpload:
        """
        Validate, decode and normalize an uploaded image.

        Args:
            data: Raw upload bytes
            filename: Client supplied filename, kept for display only
            content_type: Declared Content-Type of the upload part
            declared_size: Size the client claimed, checked before the real length
            context: Optional deadline/cancellation state

        Returns:
            ProcessedUpload with metadata, 224x224 JPEG bytes and the input tensor
        """
        codec.validate(
            data,
            content_type,
            declared_size,
            max_file_size=self.settings.MAX_FILE_SIZE,
            allowed_types=self.settings.ALLOWED_TYPES,
        )

        if context:
            context.check("decode")
        decoded = codec.decode(data)

        metadata = ImageMetadata(
            filename=filename,
            size=declared_size if declared_size is not None else len(data),
            width=decoded.width,
            height=decoded.height,
            format=decoded.format,
            content_type=codec.normalize_content_type(content_type),
        )

        if context:
            context.check("preprocess")
        resized = self.preprocessor.resize(decoded.image)
        tensor = self.preprocessor.preprocess(resized)

        self.logger.info(
            "Processed image",
            filename=metadata.filename,
            width=metadata.width,
            height=metadata.height,
            format=metadata.format,
            size=metadata.size,
        )

        return ProcessedUpload(
            metadata=metadata, data=codec.encode_jpeg(resized), tensor=tensor
        )
